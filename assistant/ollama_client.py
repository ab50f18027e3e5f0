"""
Ollama client for the data assistant.
Minimal chat client with timeout and options. Fail closed if model unavailable.
"""

import os
import json
import requests
from typing import Dict, Any, List, Optional
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


DEFAULT_BASE_URL = 'http://localhost:11434'
DEFAULT_MODEL = 'llama3.1:8b'


class OllamaError(Exception):
    """Base exception for Ollama client errors."""
    pass


class OllamaTimeoutError(OllamaError):
    """Raised when Ollama request times out."""
    pass


class OllamaUnavailableError(OllamaError):
    """Raised when Ollama service or model is unavailable."""
    pass


def get_base_url() -> str:
    return os.getenv('OLLAMA_BASE_URL', DEFAULT_BASE_URL)


def get_model_name() -> str:
    return os.getenv('OLLAMA_MODEL', DEFAULT_MODEL)


def _env_options() -> Dict[str, Any]:
    options_json = os.getenv('OLLAMA_OPTIONS_JSON', '{}')
    try:
        return json.loads(options_json) if options_json else {}
    except json.JSONDecodeError:
        raise OllamaError(f"Invalid OLLAMA_OPTIONS_JSON: {options_json}")


def ollama_chat(
    messages: List[Dict[str, str]],
    model: Optional[str] = None,
    timeout: Optional[int] = None,
    options: Optional[Dict[str, Any]] = None
) -> str:
    """
    Send a chat conversation to Ollama and return the reply.

    Args:
        messages: List of {'role': 'system'|'user'|'assistant', 'content': str}
        model: Model name (defaults to env OLLAMA_MODEL)
        timeout: Request timeout in seconds (defaults to env OLLAMA_TIMEOUT_S)
        options: Model options; merged over env OLLAMA_OPTIONS_JSON

    Returns:
        Reply text (may be empty if the model produced nothing)

    Raises:
        OllamaError: If request fails
        OllamaTimeoutError: If request times out
        OllamaUnavailableError: If service or model unavailable
    """
    base_url = get_base_url()
    model = model or get_model_name()
    timeout = timeout or int(os.getenv('OLLAMA_TIMEOUT_S', '60'))

    merged_options = _env_options()
    if options:
        merged_options.update(options)

    # Check model availability first
    if not check_model_availability(model, base_url):
        raise OllamaUnavailableError(
            f"Model '{model}' not available. "
            f"Please run: ollama pull {model}"
        )

    url = f"{base_url.rstrip('/')}/api/chat"
    payload = {
        'model': model,
        'messages': messages,
        'stream': False,
        'options': merged_options
    }

    try:
        response = requests.post(
            url,
            json=payload,
            timeout=timeout,
            headers={'Content-Type': 'application/json'}
        )

        if response.status_code != 200:
            raise OllamaError(f"HTTP {response.status_code}: {response.text}")

        try:
            response_data = response.json()
        except json.JSONDecodeError:
            raise OllamaError(f"Invalid JSON response: {response.text}")

        message = response_data.get('message')
        if not isinstance(message, dict) or 'content' not in message:
            raise OllamaError(f"Missing 'message.content' field in: {response_data}")

        return (message['content'] or '').strip()

    except requests.exceptions.Timeout:
        raise OllamaTimeoutError(f"Request timed out after {timeout}s")

    except requests.exceptions.ConnectionError:
        raise OllamaUnavailableError(
            f"Ollama service unavailable at {base_url}. "
            f"Please ensure Ollama is running: ollama serve"
        )

    except requests.exceptions.RequestException as e:
        raise OllamaError(f"Request failed: {e}")


def check_model_availability(
    model: str,
    base_url: Optional[str] = None
) -> bool:
    """
    Check if specified model is available in Ollama.

    Args:
        model: Model name to check
        base_url: Ollama base URL (defaults to env)

    Returns:
        True if model is available, False otherwise
    """
    if base_url is None:
        base_url = get_base_url()

    try:
        url = f"{base_url.rstrip('/')}/api/tags"
        response = requests.get(url, timeout=10)

        if response.status_code != 200:
            return False

        models = response.json().get('models', [])
        return any(model_info.get('name') == model for model_info in models)

    except (requests.exceptions.RequestException, ValueError):
        return False


def get_ollama_status() -> Dict[str, Any]:
    """
    Get Ollama service and model status.

    Returns:
        Dictionary with service and model status
    """
    base_url = get_base_url()
    model = get_model_name()

    status = {
        'service_url': base_url,
        'service_available': False,
        'model_name': model,
        'model_available': False,
        'available_models': [],
        'error': None
    }

    try:
        response = requests.get(f"{base_url.rstrip('/')}/api/tags", timeout=10)

        if response.status_code == 200:
            status['service_available'] = True
            models = response.json().get('models', [])
            status['available_models'] = [m.get('name') for m in models]
            status['model_available'] = model in status['available_models']
        else:
            status['error'] = f"HTTP {response.status_code}: {response.text}"

    except requests.exceptions.ConnectionError:
        status['error'] = f"Cannot connect to Ollama at {base_url}"
    except (requests.exceptions.RequestException, ValueError) as e:
        status['error'] = str(e)

    return status
