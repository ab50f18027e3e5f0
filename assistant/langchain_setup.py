"""
LangChain environment guard for the data analysis chain.
Dataset samples stay local: tracing off by default, remote Ollama hosts flagged.
"""

import os
import warnings
import importlib
from typing import Dict, Any
from urllib.parse import urlparse

from dotenv import load_dotenv

from assistant.ollama_client import get_base_url

# Load environment variables
load_dotenv()


# import name -> distribution name
REQUIRED_PACKAGES = {
    'langchain_core': 'langchain-core',
    'langchain_ollama': 'langchain-ollama',
}
LOCAL_HOSTS = {'localhost', '127.0.0.1', '::1'}


class LangChainSetupError(Exception):
    """Raised when LangChain setup fails."""
    pass


def validate_langchain_env() -> Dict[str, Any]:
    """
    Check where dataset samples could end up.

    LangSmith tracing needs an API key when switched on; both tracing and a
    non-local Ollama host produce a warning.

    Returns:
        Dictionary with 'valid', 'errors', 'warnings', 'telemetry_enabled'
        and 'ollama_host'
    """
    host = urlparse(get_base_url()).hostname or ''
    tracing = os.getenv('LANGSMITH_TRACING', 'false').strip().lower() == 'true'

    errors = []
    notices = []

    if tracing:
        if not os.getenv('LANGSMITH_API_KEY', '').strip():
            errors.append("LANGSMITH_TRACING=true but LANGSMITH_API_KEY is empty")
        notices.append(
            "LangSmith tracing is ENABLED. Dataset samples may be sent to external services. "
            "Set LANGSMITH_TRACING=false to disable."
        )

    if host not in LOCAL_HOSTS:
        notices.append(f"Ollama host '{host}' is not local. Dataset samples will leave this machine.")

    return {
        'valid': not errors,
        'errors': errors,
        'warnings': notices,
        'telemetry_enabled': tracing,
        'ollama_host': host
    }


def setup_langchain_env() -> None:
    """
    Turn tracing off unless explicitly enabled.

    Raises:
        LangChainSetupError: If configuration is invalid
    """
    validation = validate_langchain_env()

    for notice in validation['warnings']:
        warnings.warn(f"LangChain Setup: {notice}", UserWarning)

    if not validation['valid']:
        raise LangChainSetupError(
            "LangChain setup failed:\n" + "\n".join(f"- {err}" for err in validation['errors'])
        )

    if not validation['telemetry_enabled']:
        os.environ['LANGSMITH_TRACING'] = 'false'
        os.environ.pop('LANGSMITH_API_KEY', None)


def check_langchain_imports() -> Dict[str, Any]:
    """
    Try importing every required LangChain package.

    Returns:
        Dictionary with one flag per import name, 'all_available' and 'errors'
    """
    status = {'errors': []}

    for module_name, distribution in REQUIRED_PACKAGES.items():
        try:
            importlib.import_module(module_name)
            status[module_name] = True
        except ImportError as e:
            status[module_name] = False
            status['errors'].append(f"{distribution}: {e}")

    status['all_available'] = all(status[name] for name in REQUIRED_PACKAGES)
    return status


def get_langchain_status() -> Dict[str, Any]:
    """Imports and environment together, for the status command."""
    imports = check_langchain_imports()
    environment = validate_langchain_env()

    return {
        'imports': imports,
        'environment': environment,
        'ready': imports['all_available'] and environment['valid']
    }


def ensure_langchain_ready() -> None:
    """
    Ensure LangChain is installed and configured.

    Raises:
        LangChainSetupError: If packages are missing or configuration is invalid
    """
    import_status = check_langchain_imports()

    if not import_status['all_available']:
        raise LangChainSetupError(
            "LangChain dependencies not available:\n"
            + "\n".join(f"- {err}" for err in import_status['errors'])
            + f"\n\nInstall with: pip install {' '.join(REQUIRED_PACKAGES.values())}"
        )

    setup_langchain_env()
