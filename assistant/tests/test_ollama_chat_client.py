"""
Tests for Ollama chat client - mock server, timeouts, error paths.
No retry loops - fail closed if model unavailable.
"""

import os
import pytest
from unittest.mock import patch, Mock
import requests

from assistant.ollama_client import (
    ollama_chat,
    check_model_availability,
    get_ollama_status,
    OllamaError,
    OllamaTimeoutError,
    OllamaUnavailableError
)


MESSAGES = [
    {'role': 'system', 'content': 'Be brief.'},
    {'role': 'user', 'content': 'Hello'}
]


def _response(status_code=200, payload=None, text=''):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text
    return response


class TestOllamaChat:
    """Tests for ollama_chat."""

    @patch('assistant.ollama_client.check_model_availability', return_value=True)
    @patch('requests.post')
    def test_success(self, mock_post, mock_check_model):
        mock_post.return_value = _response(payload={'message': {'role': 'assistant', 'content': '  Hi there  '}})

        with patch.dict(os.environ, {'OLLAMA_OPTIONS_JSON': '{"seed": 1}'}):
            reply = ollama_chat(MESSAGES, model='llama3.1:8b', options={'temperature': 0.7})

        assert reply == 'Hi there'

        call_args = mock_post.call_args
        assert call_args[0][0].endswith('/api/chat')

        payload = call_args[1]['json']
        assert payload['model'] == 'llama3.1:8b'
        assert payload['messages'] == MESSAGES
        assert payload['stream'] is False
        assert payload['options'] == {'seed': 1, 'temperature': 0.7}

    @patch('assistant.ollama_client.check_model_availability', return_value=True)
    @patch('requests.post')
    def test_empty_content(self, mock_post, mock_check_model):
        mock_post.return_value = _response(payload={'message': {'content': None}})
        assert ollama_chat(MESSAGES) == ''

    @patch('assistant.ollama_client.check_model_availability', return_value=True)
    @patch('requests.post')
    def test_timeout(self, mock_post, mock_check_model):
        mock_post.side_effect = requests.exceptions.Timeout("Request timed out")

        with pytest.raises(OllamaTimeoutError, match="Request timed out"):
            ollama_chat(MESSAGES, timeout=5)

    @patch('assistant.ollama_client.check_model_availability', return_value=True)
    @patch('requests.post')
    def test_connection_error(self, mock_post, mock_check_model):
        mock_post.side_effect = requests.exceptions.ConnectionError("Connection refused")

        with pytest.raises(OllamaUnavailableError, match="Ollama service unavailable"):
            ollama_chat(MESSAGES)

    @patch('assistant.ollama_client.check_model_availability', return_value=True)
    @patch('requests.post')
    def test_http_error(self, mock_post, mock_check_model):
        mock_post.return_value = _response(status_code=500, text='boom')

        with pytest.raises(OllamaError, match="HTTP 500"):
            ollama_chat(MESSAGES)

    @patch('assistant.ollama_client.check_model_availability', return_value=True)
    @patch('requests.post')
    def test_missing_message_field(self, mock_post, mock_check_model):
        mock_post.return_value = _response(payload={'response': 'generate-style'})

        with pytest.raises(OllamaError, match="message.content"):
            ollama_chat(MESSAGES)

    @patch('assistant.ollama_client.check_model_availability', return_value=False)
    @patch('requests.post')
    def test_model_unavailable(self, mock_post, mock_check_model):
        with pytest.raises(OllamaUnavailableError, match="ollama pull"):
            ollama_chat(MESSAGES, model='missing:latest')

        mock_post.assert_not_called()

    @patch('assistant.ollama_client.check_model_availability', return_value=True)
    def test_invalid_env_options(self, mock_check_model):
        with patch.dict(os.environ, {'OLLAMA_OPTIONS_JSON': '{not json'}):
            with pytest.raises(OllamaError, match="OLLAMA_OPTIONS_JSON"):
                ollama_chat(MESSAGES)


class TestModelAvailability:
    """Tests for model and service checks."""

    @patch('requests.get')
    def test_model_listed(self, mock_get):
        mock_get.return_value = _response(payload={'models': [{'name': 'llama3.1:8b'}]})

        assert check_model_availability('llama3.1:8b', 'http://localhost:11434') is True
        assert check_model_availability('mistral:7b', 'http://localhost:11434') is False

    @patch('requests.get')
    def test_service_down(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError()
        assert check_model_availability('llama3.1:8b') is False

    @patch('requests.get')
    def test_status_available(self, mock_get):
        mock_get.return_value = _response(payload={'models': [{'name': 'llama3.1:8b'}, {'name': 'phi3'}]})

        with patch.dict(os.environ, {'OLLAMA_MODEL': 'llama3.1:8b'}):
            status = get_ollama_status()

        assert status['service_available'] is True
        assert status['model_available'] is True
        assert status['available_models'] == ['llama3.1:8b', 'phi3']
        assert status['error'] is None

    @patch('requests.get')
    def test_status_unreachable(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError()

        status = get_ollama_status()

        assert status['service_available'] is False
        assert status['model_available'] is False
        assert 'Cannot connect' in status['error']
