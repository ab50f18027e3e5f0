"""
Data assistant conversations.
Chat replies and website summaries from the local Ollama model.
"""

import json
import logging
import sqlite3
from typing import Dict, Any, List, Optional

from assistant.ollama_client import ollama_chat, OllamaError
from storage.chat_history import create_chat_message, get_chat_history
from storage.system_logs import create_log, LogLevel

# Set up logger
logger = logging.getLogger(__name__)


HISTORY_PAIRS = 5
WEBSITE_CONTENT_LIMIT = 2000

CHAT_SYSTEM_PROMPT = (
    "You are an AI assistant specialized in data analysis and helping users with their uploaded files and data. "
    "You can help with CSV analysis, JSON parsing, data visualization insights, and general data questions. "
    "Keep responses concise but informative. Use emojis sparingly and professionally."
)
CHAT_FALLBACK = "I'm sorry, I couldn't process your request."
CHAT_OPTIONS = {'temperature': 0.7, 'num_predict': 500}

WEBSITE_SYSTEM_PROMPT = "You are a web content analyzer. Provide concise analysis of website content."
WEBSITE_FALLBACK = "Unable to analyze website content."
WEBSITE_OPTIONS = {'temperature': 0.5, 'num_predict': 300}


class AssistantError(Exception):
    """Raised when the assistant cannot produce a response."""
    pass


def build_chat_messages(
    message: str,
    context: Optional[Any] = None,
    chat_history: Optional[List[Dict[str, str]]] = None
) -> List[Dict[str, str]]:
    """
    Assemble the chat transcript sent to the model.

    History is given oldest first; only the last five exchanges are replayed.
    """
    messages = [{'role': 'system', 'content': CHAT_SYSTEM_PROMPT}]

    for chat in (chat_history or [])[-HISTORY_PAIRS:]:
        messages.append({'role': 'user', 'content': chat['message']})
        messages.append({'role': 'assistant', 'content': chat['response']})

    if context:
        messages.append({
            'role': 'system',
            'content': f"Additional context: {json.dumps(context, indent=2, default=str)}"
        })

    messages.append({'role': 'user', 'content': message})
    return messages


def chat_with_assistant(
    message: str,
    context: Optional[Any] = None,
    chat_history: Optional[List[Dict[str, str]]] = None
) -> Dict[str, Any]:
    """
    Ask the assistant one question.

    Args:
        message: User message
        context: Optional JSON-serializable context (e.g. current statistics)
        chat_history: Prior exchanges as {'message', 'response'} dicts, oldest first

    Returns:
        Dictionary with 'message' (reply) and 'context' (echoed)

    Raises:
        AssistantError: If the model call fails
    """
    if not message or not message.strip():
        raise AssistantError("Message is required")

    messages = build_chat_messages(message, context, chat_history)

    try:
        reply = ollama_chat(messages, options=CHAT_OPTIONS)
    except OllamaError as e:
        logger.error(f"Chat request failed: {e}")
        raise AssistantError("Failed to get AI response") from e

    return {'message': reply or CHAT_FALLBACK, 'context': context}


def converse(
    conn: sqlite3.Connection,
    user: Dict[str, Any],
    message: str,
    context: Optional[Any] = None
) -> Dict[str, Any]:
    """
    Chat with the assistant and record the exchange for the user.

    Returns:
        Dictionary with 'message', 'context' and the stored 'chat_message'
    """
    recent = get_chat_history(conn, user['id'], limit=HISTORY_PAIRS)
    history = [
        {'message': chat['message'], 'response': chat['response']}
        for chat in reversed(recent)
    ]

    response = chat_with_assistant(message, context, history)

    stored = create_chat_message(conn, user['id'], message, response['message'], context)
    create_log(conn, LogLevel.INFO, 'AI chat interaction', user['id'])
    logger.info(f"Chat exchange stored for user {user['id']}")

    return {**response, 'chat_message': stored}


def analyze_website_content(content: str, url: str) -> str:
    """
    Summarize fetched page text.

    Args:
        content: Visible page text
        url: Page URL

    Returns:
        Short analysis of the page

    Raises:
        AssistantError: If the model call fails
    """
    prompt = (
        f"Analyze the following website content from {url}:\n\n"
        f"{content[:WEBSITE_CONTENT_LIMIT]}...\n\n"
        "Provide a brief analysis including:\n"
        "- Main purpose/topic of the website\n"
        "- Key information found\n"
        "- Structure and content type\n"
        "- Any notable features"
    )
    messages = [
        {'role': 'system', 'content': WEBSITE_SYSTEM_PROMPT},
        {'role': 'user', 'content': prompt}
    ]

    try:
        reply = ollama_chat(messages, options=WEBSITE_OPTIONS)
    except OllamaError as e:
        logger.error(f"Website analysis failed for {url}: {e}")
        raise AssistantError("Failed to analyze website content") from e

    return reply or WEBSITE_FALLBACK
