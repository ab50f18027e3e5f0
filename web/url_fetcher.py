"""
URL fetcher for website content analysis.
Downloads a page, reduces HTML to visible text and asks the assistant about it.
"""

import os
import logging
import sqlite3
from typing import Dict, Any, Optional

import requests
from bs4 import BeautifulSoup
from dotenv import load_dotenv

from ingestion.upload_validators import validate_url
from assistant.chat import analyze_website_content
from storage.system_logs import create_log, LogLevel

# Load environment variables
load_dotenv()

# Set up logger
logger = logging.getLogger(__name__)


HEADERS = {'User-Agent': 'data-workbench/0.0.1'}
CONTENT_PREVIEW_CHARS = 2000
HTML_MARKERS = ('<html', '<!doctype html', '<body')


class UrlFetchError(Exception):
    """Raised when a URL cannot be fetched."""
    pass


def _looks_like_html(content_type: str, body: str) -> bool:
    if 'html' in content_type.lower():
        return True
    head = body[:500].lower()
    return any(marker in head for marker in HTML_MARKERS)


def html_to_text(html: str) -> Dict[str, Optional[str]]:
    """
    Reduce an HTML document to its title and visible text.

    Returns:
        Dictionary with 'title' (or None) and 'text'
    """
    soup = BeautifulSoup(html, 'html.parser')

    for tag in soup(['script', 'style', 'noscript']):
        tag.decompose()

    title = soup.title.get_text(strip=True) if soup.title else None
    lines = (line.strip() for line in soup.get_text(separator='\n').splitlines())
    text = '\n'.join(line for line in lines if line)

    return {'title': title or None, 'text': text}


def fetch_url(url: str, timeout: Optional[int] = None) -> Dict[str, Any]:
    """
    Download a page.

    Args:
        url: http(s) URL
        timeout: Request timeout in seconds (defaults to env REQUESTS_TIMEOUT_S)

    Returns:
        Dictionary with 'url', 'status_code', 'title', 'text' and 'raw_content'

    Raises:
        UrlFetchError: If the URL is invalid, unreachable or returns an error status
    """
    try:
        url = validate_url(url)
    except ValueError as e:
        raise UrlFetchError(str(e))

    timeout = timeout or int(os.getenv('REQUESTS_TIMEOUT_S', '30'))

    try:
        response = requests.get(url, headers=HEADERS, timeout=timeout)
    except requests.exceptions.Timeout:
        raise UrlFetchError(f"Request to {url} timed out after {timeout}s")
    except requests.exceptions.RequestException as e:
        raise UrlFetchError(f"Failed to fetch {url}: {e}")

    if response.status_code >= 400:
        raise UrlFetchError(f"HTTP {response.status_code} fetching {url}")

    raw_content = response.text
    content_type = response.headers.get('Content-Type', '')

    if _looks_like_html(content_type, raw_content):
        parsed = html_to_text(raw_content)
    else:
        parsed = {'title': None, 'text': raw_content.strip()}

    logger.info(f"Fetched {url}: status={response.status_code}, chars={len(parsed['text'])}")

    return {
        'url': url,
        'status_code': response.status_code,
        'title': parsed['title'],
        'text': parsed['text'],
        'raw_content': raw_content
    }


def fetch_and_analyze(
    conn: sqlite3.Connection,
    user: Dict[str, Any],
    url: str,
    timeout: Optional[int] = None
) -> Dict[str, Any]:
    """
    Fetch a page, have the assistant analyze it and log the fetch.

    Returns:
        Dictionary with 'url', 'content' (preview), 'analysis' and 'full_content'

    Raises:
        UrlFetchError: If the fetch fails
        AssistantError: If the analysis fails
    """
    page = fetch_url(url, timeout=timeout)
    analysis = analyze_website_content(page['text'], page['url'])

    create_log(conn, LogLevel.INFO, f"URL fetched: {page['url']}", user['id'], {'url': page['url']})

    return {
        'url': page['url'],
        'content': page['text'][:CONTENT_PREVIEW_CHARS],
        'analysis': analysis,
        'full_content': page['text']
    }
