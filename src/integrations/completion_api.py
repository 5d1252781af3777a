"""
Chat Completion API Integration Module

This module provides a thin client for an OpenAI-compatible chat completions
endpoint (Groq by default), used to generate audit reports.

Usage:
    from integrations.completion_api import CompletionClient

    client = CompletionClient(api_key="gsk_...", model="llama-3.3-70b-versatile")
    text = client.complete("Analyze example.com")
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

from config import CONNECT_TIMEOUT_SECONDS, DEFAULT_COMPLETION_API_URL, DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2500


# ============================================================================
# Custom Exception Classes
# ============================================================================

class CompletionAPIError(Exception):
    """Raised when the completion API call fails or returns no usable text."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# ============================================================================
# Client
# ============================================================================

class CompletionClient:
    """
    Client for a chat completions endpoint with bearer-token auth.

    No retries: a failed call is reported once and the caller decides what
    to do with it.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        api_url: str = DEFAULT_COMPLETION_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        session: Optional[requests.Session] = None
    ):
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json',
        })

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        return {
            'model': self.model,
            'messages': [{'role': 'user', 'content': prompt}],
            'temperature': self.temperature,
            'max_tokens': self.max_tokens,
        }

    def complete(self, prompt: str) -> str:
        """
        Send a single user-role prompt and return the generated text.

        Args:
            prompt: The full prompt text

        Returns:
            str: Content of the first choice's message

        Raises:
            CompletionAPIError: On network errors, timeouts, non-2xx status,
                non-JSON bodies, or a response without message content
        """
        start_time = time.time()
        logger.info(f"Calling completion API: model={self.model}, prompt_length={len(prompt)}")

        try:
            response = self.session.post(
                self.api_url,
                json=self.build_payload(prompt),
                timeout=(CONNECT_TIMEOUT_SECONDS, self.timeout)
            )
        except requests.RequestException as e:
            logger.error(f"Completion API request failed: {e.__class__.__name__}: {e}")
            raise CompletionAPIError(f"Completion API request failed: {e}")

        if not response.ok:
            logger.error(f"Completion API error {response.status_code}: {response.text[:500]}")
            raise CompletionAPIError(
                f"Completion API error: {response.status_code}",
                status_code=response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Failed to parse completion response: {e}, body: {response.text[:200]}")
            raise CompletionAPIError("Completion API returned a non-JSON body")

        content = self._extract_content(data)
        if not content:
            raise CompletionAPIError("Completion API response has no message content")

        execution_time = time.time() - start_time
        logger.info(
            f"Completion succeeded: response_length={len(content)}, "
            f"execution_time={execution_time:.2f}s"
        )
        return content

    @staticmethod
    def _extract_content(data: Any) -> Optional[str]:
        """Read choices[0].message.content, tolerating any shape."""
        if not isinstance(data, dict):
            return None

        choices = data.get('choices')
        if not isinstance(choices, list) or not choices:
            return None

        first = choices[0]
        if not isinstance(first, dict):
            return None

        message = first.get('message')
        if not isinstance(message, dict):
            return None

        content = message.get('content')
        if not isinstance(content, str) or not content.strip():
            return None
        return content
