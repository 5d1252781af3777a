"""
Transactional Email API Integration Module

This module provides a thin client for the Resend email API, used to deliver
audit reports from the verified sending domain.

Usage:
    from integrations.email_api import EmailClient

    client = EmailClient(api_key="re_...")
    email_id = client.send(
        sender="Team <audits@example.com>",
        reply_to="support@example.com",
        to="customer@example.com",
        subject="Your audit",
        html="<p>Hi</p>",
        text="Hi",
        tags={"audit": "ORD-1"}
    )
"""

import logging
import re
from typing import Any, Dict, Optional

import requests

from config import CONNECT_TIMEOUT_SECONDS, DEFAULT_EMAIL_API_URL, DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

# Resend only accepts ASCII letters, numbers, underscores and dashes in tags
_TAG_INVALID_CHARS = re.compile(r'[^A-Za-z0-9_-]')


class EmailAPIError(Exception):
    """Raised when the email API rejects a message or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, name: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.name = name


def sanitize_tag_value(value: str) -> str:
    """
    Make a value acceptable as an email tag.

    Example:
        >>> sanitize_tag_value("abc==")
        'abc__'
    """
    return _TAG_INVALID_CHARS.sub('_', value)


class EmailClient:
    """Client for the Resend /emails endpoint. No retries."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_EMAIL_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None
    ):
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {api_key}',
            'Content-Type': 'application/json',
        })

    def send(
        self,
        sender: str,
        reply_to: str,
        to: str,
        subject: str,
        html: str,
        text: str,
        tags: Optional[Dict[str, str]] = None
    ) -> str:
        """
        Send one email.

        Returns:
            str: Provider-assigned email id

        Raises:
            EmailAPIError: If the API returns an error or the request fails
        """
        payload: Dict[str, Any] = {
            'from': sender,
            'reply_to': reply_to,
            'to': [to],
            'subject': subject,
            'html': html,
            'text': text,
        }
        if tags:
            payload['tags'] = [
                {'name': sanitize_tag_value(name), 'value': sanitize_tag_value(value)}
                for name, value in tags.items()
            ]

        try:
            response = self.session.post(
                self.api_url,
                json=payload,
                timeout=(CONNECT_TIMEOUT_SECONDS, self.timeout)
            )
        except requests.RequestException as e:
            logger.error(f"Email API request failed: {e.__class__.__name__}: {e}")
            raise EmailAPIError(f"Email request failed: {e}")

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.ok:
            # Resend error body: {"statusCode": 422, "name": "validation_error", "message": "..."}
            message = data.get('message') or response.text[:200] or f"HTTP {response.status_code}"
            logger.error(f"Email API error {response.status_code}: {data or response.text[:200]}")
            raise EmailAPIError(
                f"Email failed: {message}",
                status_code=response.status_code,
                name=data.get('name')
            )

        email_id = data.get('id')
        if not email_id:
            raise EmailAPIError(
                "Email failed: response did not include an email id",
                status_code=response.status_code
            )

        return email_id
