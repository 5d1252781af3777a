"""
Webhook intake and field extraction for payment platform sale notifications.

This module provides functions for turning an API Gateway proxy event into
a raw key/value mapping and then into a normalized SaleEvent.
"""

import base64
import binascii
import logging
import re
import time
from decimal import Decimal
from typing import Dict, Any, Mapping, Optional
from urllib.parse import parse_qsl

from domain.models import SaleEvent, ExtractionResult

logger = logging.getLogger(__name__)

DEFAULT_PRODUCT_NAME = 'AI-Powered Business Automation Audit'
DEFAULT_CURRENCY = 'USD'
DEFAULT_CUSTOMER_NAME = 'Valued Client'
BUSINESS_URL_NOT_PROVIDED = 'Not provided'
ORDER_ID_PREFIX = 'ORD-'

_URL_PREFIX_PATTERN = re.compile(r'^(https?://)?(www\.)?')
_NON_LETTER_PATTERN = re.compile(r'[^a-zA-Z]')
_LEADING_INTEGER_PATTERN = re.compile(r'^\s*([+-]?\d+)')


class WebhookRequestError(Exception):
    """Raised when an inbound request must be rejected with a client error."""

    status_code = 400
    error = 'Bad request'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MethodNotAllowedError(WebhookRequestError):
    """Raised when the request method is not POST."""

    status_code = 405
    error = 'Method not allowed'


class MalformedRequestError(WebhookRequestError):
    """Raised when the body cannot be decoded as form data."""

    status_code = 400
    error = 'Invalid data format'


def get_http_method(event: Dict[str, Any]) -> str:
    """
    Read the HTTP method from a REST (v1) or HTTP API (v2) proxy event.

    Returns:
        str: Upper-case method name, or empty string if absent
    """
    method = event.get('httpMethod')
    if not method:
        http_context = (event.get('requestContext') or {}).get('http') or {}
        method = http_context.get('method', '')
    return (method or '').upper()


def parse_request(event: Dict[str, Any]) -> Dict[str, str]:
    """
    Validate the request method and decode the form-encoded body.

    Args:
        event: API Gateway proxy event

    Returns:
        Dict mapping each form field name to its (last) value. Empty
        segments are skipped and a bare key maps to an empty string.

    Raises:
        MethodNotAllowedError: If the method is not POST (body is not read)
        MalformedRequestError: If base64, UTF-8 or percent-decoding fails

    Example:
        >>> parse_request({'httpMethod': 'POST', 'body': 'email=a%40b.com&price=100'})
        {'email': 'a@b.com', 'price': '100'}
    """
    method = get_http_method(event)
    if method != 'POST':
        logger.warning(f"Rejected request with method: {method or 'UNKNOWN'}")
        raise MethodNotAllowedError(
            'This endpoint only accepts POST requests from Gumroad webhooks.'
        )

    body = event.get('body') or ''

    try:
        if event.get('isBase64Encoded'):
            body = base64.b64decode(body, validate=True)
        if isinstance(body, bytes):
            body = body.decode('utf-8')
        if not isinstance(body, str):
            raise ValueError(f"Unsupported body type: {type(body).__name__}")

        if not body.strip():
            fields = {}
        else:
            fields = dict(parse_qsl(
                body.strip(),
                keep_blank_values=True,
                errors='strict'
            ))
    except (ValueError, binascii.Error) as e:
        # UnicodeDecodeError is a ValueError
        logger.error(f"Parse error: {e}")
        raise MalformedRequestError(
            'Could not parse webhook data. Ensure Gumroad Ping is configured correctly.'
        )

    logger.info(f"Webhook parsed successfully: {len(fields)} field(s)")
    return fields


def _first(fields: Mapping[str, str], *keys: str) -> Optional[str]:
    """Return the first non-empty value among keys, in priority order."""
    for key in keys:
        value = fields.get(key)
        if value:
            return value
    return None


def normalize_price(raw_price: Optional[str]) -> str:
    """
    Convert an integer minor-unit amount into a two-decimal major-unit string.

    Only the leading integer is read, so trailing text is ignored
    ("12.50" is 12 minor units).

    Example:
        >>> normalize_price("2500")
        '25.00'
        >>> normalize_price("12.50")
        '0.12'
        >>> normalize_price(None)
        '0.00'
    """
    if not raw_price:
        return '0.00'

    match = _LEADING_INTEGER_PATTERN.match(raw_price)
    if not match:
        logger.warning(f"Non-numeric price ignored: {raw_price!r}")
        return '0.00'

    minor_units = int(match.group(1))
    return str((Decimal(minor_units) / 100).quantize(Decimal('0.01')))


def normalize_business_url(raw_url: Optional[str]) -> str:
    """
    Strip a leading http(s):// scheme and "www." prefix.

    Example:
        >>> normalize_business_url("https://www.example.com")
        'example.com'
    """
    return _URL_PREFIX_PATTERN.sub('', raw_url or BUSINESS_URL_NOT_PROVIDED, count=1)


def derive_customer_name(fields: Mapping[str, str], email: str) -> str:
    """
    Pick the customer display name.

    Priority: full_name > purchaser[full_name] > email local part > generic label
    """
    name = _first(fields, 'full_name', 'purchaser[full_name]')
    if name:
        return name

    local_part = email.split('@')[0]
    derived = _NON_LETTER_PATTERN.sub(' ', local_part).strip()
    return derived or DEFAULT_CUSTOMER_NAME


def synthesize_order_id() -> str:
    """
    Build an order id for sales that arrive without one.

    Unique within the process, but a redelivered webhook gets a new id.
    """
    return f"{ORDER_ID_PREFIX}{int(time.time() * 1000)}"


def extract_sale_event(fields: Mapping[str, str]) -> ExtractionResult:
    """
    Normalize raw webhook fields into a SaleEvent.

    Args:
        fields: Raw form fields from parse_request()

    Returns:
        ExtractionResult with event set, or missing_field="email" when no
        email was found under either accepted key
    """
    email = _first(fields, 'email', 'purchaser_email')
    if not email:
        logger.error("Missing customer email")
        return ExtractionResult(missing_field='email')

    event = SaleEvent(
        email=email,
        customer_name=derive_customer_name(fields, email),
        order_id=_first(fields, 'sale_id', 'resource[id]') or synthesize_order_id(),
        product_name=_first(fields, 'product_name') or DEFAULT_PRODUCT_NAME,
        price=normalize_price(fields.get('price')),
        currency=_first(fields, 'currency') or DEFAULT_CURRENCY,
        business_url=normalize_business_url(
            _first(fields, 'custom_fields[website]', 'website')
        ),
    )

    logger.info(f"✓ Processing: {event.product_name}")
    logger.info(f"  Customer: {event.customer_name} ({event.email})")
    logger.info(f"  Amount: {event.price} {event.currency}")
    logger.info(f"  Order: {event.order_id}")
    logger.info(f"  Website: {event.business_url}")

    return ExtractionResult(event=event)
