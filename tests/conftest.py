"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest
from unittest.mock import Mock

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('GROQ_API_KEY', 'gsk_test_key')
os.environ.setdefault('RESEND_API_KEY', 're_test_key')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')

from config import Settings  # noqa: E402
from domain.models import SaleEvent  # noqa: E402
from services import templates as template_service  # noqa: E402


@pytest.fixture(autouse=True)
def clear_template_cache():
    """Start every test with an empty template cache."""
    template_service.clear_cache()
    yield
    template_service.clear_cache()


@pytest.fixture
def lambda_context():
    """Mock Lambda context."""
    context = Mock()
    context.aws_request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:us-west-2:123456789012:function:sale-webhook-test"
    context.function_name = "sale-webhook-test"
    return context


@pytest.fixture
def settings():
    """Settings with test API keys and default endpoints."""
    return Settings(
        completion_api_key='gsk_test_key',
        email_api_key='re_test_key',
        environment='test'
    )


def make_http_response(status_code=200, json_body=None, text=''):
    """Build a Mock that looks like a requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    if json_body is None:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = json_body
    return response


def completion_body(content):
    """Chat completions response body with a single choice."""
    return {
        'id': 'chatcmpl-123',
        'object': 'chat.completion',
        'choices': [
            {'index': 0, 'message': {'role': 'assistant', 'content': content}, 'finish_reason': 'stop'}
        ]
    }


def form_event(body, method='POST', base64_encoded=False):
    """API Gateway REST proxy event carrying a form-encoded body."""
    return {
        'httpMethod': method,
        'path': '/webhook/sale',
        'headers': {'Content-Type': 'application/x-www-form-urlencoded'},
        'body': body,
        'isBase64Encoded': base64_encoded
    }


def make_sale(**overrides):
    """SaleEvent with realistic defaults."""
    values = dict(
        email='alice@acme.com',
        customer_name='Alice',
        order_id='S1',
        product_name='AI-Powered Business Automation Audit',
        price='100.00',
        currency='USD',
        business_url='acme.com'
    )
    values.update(overrides)
    return SaleEvent(**values)
