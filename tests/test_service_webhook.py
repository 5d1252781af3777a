"""
Tests for webhook intake and field extraction service.
"""

import base64
import pytest
import sys
import os
from unittest.mock import patch

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from services import webhook
from conftest import form_event


class TestParseRequest:
    """Test method validation and form body decoding."""

    def test_parse_simple_form_body(self):
        """Test decoding a form-encoded body into a flat mapping."""
        event = form_event('email=alice%40acme.com&price=10000&full_name=Alice+Smith')

        fields = webhook.parse_request(event)

        assert fields == {
            'email': 'alice@acme.com',
            'price': '10000',
            'full_name': 'Alice Smith'
        }

    def test_parse_bracketed_keys(self):
        """Test nested-looking keys are kept literally."""
        event = form_event('custom_fields%5Bwebsite%5D=https%3A%2F%2Facme.com&resource[id]=R9')

        fields = webhook.parse_request(event)

        assert fields['custom_fields[website]'] == 'https://acme.com'
        assert fields['resource[id]'] == 'R9'

    def test_parse_duplicate_keys_last_wins(self):
        fields = webhook.parse_request(form_event('email=a%40x.com&email=b%40x.com'))

        assert fields['email'] == 'b@x.com'

    def test_parse_base64_encoded_body(self):
        """Test API Gateway base64-encoded bodies are decoded first."""
        body = base64.b64encode(b'email=bob%40example.com&sale_id=S2').decode('ascii')

        fields = webhook.parse_request(form_event(body, base64_encoded=True))

        assert fields == {'email': 'bob@example.com', 'sale_id': 'S2'}

    def test_parse_empty_body_returns_empty_mapping(self):
        assert webhook.parse_request(form_event(None)) == {}
        assert webhook.parse_request(form_event('')) == {}

    def test_parse_http_api_v2_method(self):
        """Test the method is read from an HTTP API (v2) event."""
        event = {
            'requestContext': {'http': {'method': 'POST'}},
            'body': 'email=c%40example.com'
        }

        assert webhook.parse_request(event) == {'email': 'c@example.com'}

    @pytest.mark.parametrize('method', ['GET', 'PUT', 'DELETE', 'OPTIONS'])
    def test_non_post_rejected(self, method):
        with pytest.raises(webhook.MethodNotAllowedError) as exc_info:
            webhook.parse_request(form_event('email=a%40b.com', method=method))

        assert exc_info.value.status_code == 405
        assert exc_info.value.error == 'Method not allowed'

    def test_non_post_does_not_parse_body(self):
        """Test the body is never touched when the method is wrong."""
        with patch('services.webhook.parse_qsl') as mock_parse:
            with pytest.raises(webhook.MethodNotAllowedError):
                webhook.parse_request(form_event('email=a%40b.com', method='GET'))

        mock_parse.assert_not_called()

    def test_missing_method_rejected(self):
        with pytest.raises(webhook.MethodNotAllowedError):
            webhook.parse_request({'body': 'email=a%40b.com'})

    def test_null_request_context_rejected(self):
        """Test an event with requestContext set to null is a 405, not a crash."""
        with pytest.raises(webhook.MethodNotAllowedError) as exc_info:
            webhook.parse_request({'requestContext': None, 'body': 'email=a%40b.com'})

        assert exc_info.value.status_code == 405

    def test_null_http_context_has_no_method(self):
        assert webhook.get_http_method({'requestContext': {'http': None}}) == ''

    def test_trailing_ampersand_accepted(self):
        fields = webhook.parse_request(form_event('email=alice%40acme.com&sale_id=S1&'))

        assert fields == {'email': 'alice@acme.com', 'sale_id': 'S1'}

    def test_empty_segment_skipped(self):
        fields = webhook.parse_request(form_event('email=alice%40acme.com&&sale_id=S1'))

        assert fields == {'email': 'alice@acme.com', 'sale_id': 'S1'}

    def test_bare_key_maps_to_empty_string(self):
        fields = webhook.parse_request(form_event('email=alice%40acme.com&test'))

        assert fields == {'email': 'alice@acme.com', 'test': ''}

    def test_invalid_utf8_is_malformed(self):
        with pytest.raises(webhook.MalformedRequestError) as exc_info:
            webhook.parse_request(form_event('email=%FF%FE'))

        assert exc_info.value.status_code == 400
        assert exc_info.value.error == 'Invalid data format'

    def test_invalid_base64_is_malformed(self):
        with pytest.raises(webhook.MalformedRequestError):
            webhook.parse_request(form_event('not base64!!', base64_encoded=True))


class TestNormalizePrice:
    """Test minor-unit price normalization."""

    @pytest.mark.parametrize('raw,expected', [
        ('2500', '25.00'),
        ('10000', '100.00'),
        ('99', '0.99'),
        ('5', '0.05'),
        ('0', '0.00'),
        (' 1999 ', '19.99'),
        ('12.50', '0.12'),
        ('2500abc', '25.00'),
    ])
    def test_normalize_numeric_price(self, raw, expected):
        assert webhook.normalize_price(raw) == expected

    @pytest.mark.parametrize('raw', [None, '', 'abc', 'NaN', '.50'])
    def test_normalize_missing_or_non_numeric_price(self, raw):
        assert webhook.normalize_price(raw) == '0.00'


class TestNormalizeBusinessUrl:
    """Test business URL prefix stripping."""

    @pytest.mark.parametrize('raw,expected', [
        ('https://www.example.com', 'example.com'),
        ('http://www.example.com/about', 'example.com/about'),
        ('https://acme.com', 'acme.com'),
        ('www.acme.io', 'acme.io'),
        ('acme.io', 'acme.io'),
        ('ftp://acme.io', 'ftp://acme.io'),
    ])
    def test_strip_scheme_and_www(self, raw, expected):
        assert webhook.normalize_business_url(raw) == expected

    def test_missing_url_uses_sentinel(self):
        assert webhook.normalize_business_url(None) == 'Not provided'


class TestDeriveCustomerName:
    """Test customer name priority order."""

    def test_full_name_preferred(self):
        fields = {'full_name': 'Alice Smith', 'purchaser[full_name]': 'Other'}
        assert webhook.derive_customer_name(fields, 'alice@acme.com') == 'Alice Smith'

    def test_nested_purchaser_name(self):
        fields = {'purchaser[full_name]': 'Bob Jones'}
        assert webhook.derive_customer_name(fields, 'bob@acme.com') == 'Bob Jones'

    def test_name_from_email_local_part(self):
        assert webhook.derive_customer_name({}, 'john.doe@acme.com') == 'john doe'

    def test_generic_label_when_local_part_has_no_letters(self):
        assert webhook.derive_customer_name({}, '12345@acme.com') == 'Valued Client'


class TestExtractSaleEvent:
    """Test full SaleEvent extraction."""

    def test_extract_all_fields(self):
        fields = {
            'email': 'alice@acme.com',
            'full_name': 'Alice Smith',
            'product_name': 'Automation Audit Pro',
            'price': '10000',
            'currency': 'EUR',
            'sale_id': 'S1',
            'custom_fields[website]': 'https://acme.com'
        }

        result = webhook.extract_sale_event(fields)

        assert result.ok is True
        event = result.event
        assert event.email == 'alice@acme.com'
        assert event.customer_name == 'Alice Smith'
        assert event.product_name == 'Automation Audit Pro'
        assert event.price == '100.00'
        assert event.currency == 'EUR'
        assert event.order_id == 'S1'
        assert event.business_url == 'acme.com'

    def test_extract_applies_defaults(self):
        result = webhook.extract_sale_event({'email': 'jane@shop.com'})

        event = result.event
        assert event.product_name == 'AI-Powered Business Automation Audit'
        assert event.price == '0.00'
        assert event.currency == 'USD'
        assert event.business_url == 'Not provided'
        assert event.customer_name == 'jane'
        assert event.order_id.startswith('ORD-')

    def test_purchaser_email_alias(self):
        result = webhook.extract_sale_event({'purchaser_email': 'p@shop.com'})

        assert result.ok is True
        assert result.event.email == 'p@shop.com'

    def test_email_preferred_over_alias(self):
        result = webhook.extract_sale_event({'email': 'a@shop.com', 'purchaser_email': 'b@shop.com'})

        assert result.event.email == 'a@shop.com'

    def test_missing_email_returns_missing_field(self):
        result = webhook.extract_sale_event({'full_name': 'No Email', 'price': '100'})

        assert result.ok is False
        assert result.event is None
        assert result.missing_field == 'email'

    def test_blank_email_counts_as_missing(self):
        result = webhook.extract_sale_event({'email': '', 'purchaser_email': ''})

        assert result.missing_field == 'email'

    def test_order_id_from_resource_id(self):
        result = webhook.extract_sale_event({'email': 'a@b.com', 'resource[id]': 'R-77'})

        assert result.event.order_id == 'R-77'

    def test_sale_id_preferred_over_resource_id(self):
        result = webhook.extract_sale_event({'email': 'a@b.com', 'sale_id': 'S1', 'resource[id]': 'R-77'})

        assert result.event.order_id == 'S1'

    @patch('services.webhook.time.time', return_value=1700000000.5)
    def test_synthesized_order_id_uses_milliseconds(self, mock_time):
        result = webhook.extract_sale_event({'email': 'a@b.com'})

        assert result.event.order_id == 'ORD-1700000000500'

    def test_plain_website_key(self):
        result = webhook.extract_sale_event({'email': 'a@b.com', 'website': 'http://www.shop.io'})

        assert result.event.business_url == 'shop.io'
