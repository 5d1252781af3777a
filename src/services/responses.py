"""
API Gateway proxy response helpers.

build_sale_response() is pure aggregation: it always yields HTTP 200, with
delivery failures reported only in the JSON body.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from config import BRAND_DOMAIN, BRAND_NAME, ENGINE_HEADER, ENGINE_VERSION
from domain.models import SaleEvent, ReportResult, DeliveryOutcome

DELIVERED_MESSAGE = f'{BRAND_NAME} audit completed and delivered successfully.'
DELIVERY_FAILED_MESSAGE = 'Audit generated but delivery failed. Customer will be contacted separately.'


def json_response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    """Wrap a JSON body in an API Gateway proxy response."""
    header_name, header_value = ENGINE_HEADER
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json',
            header_name: header_value,
        },
        'body': json.dumps(body)
    }


def error_response(status_code: int, error: str, message: str) -> Dict[str, Any]:
    return json_response(status_code, {'error': error, 'message': message})


def build_sale_payload(
    sale: SaleEvent,
    report: ReportResult,
    delivery: DeliveryOutcome,
    processing_time_ms: int,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Summarize one processed sale.

    The report is always reported as generated: fallback text still counts.
    """
    now = now or datetime.now(timezone.utc)

    return {
        'success': delivery.success,
        'message': DELIVERED_MESSAGE if delivery.success else DELIVERY_FAILED_MESSAGE,
        'audit': {
            'generated': bool(report.content),
            'delivered': delivery.success,
            'order_id': sale.order_id,
            'customer_email': sale.email,
            'business_website': sale.business_url,
            'email_id': delivery.email_id,
        },
        'metadata': {
            'version': ENGINE_VERSION,
            'domain': BRAND_DOMAIN,
            'timestamp': now.isoformat().replace('+00:00', 'Z'),
            'processing_time_ms': processing_time_ms,
        }
    }


def build_sale_response(
    sale: SaleEvent,
    report: ReportResult,
    delivery: DeliveryOutcome,
    processing_time_ms: int
) -> Dict[str, Any]:
    return json_response(200, build_sale_payload(sale, report, delivery, processing_time_ms))
