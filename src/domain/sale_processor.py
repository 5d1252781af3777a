"""
Sale processing pipeline - core business logic.

This module handles the end-to-end processing of a sale webhook:
1. Validate method and parse the form-encoded body
2. Extract a normalized SaleEvent (email is mandatory)
3. Generate the audit report (falls back to canned text, never fails)
4. Email the report to the customer (failure reported as data)
5. Build the JSON acknowledgment

Client input errors stop the pipeline before any outbound call.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from .models import SaleEvent, ReportResult, DeliveryOutcome
from .report_generator import ReportGenerator
from .notifier import AuditNotifier
from config import Settings
from services import webhook as webhook_service
from services import responses as response_service
from integrations.completion_api import CompletionClient
from integrations.email_api import EmailClient

logger = logging.getLogger(__name__)


class SaleProcessor:
    """
    Handles the sale webhook pipeline.

    Collaborators are injected so tests can substitute fakes; use
    from_settings() to wire the real API clients.
    """

    def __init__(self, report_generator: ReportGenerator, notifier: AuditNotifier):
        self.report_generator = report_generator
        self.notifier = notifier

    @classmethod
    def from_settings(cls, settings: Settings) -> 'SaleProcessor':
        completion_client = CompletionClient(
            api_key=settings.completion_api_key,
            model=settings.completion_model,
            api_url=settings.completion_api_url,
            timeout=settings.completion_timeout
        )
        email_client = EmailClient(
            api_key=settings.email_api_key,
            api_url=settings.email_api_url,
            timeout=settings.email_timeout
        )
        return cls(
            report_generator=ReportGenerator(completion_client),
            notifier=AuditNotifier(email_client, settings)
        )

    def process(self, event: Dict[str, Any], start_time: Optional[float] = None) -> Dict[str, Any]:
        """
        Process one API Gateway proxy event.

        Args:
            event: Proxy event carrying the webhook request
            start_time: time.time() when the invocation began

        Returns:
            API Gateway proxy response dict (405/400 for client errors,
            otherwise 200 regardless of delivery outcome)
        """
        start_time = start_time or time.time()

        try:
            fields = webhook_service.parse_request(event)
        except webhook_service.WebhookRequestError as e:
            return response_service.error_response(e.status_code, e.error, e.message)

        extraction = webhook_service.extract_sale_event(fields)
        if not extraction.ok:
            return response_service.error_response(
                400,
                'Missing required data',
                'No customer email found in webhook data.'
            )

        sale = extraction.event

        logger.info("Initiating AI analysis...")
        report = self.report_generator.generate(sale.business_url)
        logger.info(f"Audit content generated: {report!r}")

        logger.info("Delivering audit to customer...")
        delivery = self.notifier.send_audit(
            report=report.content,
            customer_email=sale.email,
            customer_name=sale.customer_name,
            business_url=sale.business_url,
            order_id=sale.order_id
        )

        if not delivery.success:
            self._log_delivery_failure(sale, delivery)

        processing_time_ms = int((time.time() - start_time) * 1000)
        self._log_summary(sale, report, delivery, processing_time_ms)

        return response_service.build_sale_response(sale, report, delivery, processing_time_ms)

    def _log_delivery_failure(self, sale: SaleEvent, delivery: DeliveryOutcome) -> None:
        logger.error("⚠ Audit delivery failed")
        logger.error(
            f"FAILURE DETAILS: order_id={sale.order_id}, email={sale.email}, "
            f"error={delivery.error}, timestamp={datetime.now(timezone.utc).isoformat()}"
        )

    def _log_summary(
        self,
        sale: SaleEvent,
        report: ReportResult,
        delivery: DeliveryOutcome,
        processing_time_ms: int
    ) -> None:
        """Log workflow outcome."""
        logger.info("=" * 50)
        logger.info(f"Workflow complete. Success: {delivery.success}")
        logger.info(f"Order: {sale.order_id}")
        logger.info(f"Report fallback: {report.was_fallback}")
        logger.info(f"Total processing time: {processing_time_ms}ms")
        logger.info("=" * 50)
