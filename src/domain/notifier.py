"""
Audit email rendering and delivery.

Delivery failures are returned as DeliveryOutcome(success=False) and are
never retried or raised to the caller.
"""

import html as html_lib
import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from .models import DeliveryOutcome
from config import BRAND_NAME, Settings
from services import templates as template_service
from integrations.email_api import EmailAPIError

logger = logging.getLogger(__name__)

HTML_TEMPLATE = 'audit_email.html'
TEXT_TEMPLATE = 'audit_email.txt'
TAG_NAME = 'audit'


def report_to_html(report: str) -> str:
    """Embed report text in HTML, turning newlines into line breaks."""
    return report.replace('\r\n', '\n').replace('\n', '<br>')


def build_subject(business_url: str) -> str:
    return f"Your AI-Powered Business Automation Audit for {business_url} | {BRAND_NAME}"


class AuditNotifier:
    """Renders the audit email and hands it to the email client."""

    def __init__(self, email_client, settings: Settings):
        """
        Args:
            email_client: Object with send(...) -> email id, raising
                EmailAPIError on failure
            settings: Sender identity, reply-to and scheduling link
        """
        self.email_client = email_client
        self.settings = settings

    def render(
        self,
        report: str,
        customer_name: str,
        business_url: str,
        order_id: str,
        now: Optional[datetime] = None
    ) -> Tuple[str, str]:
        """
        Render the HTML and plain-text bodies.

        Buyer-supplied values are HTML-escaped in the HTML body only. The
        report is embedded as generated.

        Returns:
            Tuple of (html, text)
        """
        now = now or datetime.now(timezone.utc)

        html = template_service.format_template(
            template_service.load_template(HTML_TEMPLATE),
            brand_name=BRAND_NAME,
            customer_name=html_lib.escape(customer_name),
            business_url=html_lib.escape(business_url),
            report_html=report_to_html(report),
            scheduling_url=self.settings.scheduling_url,
            order_id=html_lib.escape(order_id),
            generated_date=f"{now:%A, %B} {now.day}, {now.year}",
            year=now.year,
            support_address=self.settings.reply_to,
        )
        text = template_service.format_template(
            template_service.load_template(TEXT_TEMPLATE),
            business_url=business_url,
            report=report,
            scheduling_url=self.settings.scheduling_url,
            order_id=order_id,
        )
        return html, text

    def send_audit(
        self,
        report: str,
        customer_email: str,
        customer_name: str,
        business_url: str,
        order_id: str
    ) -> DeliveryOutcome:
        """
        Send the audit email to the customer.

        Returns:
            DeliveryOutcome with email_id on success, error message on failure
        """
        logger.info(f"Sending audit to: {customer_email}")

        try:
            html, text = self.render(report, customer_name, business_url, order_id)
            email_id = self.email_client.send(
                sender=self.settings.from_address,
                reply_to=self.settings.reply_to,
                to=customer_email,
                subject=build_subject(business_url),
                html=html,
                text=text,
                tags={TAG_NAME: order_id},
            )
        except EmailAPIError as e:
            logger.error(f"Email API error: {e.message}")
            return DeliveryOutcome(success=False, error=e.message)
        except Exception as e:
            logger.error(f"Critical email failure: {e}", exc_info=True)
            return DeliveryOutcome(success=False, error=str(e))

        logger.info(f"✓ Email delivered! Email ID: {email_id}")
        return DeliveryOutcome(success=True, email_id=email_id)
