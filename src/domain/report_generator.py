"""
Audit report generation.

ReportGenerator never fails: when the completion API is unavailable or
returns nothing usable, a deterministic fallback text addressed to the
business is returned instead, tagged as such for logging.
"""

import logging
import time

from .models import ReportResult
from services import templates as template_service
from integrations.completion_api import CompletionAPIError

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = 'audit_prompt.txt'
FALLBACK_TEMPLATE = 'fallback_report.txt'
LAST_RESORT_REPORT = (
    "Thank you for your order. Your automation audit for {business_url} "
    "is being finalized by our specialists and will be delivered within 24 hours."
)


class ReportGenerator:
    """Builds the audit prompt and asks the completion client for a report."""

    def __init__(self, completion_client):
        """
        Args:
            completion_client: Object with complete(prompt) -> str, raising
                CompletionAPIError on failure
        """
        self.completion_client = completion_client

    def build_prompt(self, business_url: str) -> str:
        template = template_service.load_template(PROMPT_TEMPLATE)
        return template_service.format_template(template, business_url=business_url)

    def fallback_report(self, business_url: str) -> str:
        try:
            template = template_service.load_template(FALLBACK_TEMPLATE)
            return template_service.format_template(template, business_url=business_url)
        except ValueError as e:
            logger.error(f"Fallback template unavailable: {e}")
            return LAST_RESORT_REPORT.format(business_url=business_url)

    def generate(self, business_url: str) -> ReportResult:
        """
        Generate the audit report for a business website.

        Args:
            business_url: Normalized website (or the "Not provided" sentinel)

        Returns:
            ReportResult: Live content, or fallback content with was_fallback=True
        """
        logger.info(f"Analyzing business website: {business_url}")
        start_time = time.time()

        try:
            content = self.completion_client.complete(self.build_prompt(business_url))
        except CompletionAPIError as e:
            logger.error(f"Audit generation failed: {e}")
            return self._fallback(business_url, str(e))
        except Exception as e:
            # Anything else (bad client, template formatting) still gets a report
            logger.error(f"Audit generation failed unexpectedly: {e}", exc_info=True)
            return self._fallback(business_url, str(e))

        logger.info(f"✓ AI audit generated successfully in {time.time() - start_time:.2f}s")
        return ReportResult(content=content)

    def _fallback(self, business_url: str, error: str) -> ReportResult:
        logger.warning(f"⚠ Using fallback audit text for {business_url}")
        return ReportResult(
            content=self.fallback_report(business_url),
            was_fallback=True,
            error=error
        )
