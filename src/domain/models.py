"""
Data models for the sale audit domain.

These type-safe data structures define clear contracts between components.
Every instance lives for a single webhook invocation only.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SaleEvent:
    """
    Normalized sale notification extracted from the webhook body.

    Attributes:
        email: Purchaser email address (never empty)
        customer_name: Display name used in the email greeting
        order_id: Sale identifier, or a synthesized "ORD-<ms>" value
        product_name: Purchased product
        price: Major-unit price with exactly two decimals (e.g. "25.00")
        currency: ISO currency code
        business_url: Website to audit, scheme and "www." stripped
    """
    email: str
    customer_name: str
    order_id: str
    product_name: str
    price: str
    currency: str
    business_url: str


@dataclass(frozen=True)
class ExtractionResult:
    """
    Result of extracting a SaleEvent from raw webhook fields.

    Exactly one of event or missing_field is set. This explicit result type
    keeps the mandatory-field check out of exception-based control flow.
    """
    event: Optional[SaleEvent] = None
    missing_field: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.event is not None


@dataclass(frozen=True)
class ReportResult:
    """
    Generated audit report.

    Attributes:
        content: Report text (never empty)
        was_fallback: True when the canned fallback text was substituted
        error: Why live generation failed (fallback only)
    """
    content: str
    was_fallback: bool = False
    error: Optional[str] = None

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.was_fallback:
            return f"ReportResult(fallback=True, length={len(self.content)}, error={self.error})"
        return f"ReportResult(fallback=False, length={len(self.content)})"


@dataclass(frozen=True)
class DeliveryOutcome:
    """
    Result of handing the audit email to the email API.

    Failures are reported here as data; nothing downstream retries them.
    """
    success: bool
    email_id: Optional[str] = None
    error: Optional[str] = None

    def __repr__(self) -> str:
        if self.success:
            return f"DeliveryOutcome(success=True, email_id={self.email_id})"
        else:
            return f"DeliveryOutcome(success=False, error={self.error})"
