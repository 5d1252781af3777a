"""
Service functions for the sale webhook Lambda handler.

This package contains reusable functions for webhook intake and field
extraction, template loading, and API Gateway response building.
"""

__all__ = ['webhook', 'templates', 'responses']
