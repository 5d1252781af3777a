"""
Domain layer for sale audit business logic.

This layer contains:
- Data models (type-safe structures)
- Report generation with fallback (never fails)
- Audit email delivery (failures returned as data)
- The sale processing pipeline
"""
