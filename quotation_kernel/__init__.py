"""
Quotation Kernel

Shared foundation for the quotation lifecycle engine:
- Typed, coded exceptions
- Structured JSON logging with request-scoped context
- Pure domain values (Decimal money helpers, clocks, workflow definitions)
"""

__version__ = "0.1.0"
