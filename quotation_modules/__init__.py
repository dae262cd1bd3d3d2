"""
Quotation Modules.

Thin orchestration layers over the quotation kernel and engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Conversion mappings
- A service facade

Modules:
- Quotation: client quotations from RFQ to outcome, and conversion of won
  quotations into job order drafts

Actual processing logic lives in the kernel and engines.
"""

from quotation_modules import quotation

__all__ = [
    "quotation",
]
