"""
Typed Exception Hierarchy for the Quotation Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the quotation engine render errors to users ("engineering review
must be completed first") and map them to API responses. Parsing exception
messages for that is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example - WRONG way to handle errors:
    try:
        service.submit(quotation)
    except Exception as e:
        if "engineering" in str(e):
            show_engineering_banner()

Example - RIGHT way:
    try:
        service.submit(quotation)
    except SubmissionBlockedError as e:
        if e.reason_code == "ENGINEERING_INCOMPLETE":
            show_engineering_banner(e.engineering_status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    QuotationKernelError (base)
    |
    +-- ValidationError
    |   +-- UnknownValueError
    |   +-- InvalidStateCombinationError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |   +-- TerminalStateError
    |   +-- SubmissionBlockedError
    |   +-- EngineeringWaiverError
    |
    +-- NumberingError
    |   +-- InvalidSequenceError
    |   +-- SequenceOverflowError
    |   +-- InvalidQuotationNumberError
    |
    +-- ConversionError
    |   +-- InvalidShipmentCountError
    |   +-- QuotationNotWonError
    |   +-- QuotationClosedError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                        | When Raised
------------|-----------------------------|-------------------------------------------
Validation  | UNKNOWN_VALUE               | String outside a closed enumeration
            | INVALID_STATE_COMBINATION   | Flat status/engineering fields disagree
------------|-----------------------------|-------------------------------------------
Workflow    | INVALID_TRANSITION          | Target not in the legal-transition table
            | TERMINAL_STATE              | Any move out of won/lost/cancelled
            | SUBMISSION_BLOCKED          | Graph-legal submit blocked by the gate
            | ENGINEERING_WAIVER_REFUSED  | Waiver of completed review / empty reason
------------|-----------------------------|-------------------------------------------
Numbering   | INVALID_SEQUENCE            | Negative sequence count
            | SEQUENCE_OVERFLOW           | Sequence exceeds padded width (FAIL policy)
            | INVALID_QUOTATION_NUMBER    | Text is not PREFIX-YYYY-NNNN
------------|-----------------------------|-------------------------------------------
Conversion  | INVALID_SHIPMENT_COUNT      | Split requested with N <= 0
            | QUOTATION_NOT_WON           | Conversion of a quotation that is not won
            | QUOTATION_CLOSED            | Item edit on a terminal quotation
------------|-----------------------------|-------------------------------------------
Config      | CONFIGURATION_ERROR         | Invalid configuration set

Arithmetic edge cases (zero revenue, zero shipments for pursuit cost, zero
budget) are NOT errors. They are defined policy outcomes and never raise.
"""

from __future__ import annotations

from typing import Any


class QuotationKernelError(Exception):
    """
    Base exception for all quotation kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "QUOTATION_KERNEL_ERROR"


# Validation exceptions


class ValidationError(QuotationKernelError):
    """Base exception for boundary validation failures."""

    code: str = "VALIDATION_ERROR"


class UnknownValueError(ValidationError):
    """A raw value is not a member of a closed enumeration."""

    code: str = "UNKNOWN_VALUE"

    def __init__(self, field: str, value: Any, allowed: tuple[str, ...]):
        self.field = field
        self.value = value
        self.allowed = allowed
        super().__init__(
            f"Unknown {field} {value!r}; expected one of: {', '.join(allowed)}"
        )


class InvalidStateCombinationError(ValidationError):
    """Workflow status and engineering fields describe an impossible state."""

    code: str = "INVALID_STATE_COMBINATION"

    def __init__(
        self,
        status: str,
        requires_engineering: bool,
        engineering_status: str,
        reason: str,
    ):
        self.status = status
        self.requires_engineering = requires_engineering
        self.engineering_status = engineering_status
        self.reason = reason
        super().__init__(
            f"Invalid state for status={status}, "
            f"requires_engineering={requires_engineering}, "
            f"engineering_status={engineering_status}: {reason}"
        )


# Workflow exceptions


class WorkflowError(QuotationKernelError):
    """Base exception for workflow errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """Requested status change is not in the legal-transition table."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        workflow: str,
        from_state: str,
        to_state: str,
        message: str | None = None,
    ):
        self.workflow = workflow
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            message
            or f"Transition {from_state} -> {to_state} is not allowed "
            f"in workflow '{workflow}'"
        )


class TerminalStateError(InvalidTransitionError):
    """Transition requested out of a terminal state."""

    code: str = "TERMINAL_STATE"

    def __init__(self, workflow: str, from_state: str, to_state: str):
        super().__init__(
            workflow,
            from_state,
            to_state,
            f"State '{from_state}' is terminal in workflow '{workflow}'; "
            f"cannot move to {to_state}",
        )


class SubmissionBlockedError(WorkflowError):
    """
    Submission is graph-legal but a business precondition blocks it.

    ``reason_code`` distinguishes NOT_READY from ENGINEERING_INCOMPLETE so
    callers can render an actionable message.
    """

    code: str = "SUBMISSION_BLOCKED"

    def __init__(
        self,
        reason_code: str,
        reason: str,
        status: str,
        engineering_status: str | None = None,
    ):
        self.reason_code = reason_code
        self.reason = reason
        self.status = status
        self.engineering_status = engineering_status
        super().__init__(reason)


class EngineeringWaiverError(WorkflowError):
    """Engineering review cannot be waived."""

    code: str = "ENGINEERING_WAIVER_REFUSED"

    def __init__(self, quotation_id: str, reason: str):
        self.quotation_id = quotation_id
        self.reason = reason
        super().__init__(f"Cannot waive engineering for {quotation_id}: {reason}")


# Numbering exceptions


class NumberingError(QuotationKernelError):
    """Base exception for quotation numbering errors."""

    code: str = "NUMBERING_ERROR"


class InvalidSequenceError(NumberingError):
    """Sequence count is negative or not an integer."""

    code: str = "INVALID_SEQUENCE"

    def __init__(self, existing_count: Any):
        self.existing_count = existing_count
        super().__init__(
            f"Sequence count must be a non-negative integer, got {existing_count!r}"
        )


class SequenceOverflowError(NumberingError):
    """Next sequence number does not fit the padded width."""

    code: str = "SEQUENCE_OVERFLOW"

    def __init__(self, year: int, sequence: int, width: int):
        self.year = year
        self.sequence = sequence
        self.width = width
        super().__init__(
            f"Sequence {sequence} for year {year} exceeds {width} digits"
        )


class InvalidQuotationNumberError(NumberingError):
    """Text does not follow the PREFIX-YYYY-NNNN format."""

    code: str = "INVALID_QUOTATION_NUMBER"

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Invalid quotation number: {text!r}")


# Conversion exceptions


class ConversionError(QuotationKernelError):
    """Base exception for quotation-to-PJO conversion errors."""

    code: str = "CONVERSION_ERROR"


class InvalidShipmentCountError(ConversionError):
    """Shipment split requested with a non-positive or non-integer count."""

    code: str = "INVALID_SHIPMENT_COUNT"

    def __init__(self, shipment_count: Any):
        self.shipment_count = shipment_count
        super().__init__(
            f"Shipment count must be a positive integer, got {shipment_count!r}"
        )


class QuotationNotWonError(ConversionError):
    """Only won quotations can be converted to PJOs."""

    code: str = "QUOTATION_NOT_WON"

    def __init__(self, quotation_id: str, status: str):
        self.quotation_id = quotation_id
        self.status = status
        super().__init__(
            f"Quotation {quotation_id} must be won to convert, status is {status}"
        )


class QuotationClosedError(ConversionError):
    """Item edits are refused once a quotation reaches a terminal state."""

    code: str = "QUOTATION_CLOSED"

    def __init__(self, quotation_id: str, status: str):
        self.quotation_id = quotation_id
        self.status = status
        super().__init__(
            f"Quotation {quotation_id} is closed ({status}); items are immutable"
        )


# Configuration exceptions


class ConfigurationError(QuotationKernelError):
    """Configuration set failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, source: str, errors: list[str]):
        self.source = source
        self.errors = errors
        super().__init__(
            f"Invalid configuration {source}: " + "; ".join(errors)
        )
