"""
Values -- Decimal money helpers.

Responsibility:
    One place that turns caller input into ``Decimal`` and rounds it.  Every
    financial figure in the engine passes through ``money()`` on the way in
    and ``round_half_up()`` on the way out.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic: ``float`` is rejected, never coerced, because
      binary floats cannot represent most cent amounts exactly.
    - Rounding is ROUND_HALF_UP to ``MONEY_PLACES`` (2) decimal places.
    - Nothing here truncates to integers.

Failure modes:
    - TypeError for float or non-numeric input.
    - ValueError for strings that are not decimal literals, NaN or infinity.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

MONEY_PLACES = 2
ZERO = Decimal("0")
HUNDRED = Decimal("100")

_QUANTUM = Decimal(10) ** -MONEY_PLACES


def money(value: Decimal | int | str | None) -> Decimal:
    """
    Convert caller input to a finite Decimal.

    ``None`` is treated as zero, matching how nullable amount columns are
    summed.  ``bool`` is rejected even though it subclasses ``int``.

    Raises:
        TypeError: for float, bool, or any non-numeric type.
        ValueError: for unparsable strings, NaN or infinity.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(
            f"Monetary values must be Decimal, int or str, got {type(value).__name__}"
        )
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    else:
        raise TypeError(
            f"Monetary values must be Decimal, int or str, got {type(value).__name__}"
        )
    if not result.is_finite():
        raise ValueError(f"Amount must be finite, got {value!r}")
    return result


def round_half_up(value: Decimal, places: int = MONEY_PLACES) -> Decimal:
    """Round to ``places`` decimal places, halves away from zero."""
    quantum = _QUANTUM if places == MONEY_PLACES else Decimal(10) ** -places
    return value.quantize(quantum, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Decimal | int | str | None]) -> Decimal:
    """Sum amounts exactly; an empty iterable sums to zero."""
    return sum((money(v) for v in values), ZERO)
