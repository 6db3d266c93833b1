"""
Money arithmetic with cent precision.

All monetary values are single-currency ``Decimal`` amounts with two decimal
places. Rounding is half-up on the cent, which is the same as scaling to
cents, rounding to the nearest integer and scaling back.

Example:
    Splitting shipping by weight::

        >>> distribute_proportionally(Decimal('100.00'), [1, 2, 3])
        [Decimal('16.67'), Decimal('33.33'), Decimal('50.00')]
"""

import logging
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Hashable, Iterable, List, Sequence, Tuple

from .exceptions import InvalidAmountError

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0.00')


def _as_decimal(value, label: str = 'amount') -> Decimal:
    """Convert int/float/str/Decimal to a finite Decimal."""
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() first so floats keep their shortest repr, not binary noise
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmountError(f"Invalid {label}: {value!r}")

    if not result.is_finite():
        raise InvalidAmountError(f"Invalid {label}: {value!r}")
    return result


def require_non_negative(value, label: str) -> Decimal:
    result = _as_decimal(value, label)
    if result < 0:
        raise InvalidAmountError(f"{label.capitalize()} cannot be negative: {value}")
    return result


def to_money(value) -> Decimal:
    """
    Round a value to the cent using half-up rounding.

    Args:
        value: int, float, str or Decimal amount.

    Returns:
        Decimal quantized to two decimal places.

    Raises:
        InvalidAmountError: If the value is not a finite number.

    Example:
        >>> to_money(10.125)
        Decimal('10.13')
        >>> to_money(Decimal('10.124'))
        Decimal('10.12')
    """
    return _as_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def money_sum(values: Iterable) -> Decimal:
    """Sum monetary values and round the result to the cent."""
    return to_money(sum((_as_decimal(v) for v in values), Decimal('0')))


def _undistributed(weighted: Sequence[Tuple[Hashable, Decimal]], total: Decimal):
    """
    All weights are zero: nothing is chargeable, so nothing is distributed.

    The shipping cost is dropped rather than split evenly. The integrity
    validator reports such campaigns as failing the shipping check.
    """
    logger.warning(
        "Total weight is zero for %d allocation(s); %s left undistributed",
        len(weighted), total,
    )
    return [(key, ZERO) for key, _ in weighted]


def allocate_by_weight(total, weighted) -> List[Tuple[Hashable, Decimal]]:
    """
    Allocate a total across keyed weights so the shares sum to the total exactly.

    Each entry except the last receives ``round(total * weight / sum_weights)``.
    The last entry receives ``round(total - distributed_sum)`` and so absorbs
    every rounding residual. Iteration follows the input order, so the caller
    decides which entry absorbs the remainder.

    Args:
        total: Non-negative amount to allocate.
        weighted: Ordered sequence of ``(key, weight)`` pairs, weights
            non-negative. Keys travel with their shares so results never
            depend on positional alignment between two lists.

    Returns:
        list[tuple]: ``(key, share)`` pairs in input order. The shares sum to
        ``to_money(total)`` unless every weight is zero, in which case all
        shares are zero.

    Raises:
        InvalidAmountError: If the total or any weight is negative.

    Example:
        >>> allocate_by_weight(Decimal('10.00'), [('a', 1), ('b', 1), ('c', 1)])
        [('a', Decimal('3.33')), ('b', Decimal('3.33')), ('c', Decimal('3.34'))]

    Note:
        The last share may differ from its ideal proportional value by a few
        cents, and can go negative when it carries zero weight while earlier
        shares rounded up.
    """
    total = to_money(require_non_negative(total, 'total'))
    pairs = [(key, require_non_negative(weight, 'weight')) for key, weight in weighted]

    if not pairs:
        return []

    total_weight = sum((weight for _, weight in pairs), Decimal('0'))
    if total_weight == 0:
        return _undistributed(pairs, total)

    allocations = []
    distributed_sum = ZERO
    for key, weight in pairs[:-1]:
        share = to_money(total * weight / total_weight)
        distributed_sum += share
        allocations.append((key, share))

    last_key, _ = pairs[-1]
    allocations.append((last_key, to_money(total - distributed_sum)))
    return allocations


def distribute_proportionally(total, weights: Sequence) -> List[Decimal]:
    """
    Distribute a total proportionally across a list of weights.

    Positional form of :func:`allocate_by_weight`: the result has the same
    length and order as ``weights``.

    Example:
        >>> distribute_proportionally(Decimal('37.50'), [10])
        [Decimal('37.50')]
        >>> distribute_proportionally(Decimal('100.00'), [0, 0, 0])
        [Decimal('0.00'), Decimal('0.00'), Decimal('0.00')]
    """
    allocations = allocate_by_weight(total, list(enumerate(weights)))
    return [share for _, share in allocations]


def amounts_match(a, b, tolerance=CENT) -> bool:
    """Return True when two amounts differ by strictly less than the tolerance."""
    return abs(_as_decimal(a) - _as_decimal(b)) < _as_decimal(tolerance, 'tolerance')
