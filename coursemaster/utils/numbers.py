"""Numeric helpers shared by the progress and grading engines."""

from decimal import ROUND_HALF_UP, Decimal


def percentage(part: int, whole: int) -> int:
    """Integer percentage of ``part`` over ``whole``, rounded half up.

    Returns 0 when ``whole`` is not positive.

    Examples:
        >>> percentage(2, 9)
        22
        >>> percentage(2, 3)
        67
        >>> percentage(1, 8)
        13
        >>> percentage(5, 0)
        0
    """
    if whole <= 0:
        return 0
    ratio = Decimal(100 * part) / Decimal(whole)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))
