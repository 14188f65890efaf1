"""Score value validation applied before a value is written."""

from decimal import Decimal, InvalidOperation
from typing import Any

from triviaboard.ranking.exceptions import InvalidScoreError


def validate_points(
    value: Any,
    max_points: int = 1000,
    max_decimal_places: int = 2,
) -> Decimal:
    """
    Parse and validate a score value.

    Args:
        value: Raw value from the operator (int, float, str or Decimal)
        max_points: Upper bound, inclusive
        max_decimal_places: Maximum number of fractional digits

    Returns:
        The value as a Decimal

    Raises:
        InvalidScoreError: If the value is not a usable score
    """
    if isinstance(value, bool) or value is None:
        raise InvalidScoreError("Score must be a valid number", value)

    try:
        # str() keeps floats like 0.1 from turning into binary noise
        points = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidScoreError("Score must be a valid number", value)

    if not points.is_finite():
        raise InvalidScoreError("Score must be a valid number", value)

    if points < 0:
        raise InvalidScoreError("Score cannot be negative", value)

    if points > max_points:
        raise InvalidScoreError(f"Score cannot exceed {max_points} points", value)

    exponent = points.normalize().as_tuple().exponent
    if isinstance(exponent, int) and exponent < -max_decimal_places:
        raise InvalidScoreError(
            f"Score cannot have more than {max_decimal_places} decimal places", value
        )

    return points
