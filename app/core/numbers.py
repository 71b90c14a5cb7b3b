from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, digits: int = 2) -> float:
    """Round to `digits` places with halves away from zero (2.675 -> 2.68)."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
