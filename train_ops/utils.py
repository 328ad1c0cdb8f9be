from decimal import Decimal, ROUND_HALF_UP


def round_half_up(numerator, denominator=1) -> int:
    """
    Divide and round to the nearest integer, halves away from zero.
    Exact for integer inputs, so 62.5 always becomes 63.
    """
    value = Decimal(numerator) / Decimal(denominator)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int) -> int:
    if whole == 0:
        return 0
    return round_half_up(part * 100, whole)


def format_delay_message(delay_minutes: int) -> str:
    """Format delay message for display"""
    if delay_minutes <= 0:
        return "on time"
    elif delay_minutes <= 60:
        return f"delayed by {delay_minutes} minutes"
    else:
        hours = delay_minutes // 60
        minutes = delay_minutes % 60
        return f"delayed by {hours}h {minutes}m"
