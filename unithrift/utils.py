# unithrift/utils.py
import math
from decimal import Decimal, ROUND_HALF_UP

# largest quantity or unit price accepted from a client
MAX_AMOUNT = 10 ** 9


def sanitize_string(value, max_len=80):
    """Trim and truncate free text. Falsy input gives an empty string."""
    if not value:
        return ''
    s = str(value).strip()
    if len(s) > max_len:
        s = s[:max_len]
    return s


def round_half_up(number):
    # round() is banker's rounding, prices need 0.5 -> 1
    return int(Decimal(str(number)).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def to_number(value):
    """Coerce a JSON scalar to a finite float, or None when it isn't one.

    Surrounding whitespace and exponents are accepted as JavaScript's
    Number() does; Python-only digit separators like "1_000" are not.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and '_' in value:
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(n):
        return None
    return n
