"""
Identifier helpers for runs, steps and notifications.
"""

import random
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_id(prefix: str) -> str:
    """
    Build a best-effort unique id: ``{prefix}-{time component}-{random component}``.

    Uniqueness relies on millisecond time plus six random base36 characters;
    ids are labels, never security tokens.
    """
    time_part = to_base36(int(time.time() * 1000))
    random_part = "".join(random.choices(_BASE36, k=6))
    return f"{prefix}-{time_part}-{random_part}"
