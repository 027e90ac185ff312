from __future__ import annotations

import random
import string
import time

SESSION_ID_PREFIX = "session"
EVALUATION_ID_PREFIX = "eval"

_ALPHABET = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_ALPHABET[rem])
    return "".join(reversed(digits))


def generate_id(prefix: str, now_ms: int | None = None, suffix_length: int = 6) -> str:
    """
    Shareable opaque id: ``<prefix>_<base36 millis>_<random base36>``.

    Collision-improbable at classroom scale, but not secret: anyone holding
    the id can read and rate the session.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(random.choices(_ALPHABET, k=suffix_length))
    return f"{prefix}_{to_base36(now_ms)}_{suffix}"


def new_session_id() -> str:
    return generate_id(SESSION_ID_PREFIX)


def new_evaluation_id() -> str:
    return generate_id(EVALUATION_ID_PREFIX)
