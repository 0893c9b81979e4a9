from __future__ import annotations

import secrets
import string
from datetime import datetime

from .timecalc import utcnow

_ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 9


def generate_entry_id(now: datetime | None = None) -> str:
    """Return ``entry_<epoch-ms>_<9 base36 chars>``, unique enough to key CRUD calls."""

    moment = now or utcnow()
    millis = int(moment.timestamp() * 1000)
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"entry_{millis}_{suffix}"
