from __future__ import annotations
from typing import Any


def normalize(value: Any) -> str:
    """Canonical comparison form: ``None`` -> ``""``, else lower-cased and stripped."""
    if value is None:
        return ""
    return str(value).lower().strip()


def is_blank(value: Any) -> bool:
    return normalize(value) == ""
