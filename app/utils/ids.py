# app/utils/ids.py
from typing import Optional, Union

from app.core.errors import NotFoundError


def parse_id(value: Union[str, int, None], message: str = "Not found") -> int:
    """Path ids are positive integers; anything else cannot name a row."""
    try:
        parsed: Optional[int] = int(str(value).strip())
    except (TypeError, ValueError):
        parsed = None
    if parsed is None or parsed < 1:
        raise NotFoundError(message)
    return parsed
