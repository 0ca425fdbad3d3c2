"""Size/offset bounds enforced before any query is compiled."""

from __future__ import annotations

from palomar.exceptions import InvalidParams

MAX_OFFSET = 10000
MAX_SIZE = 250


def check_params(offset: int, size: int) -> None:
    """Raise `InvalidParams` unless 0 <= offset, 0 <= size <= 250 and offset + size <= 10000."""
    if (
        offset < 0
        or size < 0
        or size > MAX_SIZE
        or offset > MAX_OFFSET
        or offset + size > MAX_OFFSET
    ):
        raise InvalidParams(f"disallowed size/offset parameters: offset={offset} size={size}")
