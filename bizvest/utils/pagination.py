"""Page/limit pagination helpers for list endpoints.

Query parameters arrive as raw strings and are never rejected: anything
unusable falls back to the defaults.
"""

import math
from typing import Optional, Tuple

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
# Keeps (page - 1) * limit inside a signed 64-bit OFFSET
MAX_PAGE = (2**63 - 1) // MAX_LIMIT


def _to_int(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def resolve_page_params(page: Optional[str], limit: Optional[str]) -> Tuple[int, int]:
    """Resolve (page, limit).

    page: invalid, below 1 or above MAX_PAGE becomes 1.
    limit: invalid or outside [1, MAX_LIMIT] becomes DEFAULT_LIMIT.
    """
    resolved_page = _to_int(page)
    if resolved_page is None or resolved_page < 1 or resolved_page > MAX_PAGE:
        resolved_page = DEFAULT_PAGE

    resolved_limit = _to_int(limit)
    if resolved_limit is None or resolved_limit < 1 or resolved_limit > MAX_LIMIT:
        resolved_limit = DEFAULT_LIMIT

    return resolved_page, resolved_limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
