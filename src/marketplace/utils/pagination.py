"""Page slicing for read-side listings."""

import math

MAX_PAGE_SIZE = 50


def paginate(items: list, page: int | None = 1, limit: int | None = 10, max_limit: int = MAX_PAGE_SIZE):
    """Slice ``items`` to one page and describe where it sits.

    Page numbers start at 1; the page size is clamped to ``[1, max_limit]``.
    """
    page = max(1, page or 1)
    limit = min(max_limit, max(1, limit or 1))
    total = len(items)
    total_pages = math.ceil(total / limit) if total else 0
    start = (page - 1) * limit
    return items[start : start + limit], {
        "current_page": page,
        "total_pages": total_pages,
        "total_items": total,
        "items_per_page": limit,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
