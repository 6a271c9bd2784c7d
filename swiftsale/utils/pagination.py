"""Pagination helpers shared by listing endpoints."""
import math


def paginate(items, page=1, page_size=20):
    """
    Slice a fully filtered/sorted list into one page.

    Returns:
        tuple: (page_items, meta) where meta has current_page, last_page,
        per_page and total. last_page is at least 1.
    """
    page = max(1, int(page or 1))
    page_size = max(1, int(page_size or 20))
    total = len(items)
    offset = (page - 1) * page_size
    meta = {
        'current_page': page,
        'last_page': max(1, math.ceil(total / page_size)),
        'per_page': page_size,
        'total': total,
    }
    return items[offset:offset + page_size], meta
