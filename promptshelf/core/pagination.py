"""
In-memory pagination for catalog listings.

Firestore cannot combine an equality filter on one field with an order_by on
another without a composite index, so listings fetch the narrowest single-field
query, filter the rest in Python and page the result here. The whole candidate
set is held in memory; CATALOG_MAX_SCAN bounds how large that can get.
"""
import math
from datetime import datetime

from .exceptions import ValidationFailed


def _timestamp(doc, field):
    value = doc.get(field)
    if isinstance(value, datetime):
        return value.timestamp()
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value).timestamp()
        except ValueError:
            pass
    # No timestamp yet (server timestamp still pending): treat as newest
    return math.inf


def sort_newest_first(items, field='created_at'):
    """Stable sort, newest first. Returns a new list."""
    return sorted(items, key=lambda doc: _timestamp(doc, field), reverse=True)


def paginate(items, page, page_size, sort_field='created_at'):
    if page_size < 1:
        raise ValidationFailed({'page_size': ['Page size must be at least 1.']})

    ordered = sort_newest_first(items, sort_field)
    total = len(ordered)
    total_pages = math.ceil(total / page_size)

    if page < 1 or page > total_pages:
        page_items = []
        has_more = False
    else:
        start = (page - 1) * page_size
        page_items = ordered[start:start + page_size]
        has_more = page < total_pages

    return {
        'items': page_items,
        'page': page,
        'page_size': page_size,
        'total': total,
        'total_pages': total_pages,
        'has_more': has_more,
    }
