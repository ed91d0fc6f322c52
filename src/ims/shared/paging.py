"""Helpers for reading whole result sets through Protean DAOs."""

PAGE_SIZE = 500


def fetch_all(dao, order_by=None, **filters) -> list:
    """Return every record matching ``filters``, walking the store page by page."""
    records = []
    offset = 0
    while True:
        query = dao.query.filter(**filters)
        if order_by:
            query = query.order_by(order_by)
        page = query.offset(offset).limit(PAGE_SIZE).all().items
        records.extend(page)
        if len(page) < PAGE_SIZE:
            return records
        offset += PAGE_SIZE


def page_bounds(page: int, page_size: int) -> tuple[int, int]:
    """Offset and limit for a 1-based page."""
    return (page - 1) * page_size, page_size
