from __future__ import annotations

from src.schemas import NormalizedItem, PageRecord


def page_count(total_items: int, items_per_page: int) -> int:
    """ceil(total / per_page); zero items -> zero pages."""
    if items_per_page < 1:
        raise ValueError(f"items_per_page must be >= 1, got {items_per_page}")
    return -(-total_items // items_per_page)


def paginate(items: list[NormalizedItem], *, items_per_page: int) -> list[PageRecord]:
    """
    Slice the sorted sequence into fixed-size pages.
    Pages are 1-based, contiguous and non-overlapping; concatenating
    their items reproduces the input exactly.
    """
    total_items = len(items)
    total_pages = page_count(total_items, items_per_page)

    pages: list[PageRecord] = []
    for number in range(1, total_pages + 1):
        start = (number - 1) * items_per_page
        pages.append(
            PageRecord(
                page=number,
                total_pages=total_pages,
                total_items=total_items,
                items_per_page=items_per_page,
                items=items[start:start + items_per_page],
                has_next=number < total_pages,
                has_prev=number > 1,
            )
        )

    return pages
