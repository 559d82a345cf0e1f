"""
Pagination helpers.

Bounds of a page over an in-memory ranked list.
"""


def page_bounds(
    length: int, page_index: int, page_size: int
) -> tuple[int, int, int]:
    """
    Compute page slice bounds over a list.

    A page past the end falls back to the last page. The end bound never
    exceeds ``max(length - 1, 0)``.

    Args:
        length: Number of entries
        page_index: 0-based page index, negative reads as 0
        page_size: Entries per page, must be positive

    Returns:
        (page_index, begin, end)
    """
    page_index = max(page_index, 0)
    last_page = max(length - 1, 0) // page_size
    if page_index > last_page:
        page_index = last_page

    begin = page_index * page_size
    end = begin + page_size
    if end >= length:
        end = max(length - 1, 0)
    if end < begin:
        end = begin
    return page_index, begin, end
