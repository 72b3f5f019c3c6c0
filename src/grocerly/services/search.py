"""Search over the in-memory grocery list."""
from typing import List, Sequence

from grocerly.domain.types import GroceryItem


MIN_QUERY_LENGTH = 2


def filter_and_sort(
    items: Sequence[GroceryItem],
    query: str,
    min_length: int = MIN_QUERY_LENGTH
) -> List[GroceryItem]:
    """
    Filter items by name and rank prefix matches first.

    Queries shorter than ``min_length`` return the list untouched. Otherwise
    names containing the query (case-insensitive) are kept; those starting
    with it come first, and each group is alphabetical by lowercased name.
    """
    if len(query) < min_length:
        return list(items)

    needle = query.lower()
    matches = [item for item in items if needle in item.name.lower()]

    def rank(item: GroceryItem):
        name = item.name.lower()
        return (not name.startswith(needle), name)

    return sorted(matches, key=rank)


def result_count_label(count: int) -> str:
    """Human-readable result count for an active search."""
    return f"{count} result{'' if count == 1 else 's'}"
