"""Services package for Grocerly."""
from .base_service import Result
from .grocery_service import GroceryService, MutationRecord, MutationState
from .search import filter_and_sort, result_count_label

__all__ = [
    'Result',
    'GroceryService',
    'MutationRecord',
    'MutationState',
    'filter_and_sort',
    'result_count_label',
]
