"""UI components for Grocerly."""
from .feedback import render_feedback
from .search_bar import render_search_bar, render_result_count
from .add_item import render_add_item
from .grocery_card import render_grocery_card

__all__ = [
    'render_feedback',
    'render_search_bar',
    'render_result_count',
    'render_add_item',
    'render_grocery_card'
]
