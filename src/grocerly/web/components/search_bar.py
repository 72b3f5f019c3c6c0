"""Search bar component."""
import streamlit as st

from grocerly.services.search import result_count_label


def render_search_bar(min_length: int) -> str:
    """
    Render the search input.

    Args:
        min_length: Shortest query that filters the list

    Returns:
        The current query
    """
    return st.text_input(
        "Search",
        placeholder=f"🔍 Search groceries... (min {min_length} letters)",
        key="search_query",
        label_visibility="collapsed"
    )


def render_result_count(query: str, count: int, min_length: int) -> None:
    """Show how many items match an active search."""
    if len(query) >= min_length:
        st.caption(result_count_label(count))
