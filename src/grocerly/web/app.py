"""Main Streamlit application for Grocerly."""
import asyncio
import uuid
import streamlit as st

from grocerly.config.settings import AppConfig, load_config
from grocerly.errors import ConfigError
from grocerly.images.pipeline import ImagePipeline
from grocerly.services.grocery_service import GroceryService
from grocerly.utils.logger import configure_logging, get_logger
from grocerly.web.components import (
    render_feedback,
    render_search_bar,
    render_result_count,
    render_add_item,
    render_grocery_card
)

# Initialize logger
logger = get_logger(__name__)


def init_session_state(config: AppConfig) -> None:
    """Initialize session state variables."""
    if 'session_id' not in st.session_state:
        configure_logging(config.app)
        st.session_state.session_id = str(uuid.uuid4())
        logger.info("New session started", session_id=st.session_state.session_id)

    if 'grocery_service' not in st.session_state:
        st.session_state.grocery_service = GroceryService.from_config(config)

    if 'image_pipeline' not in st.session_state:
        st.session_state.image_pipeline = ImagePipeline(config.image_host)

    if 'show_add_form' not in st.session_state:
        st.session_state.show_add_form = False


async def render_load_error(service: GroceryService, error: str) -> None:
    """Full-page load error with a retry action."""
    st.header("Error")
    render_feedback(error, type_="error")
    if st.button("Retry", type="primary"):
        with st.spinner("Loading groceries..."):
            result = await service.reload()
        if not result.success:
            logger.warning("Retry failed", error=result.error)
        st.rerun()


def render_warnings(service: GroceryService) -> None:
    """Show pending sync warnings with a dismiss button."""
    if not service.warnings:
        return
    for warning in service.warnings:
        st.warning(warning)
    if st.button("Dismiss", key="dismiss_warnings"):
        service.dismiss_warnings()
        st.rerun()


def render_header(service: GroceryService) -> None:
    """Title row with add toggle and refresh."""
    title_col, add_col, refresh_col = st.columns([4, 1, 1])
    with title_col:
        st.title("🛒 Groceries List")
        saved_at = service.cache.last_saved_at()
        if saved_at:
            st.caption(f"Cached {saved_at:%Y-%m-%d %H:%M} UTC")
    with add_col:
        label = "Cancel" if st.session_state.show_add_form else "+ Add New Item"
        if st.button(label, key="toggle_add_form"):
            st.session_state.show_add_form = not st.session_state.show_add_form
            st.rerun()
    with refresh_col:
        if st.button("🔄 Refresh", key="refresh"):
            st.session_state.refresh_requested = True


async def main() -> None:
    """Main application entry point."""
    st.set_page_config(
        layout="centered",
        page_title="Grocerly",
        page_icon="🛒"
    )

    try:
        config = load_config()
    except ConfigError as e:
        logger.error("Configuration error", error=e.message)
        render_feedback(e.message, type_="error", suggestions=e.suggestions)
        return

    try:
        init_session_state(config)
        service: GroceryService = st.session_state.grocery_service
        pipeline: ImagePipeline = st.session_state.image_pipeline

        if not service.loaded:
            with st.spinner("Loading groceries..."):
                result = await service.load()
            if not result.success:
                await render_load_error(service, result.error)
                return
            logger.info(
                "Groceries loaded",
                session_id=st.session_state.session_id,
                source=result.metadata.get("source"),
                count=len(result.data or [])
            )

        render_header(service)
        if st.session_state.pop('refresh_requested', False):
            with st.spinner("Refreshing..."):
                result = await service.reload()
            if not result.success:
                render_feedback(result.error, type_="error", suggestions=result.suggestions)

        render_warnings(service)

        min_length = service.min_query_length
        query = render_search_bar(min_length)
        visible = service.search(query)
        render_result_count(query, len(visible), min_length)

        if st.session_state.show_add_form:
            await render_add_item(service, pipeline)

        if len(query) >= min_length and not visible:
            st.info(f'No groceries found matching "{query}"')
        elif not visible:
            st.info("No groceries yet. Add your first item!")
        else:
            for item in visible:
                await render_grocery_card(item, service, pipeline, config.app.CURRENCY)

    except Exception:
        logger.exception(
            "Unhandled error in main application",
            session_id=st.session_state.get('session_id', 'error')
        )
        st.error("Something went wrong. Please try again later.")


if __name__ == "__main__":
    asyncio.run(main())
