"""Add item component for adding new groceries."""
import streamlit as st

from grocerly.errors import InvalidItemError, SyncError
from grocerly.images.pipeline import ImagePipeline
from grocerly.services.grocery_service import GroceryService
from .feedback import render_feedback
from .image_upload import upload_with_progress


async def render_add_item(service: GroceryService, pipeline: ImagePipeline) -> None:
    """
    Render the add item form.

    Args:
        service: Grocery list service
        pipeline: Image pipeline for uploaded pictures
    """
    st.subheader("Add New Item")

    # Bumped after a successful add so the next form starts empty
    version = st.session_state.get("add_form_version", 0)

    with st.form(f"add_item_{version}", clear_on_submit=False):
        name = st.text_input("Name", placeholder="e.g., Tomatoes", key=f"add_item_name_{version}")
        price = st.text_input("Price", placeholder="e.g., 25.50", key=f"add_item_price_{version}")
        uploaded = st.file_uploader(
            "📷 Upload Image",
            type=["png", "jpg", "jpeg", "gif", "webp", "bmp"],
            key=f"add_item_image_{version}"
        )
        image_url = st.text_input(
            "Or paste image URL",
            key=f"add_item_image_url_{version}"
        )

        col1, col2 = st.columns(2)
        with col1:
            submit = st.form_submit_button("Add Item", type="primary")
        with col2:
            cancel = st.form_submit_button("Cancel")

    if cancel:
        st.session_state.show_add_form = False
        st.rerun()

    if not submit:
        return

    if not name.strip() or not price.strip():
        render_feedback("Please fill in at least the name and price", type_="error")
        return

    if uploaded is not None:
        hosted_url = await upload_with_progress(pipeline, uploaded)
        if hosted_url is None:
            return
        image_url = hosted_url

    try:
        await service.add_item(name, price, image_url)
    except InvalidItemError as e:
        render_feedback(e.message, type_="error", suggestions=e.suggestions)
        return
    except SyncError as e:
        # Fields stay filled for a retry
        render_feedback(e.message, type_="warning", suggestions=["Try adding the item again"])
        return

    st.session_state.add_form_version = version + 1
    st.session_state.show_add_form = False
    st.rerun()
