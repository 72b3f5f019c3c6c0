"""Grocery card component: show, edit and delete one item."""
from decimal import Decimal, InvalidOperation
import streamlit as st

from grocerly.domain.types import GroceryItem
from grocerly.errors import GrocerlyError, InvalidItemError
from grocerly.images.pipeline import ImagePipeline
from grocerly.services.grocery_service import GroceryService
from .feedback import render_feedback
from .image_upload import upload_with_progress


PLACEHOLDER_IMAGE = "https://via.placeholder.com/150?text=No+Image"


def format_price(price: str, currency: str) -> str:
    """Price with its currency label, two decimals when numeric."""
    try:
        amount = Decimal(price)
    except InvalidOperation:
        return f"{price} {currency}"
    if not amount.is_finite():
        return f"{price} {currency}"
    return f"{amount.quantize(Decimal('0.01'))} {currency}"


async def render_grocery_card(
    item: GroceryItem,
    service: GroceryService,
    pipeline: ImagePipeline,
    currency: str
) -> None:
    """
    Render one item with edit and delete actions.

    Args:
        item: The item to show
        service: Grocery list service
        pipeline: Image pipeline for replacing the picture
        currency: Currency label for the price
    """
    editing_key = f"editing_{item.id}"
    confirm_key = f"confirm_delete_{item.id}"

    with st.container(border=True):
        image_col, body_col = st.columns([1, 3])

        with image_col:
            st.image(item.image_url or PLACEHOLDER_IMAGE, width="stretch")

        with body_col:
            if st.session_state.get(editing_key):
                await _render_edit_form(item, service, pipeline, editing_key)
                return

            st.markdown(f"**{item.name}**")
            st.write(format_price(item.price, currency))

            edit_col, delete_col = st.columns(2)
            with edit_col:
                if st.button("✏️ Edit", key=f"edit_{item.id}"):
                    st.session_state[editing_key] = True
                    st.rerun()
            with delete_col:
                if st.button("🗑️ Delete", key=f"delete_{item.id}"):
                    st.session_state[confirm_key] = True

            if st.session_state.get(confirm_key):
                st.warning("Are you sure you want to delete this item?")
                yes_col, no_col = st.columns(2)
                with yes_col:
                    if st.button("Yes, delete", key=f"confirm_yes_{item.id}"):
                        st.session_state[confirm_key] = False
                        try:
                            await service.delete_item(item.id)
                        except GrocerlyError:
                            render_feedback("Failed to delete item. Please try again.", type_="error")
                            return
                        st.rerun()
                with no_col:
                    if st.button("Keep", key=f"confirm_no_{item.id}"):
                        st.session_state[confirm_key] = False
                        st.rerun()


async def _render_edit_form(
    item: GroceryItem,
    service: GroceryService,
    pipeline: ImagePipeline,
    editing_key: str
) -> None:
    with st.form(f"edit_{item.id}"):
        name = st.text_input("Name", value=item.name)
        price = st.text_input("Price", value=item.price)
        uploaded = st.file_uploader("📷 Change Image", key=f"edit_image_{item.id}")
        image_url = st.text_input("Image URL", value=item.image_url)

        save_col, cancel_col = st.columns(2)
        with save_col:
            save = st.form_submit_button("Save", type="primary")
        with cancel_col:
            cancel = st.form_submit_button("Cancel")

    if cancel:
        st.session_state[editing_key] = False
        st.rerun()

    if not save:
        return

    if uploaded is not None:
        hosted_url = await upload_with_progress(pipeline, uploaded)
        if hosted_url is None:
            return
        image_url = hosted_url

    try:
        await service.update_item(item.id, name, price, image_url)
    except InvalidItemError as e:
        render_feedback(e.message, type_="error", suggestions=e.suggestions)
        return
    except GrocerlyError:
        # Keep the form open so the user can retry
        render_feedback("Failed to update item. Please try again.", type_="error")
        return

    st.session_state[editing_key] = False
    st.rerun()
