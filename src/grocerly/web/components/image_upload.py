"""Image upload helper shared by the add form and item cards."""
from typing import Any, Optional
import streamlit as st

from grocerly.domain.types import ProgressStage
from grocerly.errors import GrocerlyError
from grocerly.images.pipeline import ImageFile, ImagePipeline
from .feedback import render_feedback


async def upload_with_progress(
    pipeline: ImagePipeline,
    uploaded: Any
) -> Optional[str]:
    """
    Run an uploaded file through the pipeline, showing each stage.

    Args:
        pipeline: Image pipeline
        uploaded: Streamlit UploadedFile

    Returns:
        The hosted image URL, or None if the upload failed (already reported)
    """
    status = st.empty()

    def show(stage: ProgressStage) -> None:
        status.info(stage.label)

    try:
        url = await pipeline.process(ImageFile.from_upload(uploaded), on_progress=show)
    except GrocerlyError as e:
        status.empty()
        render_feedback(
            f"Failed to upload image: {e.message}",
            type_="error",
            suggestions=e.suggestions
        )
        return None

    status.empty()
    return url
