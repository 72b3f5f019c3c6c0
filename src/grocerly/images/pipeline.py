"""Image validation, compression and upload to ImgBB."""
import asyncio
import base64
import io
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

import httpx
from PIL import Image, ImageOps
from pydantic import ValidationError

from grocerly.config.settings import ImageHostSettings
from grocerly.domain.types import ImageHostResponse, ProgressStage
from grocerly.errors import ConfigError, DecodeError, InvalidType, TooLarge, UploadError
from grocerly.utils.logger import get_logger


ProgressCallback = Callable[[ProgressStage], None]


@dataclass(frozen=True)
class ImageFile:
    """A picked file: its declared media type and raw bytes."""
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def from_upload(cls, uploaded: Any) -> 'ImageFile':
        """Wrap a Streamlit ``UploadedFile`` (or anything with name/type/getvalue)."""
        return cls(
            filename=uploaded.name,
            content_type=uploaded.type or "",
            data=uploaded.getvalue(),
        )


def fit_within(width: int, height: int, max_dimension: int) -> Tuple[int, int]:
    """
    Scale dimensions so neither side exceeds ``max_dimension``.

    The larger side is clamped and the other scaled to keep the aspect ratio.
    Images already small enough keep their size.
    """
    if width > height:
        if width > max_dimension:
            height = height * max_dimension / width
            width = max_dimension
    elif height > max_dimension:
        width = width * max_dimension / height
        height = max_dimension
    return max(1, round(width)), max(1, round(height))


class ImagePipeline:
    """Validates, compresses and uploads item images."""

    def __init__(
        self,
        settings: ImageHostSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.settings = settings
        self._transport = transport
        self.logger = get_logger(self.__class__.__name__)

    def validate(self, file: ImageFile) -> None:
        """
        Check the declared type and raw size.

        Raises:
            InvalidType: If the media type is not an image type
            TooLarge: If the file exceeds the configured size limit
        """
        if not file.content_type.lower().startswith("image/"):
            raise InvalidType("Please select a valid image file")
        if file.size > self.settings.MAX_UPLOAD_BYTES:
            limit_mb = self.settings.MAX_UPLOAD_BYTES // (1024 * 1024)
            raise TooLarge(
                f"Image is too large (max {limit_mb}MB)",
                metadata={"size": file.size},
            )

    async def compress(self, file: ImageFile) -> bytes:
        """Resize and re-encode as JPEG off the event loop."""
        return await asyncio.to_thread(self._compress, file.data)

    def _compress(self, data: bytes) -> bytes:
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                img = ImageOps.exif_transpose(img)
                if img.mode != "RGB":
                    img = img.convert("RGB")
                size = fit_within(img.width, img.height, self.settings.MAX_DIMENSION)
                if size != img.size:
                    img = img.resize(size, Image.Resampling.LANCZOS)
                out = io.BytesIO()
                img.save(
                    out,
                    format="JPEG",
                    quality=round(self.settings.JPEG_QUALITY * 100),
                )
                return out.getvalue()
        except (OSError, Image.DecompressionBombError) as e:
            raise DecodeError("Failed to load image") from e

    async def upload(self, blob: bytes) -> str:
        """
        Upload a compressed image and return its public URL.

        Raises:
            ConfigError: If no API key is configured
            UploadError: If the host rejects the upload or is unreachable
        """
        if not self.settings.is_configured:
            raise ConfigError(
                "ImgBB API key not configured. Please check your .env file.",
                suggestions=["Set GROCERLY_IMGBB_API_KEY", "Paste an image URL instead"],
            )

        payload = base64.b64encode(blob).decode("ascii")
        try:
            async with httpx.AsyncClient(
                timeout=self.settings.TIMEOUT,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.settings.UPLOAD_URL,
                    params={"key": self.settings.API_KEY},
                    data={"image": payload},
                )
        except httpx.HTTPError as e:
            self.logger.error("Image upload transport failure", error=str(e))
            raise UploadError(f"Failed to upload image: {e}") from e

        body = self._parse(response)
        if not response.is_success or body is None or body.data is None:
            message = "Upload failed"
            if body is not None and body.error is not None and body.error.message:
                message = body.error.message
            self.logger.error(
                "Image upload rejected",
                status=response.status_code,
                reason=message,
            )
            raise UploadError(
                f"Failed to upload image: {message}",
                metadata={"status_code": response.status_code},
            )

        return body.data.url

    @staticmethod
    def _parse(response: httpx.Response) -> Optional[ImageHostResponse]:
        try:
            return ImageHostResponse.model_validate(response.json())
        except (ValueError, ValidationError):
            return None

    async def process(
        self,
        file: ImageFile,
        on_progress: Optional[ProgressCallback] = None
    ) -> str:
        """
        Validate, compress and upload a file, reporting each stage in order.

        Args:
            file: The picked image
            on_progress: Called with each ProgressStage as it begins

        Returns:
            Public URL of the uploaded image
        """
        def report(stage: ProgressStage) -> None:
            if on_progress:
                on_progress(stage)

        report(ProgressStage.VALIDATING)
        self.validate(file)

        report(ProgressStage.COMPRESSING)
        compressed = await self.compress(file)
        self.logger.info(
            "Image compressed",
            filename=file.filename,
            original_kb=round(file.size / 1024),
            compressed_kb=round(len(compressed) / 1024),
        )

        report(ProgressStage.UPLOADING)
        url = await self.upload(compressed)

        report(ProgressStage.COMPLETE)
        self.logger.info("Image uploaded", filename=file.filename, url=url)
        return url
