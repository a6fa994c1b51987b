"""Normalization of uploaded images before storage."""

import io
from dataclasses import dataclass

from aws_lambda_powertools import Logger
from PIL import Image, ImageOps, UnidentifiedImageError

from portfolio.core.models.errors import ValidationError
from portfolio.core.utils.constants import (
    ERROR_CODE_UNSUPPORTED_MIME_TYPE,
    TRANSFORM_CONTENT_TYPE,
    TRANSFORM_JPEG_QUALITY,
    TRANSFORM_MAX_WIDTH,
)

logger = Logger(UTC=True)


@dataclass(frozen=True)
class TransformedImage:
    data: bytes
    content_type: str
    width: int
    height: int


def transform_image(
    data: bytes,
    *,
    max_width: int = TRANSFORM_MAX_WIDTH,
    quality: int = TRANSFORM_JPEG_QUALITY,
) -> TransformedImage:
    """Re-encode an upload as a JPEG no wider than `max_width`.

    EXIF orientation is applied and then discarded. Only the first frame of
    animated images is kept, and transparent areas are flattened onto white.

    Raises:
        ValidationError: If the bytes are not a readable raster image.
    """
    try:
        with Image.open(io.BytesIO(data)) as source:
            source.seek(0)
            image = ImageOps.exif_transpose(source)
            image = _flatten(image)

            if image.width > max_width:
                height = max(1, round(image.height * max_width / image.width))
                image = image.resize((max_width, height), Image.Resampling.LANCZOS)

            output = io.BytesIO()
            image.save(output, format="JPEG", quality=quality, optimize=True)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        logger.warning(
            "Upload is not a readable image",
            extra={"size": len(data), "error": str(exc)},
        )
        raise ValidationError(
            message="Uploaded file is not a supported image",
            error_code=ERROR_CODE_UNSUPPORTED_MIME_TYPE,
        ) from exc

    result = output.getvalue()
    logger.debug(
        "Image transformed",
        extra={
            "input_size": len(data),
            "output_size": len(result),
            "width": image.width,
            "height": image.height,
        },
    )
    return TransformedImage(
        data=result,
        content_type=TRANSFORM_CONTENT_TYPE,
        width=image.width,
        height=image.height,
    )


def _flatten(image: Image.Image) -> Image.Image:
    has_alpha = image.mode in ("RGBA", "LA") or (
        image.mode == "P" and "transparency" in image.info
    )
    if not has_alpha:
        return image.convert("RGB")

    rgba = image.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background
