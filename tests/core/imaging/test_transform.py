import io

import pytest
from PIL import Image

from portfolio.core.imaging.transform import transform_image
from portfolio.core.models.errors import ValidationError
from portfolio.core.utils.constants import ERROR_CODE_UNSUPPORTED_MIME_TYPE


def open_result(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


class TestTransformImage:
    def test_small_image_keeps_size(self, jpeg_bytes: bytes) -> None:
        result = transform_image(jpeg_bytes)

        assert result.content_type == "image/jpeg"
        assert (result.width, result.height) == (64, 48)
        assert open_result(result.data).format == "JPEG"

    def test_wide_image_is_downscaled(self, image_factory) -> None:
        data = image_factory(size=(400, 100))

        result = transform_image(data, max_width=200)

        assert (result.width, result.height) == (200, 50)
        assert open_result(result.data).size == (200, 50)

    def test_transparency_flattened_onto_white(self, png_rgba_bytes: bytes) -> None:
        result = transform_image(png_rgba_bytes)

        image = open_result(result.data)
        assert image.mode == "RGB"
        red, green, blue = image.getpixel((10, 10))
        assert min(red, green, blue) > 240

    def test_animated_gif_keeps_first_frame(self) -> None:
        frames = [Image.new("RGB", (32, 32), color) for color in ((255, 0, 0), (0, 0, 255))]
        buffer = io.BytesIO()
        frames[0].save(buffer, format="GIF", save_all=True, append_images=frames[1:])

        result = transform_image(buffer.getvalue())

        red, _, blue = open_result(result.data).getpixel((16, 16))
        assert red > 200
        assert blue < 60

    @pytest.mark.parametrize("data", [b"", b"not an image", b"\x89PNG\r\n\x1a\ntruncated"])
    def test_unreadable_bytes_rejected(self, data: bytes) -> None:
        with pytest.raises(ValidationError) as exc:
            transform_image(data)

        assert exc.value.error_code == ERROR_CODE_UNSUPPORTED_MIME_TYPE
