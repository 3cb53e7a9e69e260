import base64
import io

import pytest
from PIL import Image

from catalog_valuation.input_handler import ImageProcessor
from catalog_valuation.utils.exceptions import CorruptedFileError


def _image_bytes(fmt: str, size=(40, 20), mode='RGB') -> bytes:
    buffer = io.BytesIO()
    Image.new(mode, size, color='white').save(buffer, format=fmt)
    return buffer.getvalue()


class TestImageProcessor:

    def test_png_passes_through(self):
        """Small images are sent unchanged with their media type."""
        content = _image_bytes('PNG')

        image_b64, media_type = ImageProcessor().prepare(content, 'statement.png')

        assert media_type == 'image/png'
        assert base64.b64decode(image_b64) == content

    def test_jpeg_media_type(self):
        _, media_type = ImageProcessor().prepare(_image_bytes('JPEG'), 'statement.jpg')

        assert media_type == 'image/jpeg'

    def test_large_image_is_downscaled(self):
        processor = ImageProcessor()
        processor.max_dimension = 100

        image_b64, media_type = processor.prepare(_image_bytes('PNG', size=(400, 200)), 'big.png')

        with Image.open(io.BytesIO(base64.b64decode(image_b64))) as image:
            assert image.size == (100, 50)
            assert image.format == 'PNG'
        assert media_type == 'image/png'

    def test_not_an_image(self):
        with pytest.raises(CorruptedFileError):
            ImageProcessor().prepare(b'definitely not an image', 'fake.png')

    def test_unsupported_image_format(self):
        """Readable images in formats the model does not accept are rejected."""
        with pytest.raises(CorruptedFileError):
            ImageProcessor().prepare(_image_bytes('BMP'), 'statement.png')
