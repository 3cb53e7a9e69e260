import asyncio
import io
from unittest import mock

import pytesseract
import pytest
from PIL import Image

from catalog_valuation.ocr_engine import OCREngine, TesseractBackend
from catalog_valuation.utils.exceptions import OCREngineNotAvailableError, OCRProcessingError


def _png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new('L', (30, 10), color=255).save(buffer, format='PNG')
    return buffer.getvalue()


class TestOCREngine:

    def test_recognize_bytes(self):
        backend = mock.Mock(get_raw_text=mock.Mock(return_value='Spotify 1000'))

        text = asyncio.run(OCREngine(backend=backend).recognize_text(_png_bytes()))

        assert text == 'Spotify 1000'
        image = backend.get_raw_text.call_args[0][0]
        assert image.size == (30, 10)

    def test_recognize_pil_image(self):
        backend = mock.Mock(get_raw_text=mock.Mock(return_value='text'))
        image = Image.new('RGB', (5, 5))

        assert asyncio.run(OCREngine(backend=backend).recognize_text(image)) == 'text'
        backend.get_raw_text.assert_called_once_with(image)

    def test_undecodable_bytes(self):
        engine = OCREngine(backend=mock.Mock())

        with pytest.raises(OCRProcessingError):
            asyncio.run(engine.recognize_text(b'not an image'))

    def test_invalid_input_type(self):
        engine = OCREngine(backend=mock.Mock())

        with pytest.raises(OCRProcessingError):
            asyncio.run(engine.recognize_text(12345))


class TestTesseractBackend:

    def test_missing_binary(self):
        with mock.patch.object(pytesseract, 'get_tesseract_version',
                               side_effect=pytesseract.TesseractNotFoundError()):
            with pytest.raises(OCREngineNotAvailableError):
                TesseractBackend()

    def test_get_raw_text(self):
        with mock.patch.object(pytesseract, 'get_tesseract_version', return_value='5.3.0'):
            backend = TesseractBackend()

        with mock.patch.object(pytesseract, 'image_to_string', return_value='  Spotify 1000\n') as ocr:
            text = backend.get_raw_text(Image.new('RGBA', (5, 5)))

        assert text == 'Spotify 1000'
        assert ocr.call_args.kwargs['config'] == '--psm 3 --oem 3'
        assert ocr.call_args[0][0].mode == 'RGB'

    def test_tesseract_failure(self):
        with mock.patch.object(pytesseract, 'get_tesseract_version', return_value='5.3.0'):
            backend = TesseractBackend()

        with mock.patch.object(pytesseract, 'image_to_string',
                               side_effect=pytesseract.TesseractError(1, 'bad image')):
            with pytest.raises(OCRProcessingError):
                backend.get_raw_text(Image.new('L', (5, 5)))
