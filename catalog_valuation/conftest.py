from datetime import date
from pathlib import Path
from typing import List, Optional

import pytest

from config import ConfigurationManager
from catalog_valuation.input_handler import UploadedFile
from catalog_valuation.model_inference import TokenBucket
from catalog_valuation.output_handler import SQLiteRecordStore
from catalog_valuation.postprocessor import StreamRecord


class FakeClock:
    """Manual clock whose sleep() advances time instead of waiting."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeExtractionClient:
    """
    Stands in for the LLM client.

    Each call pops the next scripted response; exceptions are raised.
    When the script runs out the last response is repeated.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.text_calls: List[str] = []
        self.image_calls: List[tuple] = []

    def _next(self):
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        return response

    async def analyze_text(self, text: str) -> str:
        self.text_calls.append(text)
        return self._next()

    async def analyze_image(self, image_base64: str, media_type: str = "image/jpeg") -> str:
        self.image_calls.append((image_base64, media_type))
        return self._next()


class FakeOCREngine:
    """Returns a fixed text for every image."""

    def __init__(self, text: str = ""):
        self.text = text
        self.calls = 0

    async def recognize_text(self, image) -> str:
        self.calls += 1
        return self.text


def make_record(
    platform: str = 'Spotify',
    streams: int = 1000,
    revenue: float = 40.0,
    day: Optional[date] = None,
) -> StreamRecord:
    return StreamRecord(platform, streams, revenue, day or date(2024, 1, 1))


@pytest.fixture(autouse=True)
def reset_config():
    """Every test starts from the default settings.yaml."""
    ConfigurationManager.reset()
    yield
    ConfigurationManager.reset()


@pytest.fixture
def store(tmp_path) -> SQLiteRecordStore:
    return SQLiteRecordStore(tmp_path / 'test.db')


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_limiter(clock):
    """Factory for buckets on the fake clock (build inside the running loop)."""

    def _make(capacity: int = 5, per_minute: int = 5) -> TokenBucket:
        return TokenBucket(
            capacity=capacity,
            refill_rate=per_minute / 60.0,
            clock=clock,
            sleep=clock.sleep,
        )

    return _make


@pytest.fixture
def write_file(tmp_path):
    """Write bytes or text to tmp_path and return an UploadedFile handle."""

    def _write(name: str, content) -> UploadedFile:
        path = Path(tmp_path) / name
        if isinstance(content, str):
            path.write_text(content, encoding='utf-8')
        else:
            path.write_bytes(content)
        return UploadedFile.from_path(path)

    return _write
