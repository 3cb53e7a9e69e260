"""
Rate-Limited Extraction Gateway.

This module provides the ExtractionGateway class, the only path from the
ingestion pipeline to the external extraction capability.

Per call:
    1. Debit one token from the shared TokenBucket (waiting if empty)
    2. Invoke the capability
    3. On a throttling signal, back off and retry a bounded number of times
    4. Parse the response text (direct JSON, then embedded array)
    5. Validate every element against the StreamRecord shape

A response that leaves no valid records is treated as a failed call.
"""

import asyncio
import json
import re
import time
import uuid
from typing import Any, Awaitable, Callable, List, Optional

from config import get_config
from catalog_valuation.postprocessor import RecordNormalizer, StreamRecord
from catalog_valuation.utils.exceptions import (
    ExtractionError,
    RateLimitExceededError,
    ValidationError
)
from catalog_valuation.utils.logger import get_logger
from .rate_limiter import TokenBucket

# Initialize module logger
logger = get_logger(__name__)


CODE_FENCE = re.compile(r'^```(?:json)?\s*|\s*```$')
OBJECT_ARRAY = re.compile(r'\[\s*\{[\s\S]*\}\s*\]')
ANY_ARRAY = re.compile(r'\[[\s\S]*\]')


def parse_response_text(text: str) -> Any:
    """
    Decode the JSON carried by a model response.

    First the whole text is parsed; failing that, the outermost array
    embedded in surrounding prose is located and parsed.

    Args:
        text: Raw response text.

    Returns:
        The decoded JSON value.

    Raises:
        ExtractionError: If neither attempt yields JSON.
    """
    cleaned = CODE_FENCE.sub('', text.strip())

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        logger.debug("Direct JSON parse failed, attempting to extract JSON from text")

    match = OBJECT_ARRAY.search(cleaned) or ANY_ARRAY.search(cleaned)
    if match is None:
        raise ExtractionError("No valid JSON structure found in response")

    try:
        return json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ExtractionError("Could not parse JSON from response", {"error": str(e)})


class ExtractionGateway:
    """
    Token-bucket guarded access to the extraction capability.

    Attributes:
        client: Object exposing async analyze_text / analyze_image
        limiter: Shared TokenBucket
        max_retries: Retries after a throttling signal
        retry_backoff: Seconds to wait before each retry

    Example:
        >>> gateway = ExtractionGateway(AnthropicExtractionClient(), TokenBucket())
        >>> records = await gateway.analyze_text(pdf_text)
    """

    def __init__(
        self,
        client,
        limiter: TokenBucket,
        max_retries: Optional[int] = None,
        retry_backoff: Optional[float] = None,
        normalizer: Optional[RecordNormalizer] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ) -> None:
        self.client = client
        self.limiter = limiter
        self.max_retries = max_retries if max_retries is not None else \
            get_config("extraction.rate_limit.max_retries", 2)
        self.retry_backoff = retry_backoff if retry_backoff is not None else \
            get_config("extraction.rate_limit.retry_backoff_seconds", 2.0)
        self.normalizer = normalizer or RecordNormalizer()
        self._sleep = sleep

        logger.info(
            f"ExtractionGateway initialized (capacity={limiter.capacity}, "
            f"refill={limiter.refill_rate:.4f}/s, retries={self.max_retries})"
        )

    async def analyze_text(self, text: str) -> List[StreamRecord]:
        """
        Extract records from statement text.

        Raises:
            ExtractionError: If the call fails or yields no valid records.
            RateLimitExceededError: If throttling outlasts every retry.
        """
        return await self.invoke(lambda: self.client.analyze_text(text), "text")

    async def analyze_image(self, image_base64: str, media_type: str = "image/jpeg") -> List[StreamRecord]:
        """
        Extract records from a base64-encoded statement image.

        Raises:
            ExtractionError: If the call fails or yields no valid records.
            RateLimitExceededError: If throttling outlasts every retry.
        """
        return await self.invoke(
            lambda: self.client.analyze_image(image_base64, media_type), "image"
        )

    async def invoke(self, call: Callable[[], Awaitable[str]], kind: str = "text") -> List[StreamRecord]:
        """
        Run one rate-limited extraction call and validate its output.

        Args:
            call: Zero-argument coroutine factory performing the request.
            kind: Label used in log messages.

        Returns:
            Validated StreamRecord list (never empty).
        """
        request_id = uuid.uuid4().hex[:8]
        start_time = time.monotonic()

        raw_text = await self._call_with_retry(call, request_id)
        logger.debug(f"[{request_id}] Raw {kind} response ({len(raw_text)} chars): {raw_text[:200]!r}")

        payload = parse_response_text(raw_text)

        try:
            records = self.normalizer.normalize_payload(payload)
        except ValidationError as e:
            raise ExtractionError("Response data must be an array", e.details) from e

        if not records:
            raise ExtractionError("No valid records found in analyzed data")

        logger.info(
            f"[{request_id}] {kind.capitalize()} analysis complete: "
            f"{len(records)} of {len(payload)} records valid "
            f"({time.monotonic() - start_time:.2f}s)"
        )
        return records

    async def _call_with_retry(self, call: Callable[[], Awaitable[str]], request_id: str) -> str:
        attempt = 0
        while True:
            attempt += 1
            await self.limiter.acquire()
            try:
                return await call()
            except RateLimitExceededError as e:
                if attempt > self.max_retries:
                    logger.error(f"[{request_id}] Rate limited after {attempt} attempts")
                    raise RateLimitExceededError(attempts=attempt, reason=e.details.get("reason")) from e

                logger.warning(
                    f"[{request_id}] Extraction service throttled "
                    f"(attempt {attempt}/{self.max_retries + 1}), "
                    f"retrying in {self.retry_backoff}s"
                )
                await self._sleep(self.retry_backoff)
