"""
Anthropic Extraction Client.

Thin wrapper over the Anthropic Messages API that asks Claude to read a
royalty statement (OCR text or a screenshot) and answer with a JSON
array of records. The client returns the raw response text; parsing and
validation happen in the gateway.
"""

from typing import Optional

import anthropic

from config import get_config
from catalog_valuation.utils.exceptions import ExtractionError, RateLimitExceededError
from catalog_valuation.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


TEXT_PROMPT = """You are a financial document analyzer specialized in music streaming royalty statements.

Your task is to extract specific data points from this royalty statement. Be precise and only extract information that is explicitly stated.

Required fields to extract:
1. Platform name (e.g., Spotify, Apple Music)
   - Look for direct mentions of streaming service names
   - If unclear, mark as "Unknown Platform"

2. Number of streams
   - Look for numbers explicitly labeled as streams/plays
   - Must be a whole number
   - If not found, do not substitute with other metrics

3. Revenue amount
   - Look for monetary values (USD)
   - Must be a decimal number
   - Only include actual revenue, not projections

4. Statement date
   - Find the specific date this statement covers
   - Convert any date format to YYYY-MM-DD
   - Use the most recent date if multiple dates present

Rules:
- Only extract information that is explicitly stated
- Do not make assumptions or calculations
- If a required field is not found, exclude that record
- Ensure all numerical values are properly formatted

Return the data in this exact JSON format:
[
  {{
    "platform": string,
    "streams": number (integer),
    "revenue": number (decimal),
    "date": "YYYY-MM-DD"
  }}
]

Content to analyze:
{content}"""


IMAGE_PROMPT = """Analyze this royalty statement screenshot and extract the following information:
- Platform (e.g., Spotify, Apple Music)
- Number of streams
- Revenue amount
- Statement period/date

Return the data in this exact JSON format:
[
  {
    "platform": "platform name",
    "streams": number,
    "revenue": number,
    "date": "YYYY-MM-DD"
  }
]"""


class AnthropicExtractionClient:
    """
    Claude-backed extraction capability.

    Attributes:
        model: Claude model name
        temperature: Sampling temperature for text analysis
        text_max_tokens: Response budget for text analysis
        image_max_tokens: Response budget for image analysis

    Example:
        >>> client = AnthropicExtractionClient()
        >>> raw = await client.analyze_text(ocr_text)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[anthropic.AsyncAnthropic] = None
    ) -> None:
        """
        Initialize the client.

        Args:
            api_key: Anthropic API key. Defaults to ANTHROPIC_API_KEY.
            model: Model name override.
            client: Preconfigured AsyncAnthropic instance.
        """
        self.model = model or get_config("extraction.model", "claude-3-5-sonnet-20241022")
        self.temperature = get_config("extraction.temperature", 0.2)
        self.text_max_tokens = get_config("extraction.text_max_tokens", 1500)
        self.image_max_tokens = get_config("extraction.image_max_tokens", 1000)

        self._client = client or anthropic.AsyncAnthropic(api_key=api_key)

        logger.info(f"AnthropicExtractionClient initialized with model: {self.model}")

    async def analyze_text(self, text: str) -> str:
        """
        Ask the model to extract records from statement text.

        Args:
            text: OCR or embedded PDF text.

        Returns:
            Raw response text.
        """
        logger.debug(f"Text analysis request ({len(text)} chars): {text[:200]!r}")
        return await self._create(
            max_tokens=self.text_max_tokens,
            temperature=self.temperature,
            content=TEXT_PROMPT.format(content=text),
        )

    async def analyze_image(self, image_base64: str, media_type: str = "image/jpeg") -> str:
        """
        Ask the model to extract records from a statement screenshot.

        Args:
            image_base64: Base64-encoded image bytes.
            media_type: MIME type of the encoded image.

        Returns:
            Raw response text.
        """
        logger.debug(f"Image analysis request ({media_type}, {len(image_base64)} b64 chars)")
        return await self._create(
            max_tokens=self.image_max_tokens,
            content=[
                {"type": "text", "text": IMAGE_PROMPT},
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": media_type,
                        "data": image_base64,
                    },
                },
            ],
        )

    async def _create(self, max_tokens: int, content, temperature: Optional[float] = None) -> str:
        request = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        if temperature is not None:
            request["temperature"] = temperature

        try:
            response = await self._client.messages.create(**request)
        except anthropic.RateLimitError as e:
            raise RateLimitExceededError(reason=str(e)) from e
        except anthropic.APIError as e:
            raise ExtractionError(f"API error: {e}") from e

        text_blocks = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        if not text_blocks:
            raise ExtractionError("Invalid response format from Claude API")

        return text_blocks[0]
