"""
Model Inference Module for the Catalog Valuation System.

This module wraps the external LLM extraction capability.

Features:
    - Token bucket admission shared across all calls
    - Bounded retry on throttling signals
    - Two-phase JSON response parsing
    - Strict StreamRecord validation of every returned element

Backends:
    - Anthropic Claude (Messages API, text and image input)
"""

from .rate_limiter import TokenBucket
from .gateway import ExtractionGateway, parse_response_text
from .client import AnthropicExtractionClient

__all__ = ['TokenBucket', 'ExtractionGateway', 'parse_response_text', 'AnthropicExtractionClient']
