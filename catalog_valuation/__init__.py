"""
Catalog Valuation System - Source Package.

This package ingests music streaming statements (CSV/TSV/XLSX, PDF,
images), extracts normalized stream records from them, and values the
catalog from the latest complete batch. Each module has a single
responsibility.

Modules:
    - input_handler: File type detection and per-format processing
    - ocr_engine: Text recognition for scanned pages
    - model_inference: Rate-limited LLM extraction
    - postprocessor: Record normalization and validation
    - orchestrator: Batch processing and progress tracking
    - valuation: Revenue projection and NPV
    - output_handler: Batch and report persistence

Architecture:
    Files → Input Handler → (OCR) → Model Inference → Post-Processing
                                                          ↓
                              Valuation ← Output Handler ← Orchestrator
"""

__version__ = "1.0.0"
__author__ = "ML Engineering Team"

__all__ = [
    'input_handler',
    'ocr_engine',
    'model_inference',
    'postprocessor',
    'orchestrator',
    'valuation',
    'output_handler',
    'utils'
]
