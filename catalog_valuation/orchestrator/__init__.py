"""
Orchestrator Module for the Catalog Valuation System.

Runs ingestion batches with bounded concurrency and tracks their
progress and outcome.
"""

from .batch_orchestrator import BatchOrchestrator, NO_DATA_MESSAGE

__all__ = ['BatchOrchestrator', 'NO_DATA_MESSAGE']
