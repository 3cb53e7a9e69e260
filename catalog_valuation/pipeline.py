"""
Catalog Valuation Pipeline.

This module wires the components together and exposes the operations
callers use:

    submit_batch / process_batch -> ingest statement files
    get_batch_status             -> poll a batch
    submit_valuation             -> value the latest complete batch
    get_valuation_report         -> fetch a stored valuation

Usage:
    from catalog_valuation.pipeline import build_pipeline

    pipeline = build_pipeline()
    batch_id = await pipeline.process_batch(["statement.csv"])
    report = await pipeline.submit_valuation({"yearOneDecay": 30,
                                              "yearTwoDecay": 20,
                                              "yearThreeDecay": 10,
                                              "spotifyRate": 0.004,
                                              "appleMusicRate": 0.008})
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from config import ConfigurationManager, get_config
from catalog_valuation.input_handler import FormatDispatcher, UploadedFile
from catalog_valuation.model_inference import (
    AnthropicExtractionClient,
    ExtractionGateway,
    TokenBucket,
)
from catalog_valuation.orchestrator import BatchOrchestrator
from catalog_valuation.output_handler import RecordStore, SQLiteRecordStore
from catalog_valuation.valuation import ValuationConfig, ValuationEngine, ValuationReport
from catalog_valuation.utils.logger import get_logger

# Initialize module logger
logger = get_logger(__name__)


FileInput = Union[UploadedFile, str, Path]


class CatalogValuationPipeline:
    """
    Facade over ingestion and valuation.

    Attributes:
        orchestrator: Runs ingestion batches
        engine: Produces valuation reports

    Example:
        >>> pipeline = CatalogValuationPipeline(orchestrator, engine)
        >>> status = await pipeline.get_batch_status(batch_id)
    """

    def __init__(self, orchestrator: BatchOrchestrator, engine: ValuationEngine) -> None:
        self.orchestrator = orchestrator
        self.engine = engine

    @staticmethod
    def _as_uploaded(files: Sequence[FileInput]) -> list:
        return [f if isinstance(f, UploadedFile) else UploadedFile.from_path(f) for f in files]

    async def submit_batch(self, files: Sequence[FileInput]) -> str:
        """Start processing files in the background and return the batch id."""
        return await self.orchestrator.submit_batch(self._as_uploaded(files))

    async def process_batch(self, files: Sequence[FileInput]) -> str:
        """
        Process files to completion and return the batch id.

        Raises:
            ValidationError: If no files are given.
            PipelineError: If the batch ends in error.
        """
        return await self.orchestrator.process_batch(self._as_uploaded(files))

    async def get_batch_status(self, batch_id: str) -> Dict[str, Any]:
        return await self.orchestrator.get_batch_status(batch_id)

    async def submit_valuation(
        self,
        config: Union[ValuationConfig, Mapping[str, Any]]
    ) -> ValuationReport:
        """
        Value the catalog with the given parameters.

        Args:
            config: ValuationConfig, or a mapping with snake_case or
                camelCase keys.

        Raises:
            InvalidConfigError: If a parameter is missing or out of range.
            NoDataAvailableError: If there is no complete batch with records.
        """
        if not isinstance(config, ValuationConfig):
            config = ValuationConfig.from_dict(config)
        return await self.engine.calculate(config)

    async def get_valuation_report(self, valuation_id: int) -> ValuationReport:
        return await self.engine.get_report(valuation_id)

    async def wait_for_background(self) -> None:
        await self.orchestrator.wait_for_background()


def build_pipeline(
    config_path: Optional[str] = None,
    store: Optional[RecordStore] = None,
    extraction_client=None
) -> CatalogValuationPipeline:
    """
    Build a pipeline from configuration.

    Args:
        config_path: Optional custom settings file. Reloads the global
            configuration when given.
        store: RecordStore override. Defaults to SQLite at paths.database.
        extraction_client: Extraction client override. Defaults to the
            Anthropic client.

    Returns:
        A ready CatalogValuationPipeline.
    """
    if config_path is not None:
        ConfigurationManager.reset()
        ConfigurationManager(config_path)

    logger.info("Initializing pipeline components...")

    store = store or SQLiteRecordStore()

    limiter = TokenBucket(
        capacity=get_config("extraction.rate_limit.capacity", 5),
        refill_rate=get_config("extraction.rate_limit.per_minute", 5) / 60.0,
    )
    gateway = ExtractionGateway(extraction_client or AnthropicExtractionClient(), limiter)
    dispatcher = FormatDispatcher(gateway)

    orchestrator = BatchOrchestrator(store, dispatcher)
    engine = ValuationEngine(store)

    return CatalogValuationPipeline(orchestrator, engine)
