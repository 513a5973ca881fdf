from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from pdfmerge.adapters.storage import StorageAdapter
from pdfmerge.domain.errors import ValidationError
from pdfmerge.domain.models import (
    BatchItemResult,
    BatchOperationResult,
    LoadedSource,
    LocationRef,
    OperationMessage,
    Status,
)
from pdfmerge.infrastructure.config import AppConfig
from pdfmerge.services.loader_service import DocumentLoader
from pdfmerge.services.session_service import MergeSession

logger = logging.getLogger(__name__)

SourceInput = tuple[str, bytes | LocationRef]


class IngestService:
    def __init__(self, loader: DocumentLoader, storage: StorageAdapter, config: AppConfig) -> None:
        self.loader = loader
        self.storage = storage
        self.config = config

    def _check_batch_size(self, sources: Sequence[SourceInput]) -> None:
        total_size = sum(len(content) for _, content in sources if isinstance(content, bytes))
        if total_size > self.config.max_batch_size_bytes:
            raise ValidationError(f"Batch size exceeds limit of {self.config.max_batch_size_mb} MB")

    def _check_file(self, name: str, content: bytes) -> None:
        if not name.lower().endswith(".pdf"):
            raise ValidationError(f"Invalid file type for {name}. Only PDF files are allowed.")
        if len(content) > self.config.max_pdf_size_bytes:
            raise ValidationError(
                f"{name} exceeds per-file limit of {self.config.max_pdf_size_mb} MB"
            )

    async def _load_one(self, name: str, source: bytes | LocationRef) -> LoadedSource:
        if isinstance(source, LocationRef):
            content = await self.storage.read_all(source)
            self._check_file(name, content)
            page_count = self.loader.count_pages(content)
            location = source
        else:
            content = source
            self._check_file(name, content)
            page_count = self.loader.count_pages(content)
            location = await self.storage.write_all(content, name)
        return LoadedSource(
            display_name=name,
            location=location,
            page_count=page_count,
            size_bytes=len(content),
        )

    async def load_batch(
        self, sources: Sequence[SourceInput]
    ) -> tuple[list[LoadedSource], BatchOperationResult]:
        self._check_batch_size(sources)

        loaded: list[LoadedSource] = []
        results: list[BatchItemResult] = []
        for position, (name, source) in enumerate(sources):
            try:
                item = await self._load_one(name, source)
            except Exception as exc:
                logger.warning("Skipping %s (input %d): %s", name, position + 1, exc)
                results.append(
                    BatchItemResult(
                        position=position,
                        source_name=name,
                        status=Status.ERROR,
                        messages=[OperationMessage(level="error", text=str(exc))],
                        error=exc,
                    )
                )
                continue
            loaded.append(item)
            results.append(
                BatchItemResult(
                    position=position,
                    source_name=name,
                    status=Status.SUCCESS,
                    messages=[OperationMessage(level="info", text=f"{item.page_count} page(s)")],
                )
            )
        return loaded, BatchOperationResult(items=results)

    async def add_sources(
        self, session: MergeSession, sources: Sequence[SourceInput]
    ) -> BatchOperationResult:
        loaded, report = await self.load_batch(sources)
        created = iter(session.add_items(loaded))
        # Attach the session items to their successful batch entries, in order.
        items = [
            replace(result, item=next(created)) if result.status == Status.SUCCESS else result
            for result in report.items
        ]
        logger.info(
            "Batch load: %d added, %d failed", report.success_count, report.error_count
        )
        return BatchOperationResult(items=items)
