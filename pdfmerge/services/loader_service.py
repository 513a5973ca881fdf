from __future__ import annotations

import logging

from pdfmerge.adapters.pymupdf_adapter import PyMuPdfAdapter
from pdfmerge.adapters.storage import StorageAdapter
from pdfmerge.domain.models import LoadedDocument, LocationRef

logger = logging.getLogger(__name__)


class DocumentLoader:
    def __init__(self, adapter: PyMuPdfAdapter, storage: StorageAdapter) -> None:
        self.adapter = adapter
        self.storage = storage

    def load(self, pdf_bytes: bytes) -> LoadedDocument:
        loaded = self.adapter.open_document(pdf_bytes)
        logger.debug("Loaded PDF: %d bytes, %d page(s)", len(pdf_bytes), loaded.page_count)
        return loaded

    def count_pages(self, pdf_bytes: bytes) -> int:
        with self.load(pdf_bytes) as loaded:
            return loaded.page_count

    async def read(self, location: LocationRef) -> bytes:
        return await self.storage.read_all(location)

    async def load_location(self, location: LocationRef) -> LoadedDocument:
        return self.load(await self.read(location))
