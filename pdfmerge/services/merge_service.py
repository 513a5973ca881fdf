from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from pdfmerge.adapters.pymupdf_adapter import PyMuPdfAdapter
from pdfmerge.domain.errors import AssemblyFailedError
from pdfmerge.domain.models import LoadedDocument, SourceItem
from pdfmerge.services.loader_service import DocumentLoader

logger = logging.getLogger(__name__)


class MergeAssembler:
    def __init__(
        self, adapter: PyMuPdfAdapter, loader: DocumentLoader, read_concurrency: int = 1
    ) -> None:
        self.adapter = adapter
        self.loader = loader
        self.read_concurrency = max(1, read_concurrency)

    async def _read_all(self, items: Sequence[SourceItem]) -> list[bytes]:
        semaphore = asyncio.Semaphore(self.read_concurrency)

        async def fetch(item: SourceItem) -> bytes:
            async with semaphore:
                return await self.loader.read(item.location)

        # Reads may finish in any order; results come back indexed by list position.
        outcomes = await asyncio.gather(*(fetch(item) for item in items), return_exceptions=True)
        contents: list[bytes] = []
        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, Exception):
                raise AssemblyFailedError(
                    f"Unable to read source: {outcome}",
                    item_id=item.item_id,
                    display_name=item.display_name,
                ) from outcome
            if isinstance(outcome, BaseException):
                raise outcome
            contents.append(outcome)
        return contents

    def _load(self, item: SourceItem, content: bytes) -> LoadedDocument:
        try:
            loaded = self.loader.load(content)
        except Exception as exc:
            raise AssemblyFailedError(
                f"Unable to load source: {exc}",
                item_id=item.item_id,
                display_name=item.display_name,
            ) from exc
        if loaded.page_count != item.page_count:
            loaded.close()
            raise AssemblyFailedError(
                f"Source changed since it was added: expected {item.page_count} page(s), "
                f"found {loaded.page_count}",
                item_id=item.item_id,
                display_name=item.display_name,
            )
        return loaded

    async def assemble(self, items: Sequence[SourceItem]) -> bytes:
        items = tuple(items)
        contents = await self._read_all(items)
        expected_pages = sum(item.page_count for item in items)

        output = self.adapter.new_output()
        try:
            for item, content in zip(items, contents):
                with self._load(item, content) as loaded:
                    try:
                        copied = self.adapter.append_all_pages(output, loaded)
                    except Exception as exc:
                        raise AssemblyFailedError(
                            f"Unable to copy pages: {exc}",
                            item_id=item.item_id,
                            display_name=item.display_name,
                        ) from exc
                if copied != item.page_count:
                    raise AssemblyFailedError(
                        f"Copied {copied} of {item.page_count} page(s)",
                        item_id=item.item_id,
                        display_name=item.display_name,
                    )

            if output.page_count != expected_pages:
                raise AssemblyFailedError(
                    f"Output has {output.page_count} page(s), expected {expected_pages}"
                )
            try:
                result = self.adapter.serialize(output)
            except Exception as exc:
                raise AssemblyFailedError(f"Unable to write merged PDF: {exc}") from exc
        finally:
            output.close()

        logger.info("Assembled %d item(s) into %d page(s)", len(items), expected_pages)
        return result
