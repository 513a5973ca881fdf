from __future__ import annotations

from pathlib import Path
from typing import Callable

import fitz
import pytest

from pdfmerge.adapters.pymupdf_adapter import PyMuPdfAdapter
from pdfmerge.adapters.storage import InMemoryStorage
from pdfmerge.domain.models import LoadedSource, LocationRef
from pdfmerge.infrastructure.config import AppConfig
from pdfmerge.services.constraint_gate import ConstraintGate
from pdfmerge.services.ingest_service import IngestService
from pdfmerge.services.loader_service import DocumentLoader
from pdfmerge.services.merge_service import MergeAssembler
from pdfmerge.services.session_service import MergeSession
from pdfmerge.services.workflow_service import MergeWorkflow

PdfFactory = Callable[[str, int], bytes]


@pytest.fixture
def pdf_factory() -> PdfFactory:
    """Build a PDF whose page ``k`` reads ``"<label> page <k>"``."""

    def _create(label: str, pages: int) -> bytes:
        document = fitz.open()
        try:
            for number in range(1, pages + 1):
                page = document.new_page()
                page.insert_text((72, 72), f"{label} page {number}")
            return document.tobytes(garbage=4, deflate=True)
        finally:
            document.close()

    return _create


@pytest.fixture
def page_texts() -> Callable[[bytes], list[str]]:
    def _extract(pdf_bytes: bytes) -> list[str]:
        with fitz.open(stream=pdf_bytes, filetype="pdf") as document:
            return [page.get_text("text").strip() for page in document]

    return _extract


@pytest.fixture
def synthetic_pdf_bytes() -> bytes:
    document = fitz.open()
    page1 = document.new_page()
    page1.insert_text((72, 72), "Cover page")
    page2 = document.new_page()
    page2.insert_text((72, 72), "Chapter 1")
    page3 = document.new_page()
    page3.insert_text((72, 72), "Chapter 2")
    try:
        return document.tobytes(deflate=True, garbage=3)
    finally:
        document.close()


@pytest.fixture
def empty_pdf_bytes() -> bytes:
    """A well-formed PDF whose page tree has ``/Count 0``."""
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [] /Count 0 >>",
    ]
    body = b"%PDF-1.4\n"
    offsets = []
    for number, obj in enumerate(objects, start=1):
        offsets.append(len(body))
        body += b"%d 0 obj\n" % number + obj + b"\nendobj\n"
    xref_at = len(body)
    body += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    body += b"".join(b"%010d 00000 n \n" % offset for offset in offsets)
    body += b"trailer\n<< /Size %d /Root 1 0 R >>\n" % (len(objects) + 1)
    body += b"startxref\n%d\n%%%%EOF\n" % xref_at
    return body


@pytest.fixture
def real_world_fixture_paths(tmp_path: Path, pdf_factory: PdfFactory) -> list[Path]:
    base = tmp_path / "real_world"
    base.mkdir()

    documents = {
        base / "Quarterly Report.pdf": ("Quarterly Report", 4),
        base / "appendix.PDF": ("Appendix", 2),
    }
    for path, (label, pages) in documents.items():
        path.write_bytes(pdf_factory(label, pages))
    return list(documents)


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        max_total_pages=150,
        max_pdf_size_mb=50,
        max_batch_size_mb=100,
        merge_read_concurrency=4,
    )


@pytest.fixture
def adapter() -> PyMuPdfAdapter:
    return PyMuPdfAdapter()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def loader(adapter: PyMuPdfAdapter, storage: InMemoryStorage) -> DocumentLoader:
    return DocumentLoader(adapter, storage)


@pytest.fixture
def session() -> MergeSession:
    return MergeSession()


@pytest.fixture
def ingest(loader: DocumentLoader, storage: InMemoryStorage, config: AppConfig) -> IngestService:
    return IngestService(loader, storage, config)


@pytest.fixture
def assembler(adapter: PyMuPdfAdapter, loader: DocumentLoader, config: AppConfig) -> MergeAssembler:
    return MergeAssembler(adapter, loader, read_concurrency=config.merge_read_concurrency)


@pytest.fixture
def workflow(
    session: MergeSession,
    assembler: MergeAssembler,
    storage: InMemoryStorage,
    config: AppConfig,
) -> MergeWorkflow:
    return MergeWorkflow(
        session, ConstraintGate(config.max_total_pages), assembler, storage, config
    )


@pytest.fixture
def make_source() -> Callable[[str, int], LoadedSource]:
    """Metadata-only source for session and gate tests; the location is never read."""

    def _create(name: str, page_count: int) -> LoadedSource:
        return LoadedSource(
            display_name=name, location=LocationRef(f"loc-{name}"), page_count=page_count
        )

    return _create
