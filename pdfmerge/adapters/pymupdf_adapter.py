from __future__ import annotations

from typing import cast

import fitz  # type: ignore[import-untyped]

from pdfmerge.domain.errors import UnreadableDocumentError
from pdfmerge.domain.models import LoadedDocument


class PyMuPdfAdapter:
    @staticmethod
    def _optimized_bytes(document: fitz.Document) -> bytes:
        return cast(
            bytes,
            document.tobytes(
                garbage=4,
                clean=True,
                deflate=True,
                deflate_images=True,
                deflate_fonts=True,
            ),
        )

    def open_document(self, pdf_bytes: bytes) -> LoadedDocument:
        try:
            document = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as exc:
            raise UnreadableDocumentError(str(exc) or type(exc).__name__) from exc
        if document.needs_pass:
            document.close()
            raise UnreadableDocumentError("document is encrypted")
        try:
            page_count = int(document.page_count)
        except Exception as exc:
            document.close()
            raise UnreadableDocumentError(str(exc) or type(exc).__name__) from exc
        if page_count < 1:
            document.close()
            raise UnreadableDocumentError("document has no pages")
        return LoadedDocument(page_count=page_count, handle=document)

    def new_output(self) -> fitz.Document:
        return fitz.open()

    def append_all_pages(self, output: fitz.Document, source: LoadedDocument) -> int:
        before = output.page_count
        output.insert_pdf(source.handle, from_page=0, to_page=source.page_count - 1)
        return int(output.page_count - before)

    def serialize(self, output: fitz.Document) -> bytes:
        return self._optimized_bytes(output)
