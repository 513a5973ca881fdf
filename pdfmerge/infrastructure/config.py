from __future__ import annotations

import os
from dataclasses import dataclass


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _get_str_env(name: str, default: str | None) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


MAX_TOTAL_PAGES = 150


@dataclass(frozen=True)
class AppConfig:
    max_total_pages: int = _get_int_env("PDF_MERGE_MAX_TOTAL_PAGES", MAX_TOTAL_PAGES)
    max_pdf_size_mb: int = _get_int_env("PDF_MERGE_MAX_PDF_MB", 50)
    max_batch_size_mb: int = _get_int_env("PDF_MERGE_MAX_BATCH_MB", 100)
    merge_read_concurrency: int = _get_int_env("PDF_MERGE_READ_CONCURRENCY", 4)
    log_level: str = _get_str_env("PDF_MERGE_LOG_LEVEL", "INFO") or "INFO"
    output_dir: str | None = _get_str_env("PDF_MERGE_OUTPUT_DIR", None)

    @property
    def max_pdf_size_bytes(self) -> int:
        return self.max_pdf_size_mb * 1024 * 1024

    @property
    def max_batch_size_bytes(self) -> int:
        return self.max_batch_size_mb * 1024 * 1024
