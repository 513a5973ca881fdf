from __future__ import annotations

import re
from typing import Sequence

from pdfmerge.domain.models import SourceItem

PDF_SUFFIX_PATTERN = re.compile(r"\.pdf$", flags=re.IGNORECASE)
EMPTY_SESSION_NAME = "merged.pdf"


def strip_pdf_suffix(name: str) -> str:
    return PDF_SUFFIX_PATTERN.sub("", name)


def default_output_name(items: Sequence[SourceItem]) -> str:
    if not items:
        return EMPTY_SESSION_NAME
    return f"{strip_pdf_suffix(items[0].display_name)}_merged.pdf"
