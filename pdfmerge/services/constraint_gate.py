from __future__ import annotations

from typing import Sequence

from pdfmerge.domain.models import GateResult, PageLimitExceeded, SourceItem, TooFewItems, Violation
from pdfmerge.services.session_service import MergeSession

MIN_ITEMS = 2


class ConstraintGate:
    def __init__(self, max_total_pages: int) -> None:
        self.max_total_pages = max_total_pages

    def validate(
        self,
        target: MergeSession | Sequence[SourceItem],
        max_total_pages: int | None = None,
    ) -> GateResult:
        items = target.items if isinstance(target, MergeSession) else tuple(target)
        limit = self.max_total_pages if max_total_pages is None else max_total_pages

        violations: list[Violation] = []
        if len(items) < MIN_ITEMS:
            violations.append(TooFewItems(actual=len(items), minimum=MIN_ITEMS))

        total_pages = sum(item.page_count for item in items)
        if total_pages > limit:
            violations.append(PageLimitExceeded(actual=total_pages, limit=limit))

        return GateResult(violations=tuple(violations))
