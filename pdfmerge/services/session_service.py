from __future__ import annotations

import logging
import uuid
from collections import Counter
from typing import Iterable, Sequence

from pdfmerge.domain.errors import InvalidPermutationError, NotFoundError
from pdfmerge.domain.models import LoadedSource, SourceItem
from pdfmerge.services.naming import default_output_name

logger = logging.getLogger(__name__)


class MergeSession:
    def __init__(self) -> None:
        self._items: list[SourceItem] = []
        self._issued_ids: set[str] = set()
        self._custom_name: str | None = None
        self._output_name = default_output_name(self._items)

    @property
    def items(self) -> tuple[SourceItem, ...]:
        return tuple(self._items)

    @property
    def item_ids(self) -> list[str]:
        return [item.item_id for item in self._items]

    @property
    def output_name(self) -> str:
        return self._output_name

    def __len__(self) -> int:
        return len(self._items)

    def _new_id(self) -> str:
        while True:
            candidate = uuid.uuid4().hex
            if candidate not in self._issued_ids:
                self._issued_ids.add(candidate)
                return candidate

    def _items_changed(self) -> None:
        if self._custom_name is None:
            self._output_name = default_output_name(self._items)

    def get_item(self, item_id: str) -> SourceItem:
        for item in self._items:
            if item.item_id == item_id:
                return item
        raise NotFoundError(item_id)

    def add_items(self, loaded_batch: Iterable[LoadedSource]) -> list[SourceItem]:
        created = [
            SourceItem(
                item_id=self._new_id(),
                display_name=loaded.display_name,
                location=loaded.location,
                page_count=loaded.page_count,
                size_bytes=loaded.size_bytes,
            )
            for loaded in loaded_batch
        ]
        if not created:
            return []
        self._items = [*self._items, *created]
        self._items_changed()
        logger.info(
            "Added %d item(s); session now holds %d item(s), %d page(s)",
            len(created),
            len(self._items),
            self.total_pages(),
        )
        return created

    def remove_item(self, item_id: str) -> SourceItem:
        removed = self.get_item(item_id)
        self._items = [item for item in self._items if item.item_id != item_id]
        self._items_changed()
        logger.info("Removed item %s (%s)", item_id, removed.display_name)
        return removed

    def reorder(self, new_order: Sequence[str]) -> None:
        current = {item.item_id: item for item in self._items}
        counts = Counter(new_order)
        duplicates = [item_id for item_id, count in counts.items() if count > 1]
        foreign = [item_id for item_id in counts if item_id not in current]
        missing = [item_id for item_id in current if item_id not in counts]
        if duplicates or foreign or missing:
            raise InvalidPermutationError(missing=missing, duplicates=duplicates, foreign=foreign)
        self._items = [current[item_id] for item_id in new_order]
        self._items_changed()

    def move_item(self, item_id: str, new_index: int) -> None:
        order = self.item_ids
        if item_id not in order:
            raise NotFoundError(item_id)
        order.remove(item_id)
        new_index = max(0, min(new_index, len(order)))
        order.insert(new_index, item_id)
        self.reorder(order)

    def clear(self) -> None:
        self._items = []
        self._custom_name = None
        self._items_changed()

    def total_pages(self) -> int:
        return sum(item.page_count for item in self._items)

    def default_output_name(self) -> str:
        return default_output_name(self._items)

    def set_output_name(self, name: str | None) -> None:
        if name is None or not name.strip():
            self._custom_name = None
            self._output_name = self.default_output_name()
            return
        if name == self.default_output_name():
            self._custom_name = None
        else:
            self._custom_name = name
        self._output_name = name

    def effective_output_name(self) -> str:
        name = self._output_name.strip()
        return name or self.default_output_name()
