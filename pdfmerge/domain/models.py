from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Status(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class OperationState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class LocationRef:
    """Opaque handle issued by a storage adapter; only the issuer reads ``token``."""

    token: str


@dataclass(frozen=True)
class LoadedSource:
    display_name: str
    location: LocationRef
    page_count: int
    size_bytes: int = 0


@dataclass(frozen=True)
class SourceItem:
    item_id: str
    display_name: str
    location: LocationRef
    page_count: int
    size_bytes: int = 0


@dataclass
class LoadedDocument:
    page_count: int
    handle: Any = field(repr=False)

    def close(self) -> None:
        self.handle.close()

    def __enter__(self) -> "LoadedDocument":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


@dataclass(frozen=True)
class TooFewItems:
    actual: int
    minimum: int = 2

    @property
    def message(self) -> str:
        return f"Select at least {self.minimum} PDFs to merge (currently {self.actual})."


@dataclass(frozen=True)
class PageLimitExceeded:
    actual: int
    limit: int

    @property
    def message(self) -> str:
        return f"Total is {self.actual} pages; merges are limited to {self.limit} pages."


Violation = TooFewItems | PageLimitExceeded


@dataclass(frozen=True)
class GateResult:
    violations: tuple[Violation, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.violations


@dataclass(frozen=True)
class MergeRequest:
    items: tuple[SourceItem, ...]
    output_name: str
    total_pages: int


@dataclass(frozen=True)
class MergeResult:
    output_name: str
    output_pdf: bytes
    merged_pages: int
    location: LocationRef | None = None


@dataclass(frozen=True)
class OperationMessage:
    level: str
    text: str


@dataclass(frozen=True)
class BatchItemResult:
    position: int
    source_name: str
    status: Status
    messages: list[OperationMessage] = field(default_factory=list)
    item: SourceItem | None = None
    error: Exception | None = field(default=None, compare=False)


@dataclass(frozen=True)
class BatchOperationResult:
    items: list[BatchItemResult]

    @property
    def added(self) -> list[SourceItem]:
        return [result.item for result in self.items if result.item is not None]

    @property
    def failures(self) -> list[BatchItemResult]:
        return [result for result in self.items if result.status == Status.ERROR]

    @property
    def success_count(self) -> int:
        return len([item for item in self.items if item.status == Status.SUCCESS])

    @property
    def error_count(self) -> int:
        return len([item for item in self.items if item.status == Status.ERROR])
