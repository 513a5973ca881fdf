from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from pdfmerge.domain.models import Violation


class PdfMergeError(Exception):
    pass


class ValidationError(PdfMergeError):
    pass


class MergeBlockedError(ValidationError):
    def __init__(self, violations: Iterable["Violation"]) -> None:
        self.violations = tuple(violations)
        super().__init__("; ".join(violation.message for violation in self.violations))


class ParsingError(PdfMergeError):
    pass


class UnreadableDocumentError(ParsingError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Unable to read PDF: {reason}")


class MalformedEncodingError(ParsingError):
    pass


class FileIOError(PdfMergeError):
    pass


class NotFoundError(PdfMergeError):
    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"No item with id {item_id!r} in this session.")


class InvalidPermutationError(PdfMergeError):
    def __init__(
        self,
        missing: Iterable[str] = (),
        duplicates: Iterable[str] = (),
        foreign: Iterable[str] = (),
    ) -> None:
        self.missing = sorted(set(missing))
        self.duplicates = sorted(set(duplicates))
        self.foreign = sorted(set(foreign))
        details = []
        if self.missing:
            details.append(f"missing={self.missing}")
        if self.duplicates:
            details.append(f"duplicates={self.duplicates}")
        if self.foreign:
            details.append(f"foreign={self.foreign}")
        super().__init__(
            "New order is not a permutation of the session items: " + ", ".join(details)
        )


class MergeInProgressError(PdfMergeError):
    pass


class AssemblyFailedError(PdfMergeError):
    def __init__(
        self, message: str, item_id: str | None = None, display_name: str | None = None
    ) -> None:
        self.item_id = item_id
        self.display_name = display_name
        if item_id is not None:
            message = f"{message} (item {display_name!r}, id {item_id})"
        super().__init__(message)
