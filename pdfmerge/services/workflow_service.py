from __future__ import annotations

import logging

from pdfmerge.adapters.storage import DiscardableStorage, ShareCallback, StorageAdapter
from pdfmerge.domain.errors import MergeBlockedError, MergeInProgressError
from pdfmerge.domain.models import GateResult, MergeRequest, MergeResult, OperationState
from pdfmerge.infrastructure.config import AppConfig
from pdfmerge.services.constraint_gate import ConstraintGate
from pdfmerge.services.merge_service import MergeAssembler
from pdfmerge.services.session_service import MergeSession

logger = logging.getLogger(__name__)


class MergeWorkflow:
    def __init__(
        self,
        session: MergeSession,
        gate: ConstraintGate,
        assembler: MergeAssembler,
        storage: StorageAdapter,
        config: AppConfig,
    ) -> None:
        self.session = session
        self.gate = gate
        self.assembler = assembler
        self.storage = storage
        self.config = config
        self.state = OperationState.IDLE
        self.last_error: Exception | None = None
        self.last_result: MergeResult | None = None

    @property
    def is_busy(self) -> bool:
        return self.state == OperationState.RUNNING

    def check(self) -> GateResult:
        return self.gate.validate(self.session, self.config.max_total_pages)

    def build_request(self) -> MergeRequest:
        result = self.check()
        if not result.ok:
            raise MergeBlockedError(result.violations)
        return MergeRequest(
            items=self.session.items,
            output_name=self.session.effective_output_name(),
            total_pages=self.session.total_pages(),
        )

    def reset_state(self) -> None:
        if self.is_busy:
            raise MergeInProgressError("Cannot reset while a merge is running.")
        self.state = OperationState.IDLE
        self.last_error = None
        self.release_output()

    def release_output(self) -> None:
        result = self.last_result
        self.last_result = None
        if result is None or result.location is None:
            return
        if isinstance(self.storage, DiscardableStorage):
            self.storage.discard(result.location)
            logger.debug("Discarded previous output %s", result.output_name)

    async def commit_merge(self, share: ShareCallback | None = None) -> MergeResult:
        if self.is_busy:
            raise MergeInProgressError("A merge is already in progress.")
        request = self.build_request()

        self.release_output()
        self.state = OperationState.RUNNING
        self.last_error = None
        logger.info(
            "Merging %d item(s), %d page(s) into %s",
            len(request.items),
            request.total_pages,
            request.output_name,
        )
        try:
            output_pdf = await self.assembler.assemble(request.items)
            location = await self.storage.write_all(output_pdf, request.output_name)
            if share is not None:
                await share(location)
        except Exception as exc:
            self.state = OperationState.FAILED
            self.last_error = exc
            logger.error("Merge into %s failed: %s", request.output_name, exc)
            raise

        result = MergeResult(
            output_name=request.output_name,
            output_pdf=output_pdf,
            merged_pages=request.total_pages,
            location=location,
        )
        self.state = OperationState.SUCCEEDED
        self.last_result = result
        return result
