from __future__ import annotations

import asyncio
from dataclasses import dataclass

import streamlit as st

from pdfmerge.adapters.pymupdf_adapter import PyMuPdfAdapter
from pdfmerge.adapters.storage import FileSystemStorage, InMemoryStorage, StorageAdapter
from pdfmerge.domain.errors import PdfMergeError
from pdfmerge.domain.models import BatchOperationResult, MergeResult
from pdfmerge.infrastructure.config import AppConfig
from pdfmerge.infrastructure.logging_setup import configure_logging
from pdfmerge.services.constraint_gate import ConstraintGate
from pdfmerge.services.ingest_service import IngestService
from pdfmerge.services.loader_service import DocumentLoader
from pdfmerge.services.merge_service import MergeAssembler
from pdfmerge.services.session_service import MergeSession
from pdfmerge.services.workflow_service import MergeWorkflow


@dataclass
class Services:
    config: AppConfig
    session: MergeSession
    staging: InMemoryStorage
    ingest: IngestService
    workflow: MergeWorkflow


def _build_services() -> Services:
    config = AppConfig()
    adapter = PyMuPdfAdapter()
    staging = InMemoryStorage()
    output_storage: StorageAdapter = (
        FileSystemStorage(config.output_dir) if config.output_dir else InMemoryStorage()
    )
    loader = DocumentLoader(adapter, staging)
    session = MergeSession()
    assembler = MergeAssembler(adapter, loader, read_concurrency=config.merge_read_concurrency)
    workflow = MergeWorkflow(
        session,
        ConstraintGate(config.max_total_pages),
        assembler,
        output_storage,
        config,
    )
    return Services(
        config=config,
        session=session,
        staging=staging,
        ingest=IngestService(loader, staging, config),
        workflow=workflow,
    )


def _init_state() -> Services:
    if "services" not in st.session_state:
        st.session_state.services = _build_services()
    st.session_state.setdefault("pending_remove", None)
    st.session_state.setdefault("confirm_merge", False)
    st.session_state.setdefault("merge_result", None)
    st.session_state.setdefault("upload_token", 0)
    return st.session_state.services


def _render_load_report(report: BatchOperationResult) -> None:
    if report.success_count:
        st.success(f"Loaded {report.success_count} PDF(s).")
    for failure in report.failures:
        st.error(f"{failure.source_name}: " + " | ".join(msg.text for msg in failure.messages))


def _add_section(services: Services) -> None:
    config = services.config
    uploaded = st.file_uploader(
        (
            "Add one or more PDFs "
            f"(max {config.max_pdf_size_mb} MB each, "
            f"{config.max_batch_size_mb} MB total)"
        ),
        type=["pdf"],
        accept_multiple_files=True,
        key=f"merge_upload_{st.session_state.upload_token}",
    )
    if st.button("Add PDFs", type="primary", disabled=not uploaded):
        files = [(item.name, item.getvalue()) for item in uploaded] if uploaded else []
        try:
            report = asyncio.run(services.ingest.add_sources(services.session, files))
        except PdfMergeError as exc:
            st.error(str(exc))
        else:
            _render_load_report(report)
            st.session_state.upload_token += 1
            st.session_state.merge_result = None


def _format_size(size_bytes: int) -> str:
    if size_bytes >= 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    return f"{max(1, round(size_bytes / 1024))} KB"


def _remove_item(services: Services, item_id: str) -> None:
    removed = services.session.remove_item(item_id)
    services.staging.discard(removed.location)
    st.session_state.pending_remove = None
    st.session_state.merge_result = None


def _item_list(services: Services) -> None:
    session = services.session
    items = session.items
    if not items:
        st.info("No PDFs added yet.")
        return

    for index, item in enumerate(items):
        number_col, name_col, up_col, down_col, remove_col = st.columns([1, 8, 1, 1, 1])
        number_col.markdown(f"**{index + 1}**")
        name_col.markdown(
            f"{item.display_name}  \n{item.page_count} page(s), {_format_size(item.size_bytes)}"
        )
        if up_col.button("↑", key=f"up_{item.item_id}", disabled=index == 0):
            session.move_item(item.item_id, index - 1)
            st.rerun()
        if down_col.button("↓", key=f"down_{item.item_id}", disabled=index == len(items) - 1):
            session.move_item(item.item_id, index + 1)
            st.rerun()
        if remove_col.button("✕", key=f"remove_{item.item_id}"):
            st.session_state.pending_remove = item.item_id
            st.rerun()

        if st.session_state.pending_remove == item.item_id:
            st.warning(f"Remove {item.display_name} from the merge?")
            confirm_col, cancel_col = st.columns(2)
            if confirm_col.button("Remove", key=f"confirm_remove_{item.item_id}", type="primary"):
                _remove_item(services, item.item_id)
                st.rerun()
            if cancel_col.button("Cancel", key=f"cancel_remove_{item.item_id}"):
                st.session_state.pending_remove = None
                st.rerun()


def _merge_section(services: Services) -> None:
    session = services.session
    workflow = services.workflow
    limit = services.config.max_total_pages
    total_pages = session.total_pages()

    if total_pages > limit:
        st.markdown(f":red[**Total: {total_pages} pages (over the {limit}-page limit)**]")
    else:
        st.markdown(f"**Total: {total_pages} pages**")

    name = st.text_input("Output file name", value=session.output_name)
    if name != session.output_name:
        session.set_output_name(name)

    label = "Merging…" if workflow.is_busy else "Merge PDFs"
    if st.button(label, type="primary", disabled=workflow.is_busy, use_container_width=True):
        gate = workflow.check()
        if gate.ok:
            st.session_state.confirm_merge = True
        else:
            for violation in gate.violations:
                st.error(violation.message)

    if st.session_state.confirm_merge:
        st.info(
            f"File name: {session.effective_output_name()}\n\n"
            f"{len(session)} PDF(s), {total_pages} pages total"
        )
        confirm_col, cancel_col = st.columns(2)
        if confirm_col.button("Merge & Save", type="primary"):
            st.session_state.confirm_merge = False
            st.session_state.merge_result = None
            try:
                with st.spinner("Merging…"):
                    st.session_state.merge_result = asyncio.run(workflow.commit_merge())
            except PdfMergeError as exc:
                st.error(f"Merge failed: {exc}")
        if cancel_col.button("Cancel", key="cancel_merge"):
            st.session_state.confirm_merge = False
            st.rerun()

    result: MergeResult | None = st.session_state.merge_result
    if result is not None:
        st.success(f"Merged {result.merged_pages} pages into {result.output_name}.")
        st.download_button(
            "Download merged PDF",
            data=result.output_pdf,
            file_name=result.output_name,
            mime="application/pdf",
            use_container_width=True,
        )


def main() -> None:
    st.set_page_config(page_title="PDF Merge", layout="centered")
    st.title("PDF Merge", anchor=False)

    services = _init_state()
    configure_logging(services.config.log_level)

    _add_section(services)
    col_reset, col_limits = st.columns([1, 2])
    with col_reset:
        if st.button("New (Reset)"):
            for item in services.session.items:
                services.staging.discard(item.location)
            services.session.clear()
            services.workflow.reset_state()
            st.session_state.merge_result = None
            st.session_state.confirm_merge = False
            st.rerun()
    with col_limits:
        st.caption(f"Merges are limited to {services.config.max_total_pages} pages.")

    _item_list(services)
    _merge_section(services)


if __name__ == "__main__":
    main()
