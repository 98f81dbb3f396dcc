"""Batch runner: preflight, chunked fan-out, sequential upserts, verification, report"""

import logging
import queue
import threading
import time
from collections import defaultdict, deque
from pathlib import Path
from typing import Optional

from mdxmigrate.config import Settings
from mdxmigrate.core.components import ComponentTable
from mdxmigrate.core.fields import derive_identifier
from mdxmigrate.core.parse import discover_files
from mdxmigrate.core.pipeline import FATAL_ERRORS, FileResult, FileStage, PipelineOptions, transform_file
from mdxmigrate.core.report import RunReport, now_iso, write_report
from mdxmigrate.core.resolve import MediaUploader
from mdxmigrate.core.utils.diff import payload_diff_summary
from mdxmigrate.core.verify import verify_collection
from mdxmigrate.crud.registry import StoreRegistry
from mdxmigrate.crud.store import DocumentStore, purge, upsert_by_slug
from mdxmigrate.errors import ConfigurationError, DuplicateIdentifierError, StoreWriteError


logger = logging.getLogger(__name__)


def _relative(path: Path, root: Path) -> str:
    base = root.parent if root.is_file() else root
    return path.resolve().relative_to(base.resolve()).as_posix()


def find_duplicate_identifiers(files: list[Path], root: Path, extension: str) -> dict[str, list[str]]:
    """identifier -> relative paths, for identifiers derived from more than one file."""
    by_id: dict[str, list[str]] = defaultdict(list)
    for f in files:
        rel = _relative(f, root)
        by_id[derive_identifier(rel, extension)].append(rel)
    return {ident: paths for ident, paths in by_id.items() if len(paths) > 1}


def _chunks(items: list, size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]


class _Job:
    """One file in flight on its own daemon thread."""

    def __init__(self, path: Path, result: FileResult):
        self.path = path
        self.result = result
        self.outcome: Optional[FileResult] = None    # written by the worker thread
        self.final: Optional[FileResult] = None      # written by the scheduler only
        self.error: Optional[Exception] = None
        self.deadline = 0.0

    def run(self, args: tuple, finished: queue.Queue) -> None:
        try:
            self.outcome = transform_file(self.path, *args, result=self.result)
        except Exception as e:
            self.error = e
        finally:
            finished.put(self)


def _transform_chunk(chunk, root, table, registry, uploader, options, settings) -> list[FileResult]:
    """Transform files with at most settings.workers running at once.

    Each file's deadline starts when its thread starts. A file past its deadline is
    demoted to failed and its slot is handed to the next queued file; the abandoned
    daemon thread is never joined.
    """
    args = (root, table, registry, uploader, options)
    jobs = [_Job(p, FileResult(path=_relative(p, root))) for p in chunk]
    pending = deque(jobs)
    running: list[_Job] = []
    finished: queue.Queue = queue.Queue()

    while pending or running:
        while pending and len(running) < settings.workers:
            job = pending.popleft()
            job.deadline = time.monotonic() + settings.file_timeout
            threading.Thread(
                target=job.run, args=(args, finished), daemon=True,
                name=f"mdxmigrate-{job.result.path}",
            ).start()
            running.append(job)

        wait = min(job.deadline for job in running) - time.monotonic()
        try:
            done = finished.get(timeout=max(wait, 0))
        except queue.Empty:
            done = None
        if done is not None and done in running:
            running.remove(done)
            if done.error is not None:
                raise done.error
            done.final = done.outcome

        now = time.monotonic()
        for job in [j for j in running if j.deadline <= now]:
            running.remove(job)
            snapshot = job.result
            timed_out = FileResult(path=snapshot.path, identifier=snapshot.identifier, stage=snapshot.stage)
            job.final = timed_out.fail(f"timed out after {settings.file_timeout}s")
            logger.warning("Abandoned %s after %ss", snapshot.path, settings.file_timeout)

    return [job.final for job in jobs]


def _upsert(result: FileResult, store: DocumentStore, collection: str) -> None:
    try:
        outcome = upsert_by_slug(store, collection, result.payload)
    except (StoreWriteError, DuplicateIdentifierError) as e:
        result.fail(str(e), at=FileStage.upserted)
        return
    result.status = outcome.status
    if outcome.status == "updated":
        result.diff = payload_diff_summary(outcome.previous, result.payload)
    result.advance(FileStage.upserted)


def _log_failure(result: FileResult) -> None:
    logger.warning("%s failed at %s: %s", result.path, result.failed_at.value, result.error)


def run_batch(
    root: Path,
    store: DocumentStore,
    settings: Settings,
    table: ComponentTable,
    dry_run: bool = False,
    purge_first: bool = False,
    offset: int = 0,
    only: Optional[list[str]] = None,
    report_path: Optional[Path] = None,
    ) -> RunReport:
    """Migrate every source file under root into settings.collection.

    Per-file failures land in the report; store, configuration and pagination errors
    abort the batch (the report is still written when report_path is given).
    """
    root = Path(root)
    report = RunReport(root=str(root), collection=settings.collection, dry_run=dry_run, started_at=now_iso())
    try:
        files = discover_files(root, settings.extension)
        report.discovered = len(files)

        # --- preflight ---
        store.check()
        registry = StoreRegistry(store, settings.registry_collection, settings.page_size, settings.max_pages)
        if table.needs_registry and len(registry) == 0:
            raise ConfigurationError(
                f"Registry collection {settings.registry_collection!r} is empty; "
                "run 'mdxmigrate seed-registry' before migrating"
            )
        duplicates = find_duplicate_identifiers(files, root, settings.extension)

        if purge_first and not dry_run:
            removed = purge(store, settings.collection, page_size=settings.page_size, max_pages=settings.max_pages)
            logger.info("Purged %d document(s) from %s", removed, settings.collection)

        selected = files[offset:]
        if only is not None:
            wanted = set(only)
            selected = [f for f in selected if _relative(f, root) in wanted]
        report.selected = len(selected)

        options = PipelineOptions(settings.parser_config, settings.extension, settings.on_unresolved)
        uploader = MediaUploader(store, dry_run=dry_run)
        dup_paths = {p: ident for ident, paths in duplicates.items() for p in paths}

        for chunk in _chunks(selected, settings.chunk_size):
            todo = [f for f in chunk if _relative(f, root) not in dup_paths]
            for f in chunk:
                rel = _relative(f, root)
                if rel in dup_paths:
                    others = [p for p in duplicates[dup_paths[rel]] if p != rel]
                    result = FileResult(path=rel, identifier=dup_paths[rel], stage=FileStage.parsed)
                    result.fail(str(DuplicateIdentifierError(
                        f"Identifier {dup_paths[rel]!r} also derived from {', '.join(others)}"
                    )))
                    _log_failure(result)
                    report.record(result)

            # barrier: the whole chunk is transformed before any upsert
            for result in _transform_chunk(todo, root, table, registry, uploader, options, settings):
                if not result.failed and not dry_run:
                    _upsert(result, store, settings.collection)
                if result.failed:
                    _log_failure(result)
                report.record(result)

        if not dry_run:
            report.verification = verify_collection(
                store, settings.collection,
                expected=settings.expected_count or len(files),
                sample_size=settings.sample_size, seed=settings.sample_seed,
                page_size=settings.page_size, max_pages=settings.max_pages,
            )
    except FATAL_ERRORS as e:
        report.aborted = f"{type(e).__name__}: {e}"
        raise
    finally:
        report.finished_at = now_iso()
        if report_path is not None:
            write_report(report, report_path)
    return report
