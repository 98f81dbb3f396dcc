"""CLI command implementations"""

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from mdxmigrate.config import Settings, load_config
from mdxmigrate.core.batch import run_batch
from mdxmigrate.core.components import ComponentTable, default_table, load_component_table
from mdxmigrate.core.parse import discover_files
from mdxmigrate.core.report import RunReport, failed_paths, load_report
from mdxmigrate.core.schema import analyze_corpus
from mdxmigrate.core.verify import verify_collection
from mdxmigrate.crud.database import init_db, make_engine
from mdxmigrate.crud.registry import load_registry_entries, seed_registry
from mdxmigrate.crud.sql_store import SQLStore
from mdxmigrate.crud.store import purge
from mdxmigrate.errors import MigrationError


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then configure logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return settings


def _store(settings: Settings) -> SQLStore:
    engine = make_engine(settings.db_url, settings.store_timeout)
    try:
        init_db(engine)
    except Exception as e:
        _fail(f"Cannot initialize store at {settings.db_url}", e)
    return SQLStore(engine)


def _table(settings: Settings) -> ComponentTable:
    if not settings.components_file:
        return default_table()
    try:
        return load_component_table(Path(settings.components_file))
    except MigrationError as e:
        _fail(str(e))


def _echo_report(report: RunReport, report_path: Path) -> None:
    """Print failures, unresolved components and a summary line."""
    for f in report.failures:
        typer.echo(f"  failed@{f.stage}: {f.path} - {f.reason}")
    for u in report.unresolved:
        slug = f" ({u.slug})" if u.slug else ""
        typer.echo(f"  unresolved: {u.path} <{u.component}/> {u.error}{slug}")
    if report.verification is not None:
        v = report.verification
        typer.echo(f"Verification {'passed' if v.ok else 'FAILED'} - {v.actual}/{v.expected} document(s)")
        for s in v.sample_failures:
            typer.echo(f"  {s.slug}: {', '.join(s.problems)}")
    typer.echo(
        f"Migration complete - "
        f"{report.counts.get('created', 0)} created, "
        f"{report.counts.get('updated', 0)} updated, "
        f"{report.counts.get('unchanged', 0)} unchanged, "
        f"{len(report.failures)} failed"
        f"{' (dry run)' if report.dry_run else ''}"
    )
    typer.echo(f"Report written to {report_path}")


def migrate_cmd(
    root: Annotated[str, typer.Argument(help="Source root directory (or a single file)")],
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Transform and report without writing")] = False,
    purge_first: Annotated[bool, typer.Option("--purge", help="Delete the target collection first")] = False,
    offset: Annotated[int, typer.Option("--offset", min=0, help="Resume from this file index")] = 0,
    retry_from: Annotated[Optional[str], typer.Option("--retry-from", help="Only retry files failed in this report")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Files transformed concurrently")] = None,
    report: Annotated[Optional[str], typer.Option("--report", help="Run report output path")] = None,
    components: Annotated[Optional[str], typer.Option("--components", help="Component table YAML")] = None,
    on_unresolved: Annotated[Optional[str], typer.Option("--on-unresolved", help="placeholder or fail")] = None,
    ):
    """Run the full migration: parse, map, convert, resolve, split, upsert, verify."""
    settings = _settings(overrides={
        "workers": workers, "report_path": report,
        "components_file": components, "on_unresolved": on_unresolved,
    })
    table = _table(settings)
    store = _store(settings)
    report_path = Path(settings.report_path)

    only = None
    if retry_from:
        try:
            only = failed_paths(load_report(Path(retry_from)))
        except (OSError, ValueError) as e:
            _fail(f"Cannot read report {retry_from}", e)
        typer.echo(f"Retrying {len(only)} file(s) from {retry_from}")

    try:
        result = run_batch(
            Path(root), store, settings, table,
            dry_run=dry_run, purge_first=purge_first, offset=offset, only=only,
            report_path=report_path,
        )
    except FileNotFoundError as e:
        _fail(str(e))
    except MigrationError as e:
        _fail("Migration aborted", e)

    _echo_report(result, report_path)
    if not result.ok:
        raise typer.Exit(1)


def seed_registry_cmd(
    file: Annotated[str, typer.Argument(help="YAML file of registry entries")],
    purge_first: Annotated[bool, typer.Option("--purge", help="Delete existing entries first")] = False,
    ):
    """Seed the data registry. Run before migrating documents that reference it."""
    settings = _settings()
    store = _store(settings)
    try:
        entries = load_registry_entries(Path(file))
        counts = seed_registry(
            store, settings.registry_collection, entries, purge_first=purge_first,
            page_size=settings.page_size, max_pages=settings.max_pages,
        )
    except MigrationError as e:
        _fail("Seeding failed", e)
    typer.echo(
        f"Seed complete - "
        f"{counts['created']} created, "
        f"{counts['updated']} updated, "
        f"{counts['unchanged']} unchanged"
        f"{', ' + str(counts['purged']) + ' purged' if purge_first else ''}"
    )


def analyze_cmd(
    root: Annotated[str, typer.Argument(help="Source root directory")],
    out: Annotated[Optional[str], typer.Option("--out", help="Write the analysis JSON here")] = None,
    components: Annotated[Optional[str], typer.Option("--components", help="Component table YAML")] = None,
    ):
    """Infer frontmatter field types across the corpus and count component usages."""
    settings = _settings(overrides={"components_file": components})
    table = _table(settings)
    try:
        analysis = analyze_corpus(Path(root), table, settings.collection, settings.extension, settings.parser_config)
    except (OSError, MigrationError) as e:
        _fail("Analysis failed", e)

    for name, profile in analysis.fields.items():
        typer.echo(f"  {name}: {profile.inferred} ({profile.files}/{analysis.files} file(s))")
    for entry in analysis.components.entries:
        mark = "" if entry.mapped else "  [unmapped]"
        typer.echo(f"  <{entry.name}/> {entry.placement} x{entry.count}{mark}")
    if out:
        Path(out).write_text(json.dumps(analysis.model_dump(mode="json"), indent=2))
        typer.echo(f"Analysis written to {out}")
    typer.echo(
        f"Analyzed {analysis.files} file(s): {len(analysis.fields)} field(s), "
        f"{len(analysis.components.unmapped)} unmapped component(s)"
    )


def purge_cmd(
    registry: Annotated[bool, typer.Option("--registry", help="Purge the registry collection instead")] = False,
    ):
    """Delete every document in the target collection (page by page)."""
    settings = _settings()
    store = _store(settings)
    collection = settings.registry_collection if registry else settings.collection
    try:
        removed = purge(store, collection, page_size=settings.page_size, max_pages=settings.max_pages)
    except MigrationError as e:
        _fail("Purge failed", e)
    typer.echo(f"Purged {removed} document(s) from {collection}")


def verify_cmd(
    expected: Annotated[Optional[int], typer.Option("--expected", help="Expected document count")] = None,
    root: Annotated[Optional[str], typer.Option("--root", help="Expect one document per source file here")] = None,
    ):
    """Check the stored document count and deep-check a random sample."""
    settings = _settings(overrides={"expected_count": expected})
    count = settings.expected_count
    if not count and root:
        try:
            count = len(discover_files(Path(root), settings.extension))
        except FileNotFoundError as e:
            _fail(str(e))
    store = _store(settings)
    try:
        result = verify_collection(
            store, settings.collection, count,
            sample_size=settings.sample_size, seed=settings.sample_seed,
            page_size=settings.page_size, max_pages=settings.max_pages,
        )
    except MigrationError as e:
        _fail("Verification failed", e)
    for s in result.sample_failures:
        typer.echo(f"  {s.slug}: {', '.join(s.problems)}")
    for slug in result.duplicate_slugs:
        typer.echo(f"  duplicate slug: {slug}")
    typer.echo(f"Verification {'passed' if result.ok else 'FAILED'} - {result.actual}/{result.expected} document(s)")
    if not result.ok:
        raise typer.Exit(1)
