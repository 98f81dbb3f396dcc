"""Machine-readable run report, written on every run"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, computed_field

from mdxmigrate.core.pipeline import FileResult
from mdxmigrate.core.verify import VerificationResult


class FailureEntry(BaseModel):
    path: str
    stage: str
    reason: str


class UnresolvedEntry(BaseModel):
    path: str
    document: Optional[str] = None
    component: str
    placement: str
    error: str
    slug: Optional[str] = None
    required: bool = False


class MissingFieldsEntry(BaseModel):
    path: str
    document: Optional[str] = None
    fields: list[str]


class ChangeEntry(BaseModel):
    document: str
    status: str
    diff: Optional[dict[str, int]] = None


class RunReport(BaseModel):
    root: str
    collection: str
    dry_run: bool = False
    started_at: str = ""
    finished_at: Optional[str] = None
    discovered: int = 0
    selected: int = 0
    stages: dict[str, int] = {}
    counts: dict[str, int] = {"created": 0, "updated": 0, "unchanged": 0}
    failures: list[FailureEntry] = []
    unresolved: list[UnresolvedEntry] = []
    missing_required: list[MissingFieldsEntry] = []
    changes: list[ChangeEntry] = []
    verification: Optional[VerificationResult] = None
    aborted: Optional[str] = None

    @computed_field
    @property
    def ok(self) -> bool:
        verified = self.verification is None or self.verification.ok
        return not self.failures and not self.aborted and verified

    def record(self, result: FileResult) -> None:
        """Fold one file's outcome into the totals and manifests."""
        self.stages[result.label] = self.stages.get(result.label, 0) + 1
        if result.failed:
            self.failures.append(FailureEntry(path=result.path, stage=result.failed_at.value, reason=result.error or ""))
        if result.missing_fields:
            self.missing_required.append(
                MissingFieldsEntry(path=result.path, document=result.identifier, fields=result.missing_fields)
            )
        for f in result.unresolved:
            self.unresolved.append(UnresolvedEntry(
                path=result.path, document=result.identifier, component=f.usage.name,
                placement=f.usage.placement.value, error=f.error, slug=f.slug, required=f.required,
            ))
        if result.status:
            self.counts[result.status] = self.counts.get(result.status, 0) + 1
            if result.status != "unchanged":
                self.changes.append(ChangeEntry(document=result.identifier, status=result.status, diff=result.diff))


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def write_report(report: RunReport, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report.model_dump_json(indent=2), encoding="utf-8")
    return path


def load_report(path: Path) -> RunReport:
    return RunReport.model_validate_json(Path(path).read_text(encoding="utf-8"))


def failed_paths(report: RunReport) -> list[str]:
    """Source paths to retry: failed files plus documents left with unresolved components."""
    paths = [f.path for f in report.failures] + [u.path for u in report.unresolved]
    return list(dict.fromkeys(paths))
