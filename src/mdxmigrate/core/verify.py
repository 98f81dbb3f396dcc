"""Post-batch verification: record count and a random-sample deep-field check"""

import logging
import random
from typing import Optional

from pydantic import BaseModel, computed_field

from mdxmigrate.core.fields import PLACEHOLDER_TITLE, REQUIRED_FIELDS
from mdxmigrate.crud.store import DocumentStore, iter_all


logger = logging.getLogger(__name__)


class SampleProblem(BaseModel):
    slug: Optional[str] = None
    problems: list[str]


class VerificationResult(BaseModel):
    collection: str
    expected: int
    actual: int
    duplicate_slugs: list[str] = []
    sampled: list[str] = []
    sample_failures: list[SampleProblem] = []

    @computed_field
    @property
    def ok(self) -> bool:
        return self.expected == self.actual and not self.duplicate_slugs and not self.sample_failures


def check_document(doc: dict) -> list[str]:
    """Problems with a stored document: missing required fields or no content blocks."""
    problems = [f"missing {name}" for name in REQUIRED_FIELDS if not doc.get(name)]
    if doc.get("title") == PLACEHOLDER_TITLE:
        problems.append("missing title")
    blocks = doc.get("contentBlocks")
    if not isinstance(blocks, list) or not blocks:
        problems.append("no content blocks")
    return problems


def verify_collection(
    store: DocumentStore,
    collection: str,
    expected: int,
    sample_size: int = 10,
    seed: int = 0,
    page_size: int = 100,
    max_pages: int = 10000,
    ) -> VerificationResult:
    """Count every stored document (paginated) and deep-check a seeded random sample.

    Failures are reported, not fixed.
    """
    docs = list(iter_all(store, collection, page_size=page_size, max_pages=max_pages))
    slugs = [d.get("slug") for d in docs]
    seen, dupes = set(), set()
    for s in slugs:
        (dupes if s in seen else seen).add(s)

    sample = random.Random(seed).sample(docs, min(sample_size, len(docs)))
    failures = []
    for doc in sample:
        problems = check_document(doc)
        if problems:
            failures.append(SampleProblem(slug=doc.get("slug"), problems=problems))

    result = VerificationResult(
        collection=collection, expected=expected, actual=len(docs),
        duplicate_slugs=sorted(str(s) for s in dupes),
        sampled=[str(d.get("slug")) for d in sample], sample_failures=failures,
    )
    if not result.ok:
        logger.warning(
            "Verification of %s failed: expected %d, found %d, %d sample failure(s)",
            collection, expected, result.actual, len(failures),
        )
    return result
