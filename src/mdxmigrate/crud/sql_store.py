from datetime import datetime
from typing import Optional

from sqlalchemy import func, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from mdxmigrate.core.utils.hashing import sha256_bytes
from mdxmigrate.crud.store import DocumentStore, Page
from mdxmigrate.crud.tables import DocumentRow, MediaRow
from mdxmigrate.errors import StoreConnectionError, StoreWriteError


def _row_to_doc(row: DocumentRow) -> dict:
    return {**row.data, "id": str(row.id)}


def _conditions(collection: str, where: Optional[dict]) -> list:
    conds = [DocumentRow.collection == collection]
    for key, value in (where or {}).items():
        if key == "slug":
            conds.append(DocumentRow.slug == value)
        elif key == "id":
            conds.append(DocumentRow.id == int(value))
        else:
            conds.append(DocumentRow.data[key].as_string() == str(value))
    return conds


class SQLStore(DocumentStore):
    """sqlmodel-backed store: one JSON payload row per document, unique per (collection, slug)."""

    def __init__(self, engine, page_limit: int = 1000):
        self.engine = engine
        self.page_limit = page_limit

    def check(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            raise StoreConnectionError(f"Cannot connect to {self.engine.url}: {e}") from e

    def find(self, collection: str, where: Optional[dict] = None, page: int = 1, limit: int = 100) -> Page:
        limit = max(1, min(limit, self.page_limit))
        conds = _conditions(collection, where)
        with Session(self.engine) as session:
            total = session.exec(select(func.count()).select_from(DocumentRow).where(*conds)).one()
            rows = session.exec(
                select(DocumentRow).where(*conds).order_by(DocumentRow.id)
                .offset((page - 1) * limit).limit(limit)
            ).all()
            return Page(docs=[_row_to_doc(r) for r in rows], total_docs=total, page=page, limit=limit)

    def create(self, collection: str, data: dict) -> dict:
        payload = {k: v for k, v in data.items() if k != "id"}
        row = DocumentRow(collection=collection, slug=payload.get("slug"), data=payload)
        try:
            with Session(self.engine) as session:
                session.add(row)
                session.commit()
                session.refresh(row)
                return _row_to_doc(row)
        except IntegrityError as e:
            raise StoreWriteError(f"Duplicate slug {payload.get('slug')!r} in {collection!r}") from e
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Create in {collection!r} failed: {e}") from e

    def update(self, collection: str, id: str, data: dict) -> dict:
        payload = {k: v for k, v in data.items() if k != "id"}
        try:
            with Session(self.engine) as session:
                row = session.get(DocumentRow, int(id))
                if row is None or row.collection != collection:
                    raise StoreWriteError(f"No document {id!r} in {collection!r}")
                row.slug = payload.get("slug")
                row.data = payload
                row.updated_at = datetime.now()
                session.add(row)
                session.commit()
                session.refresh(row)
                return _row_to_doc(row)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Update of {id!r} in {collection!r} failed: {e}") from e

    def delete(self, collection: str, id: str) -> None:
        try:
            with Session(self.engine) as session:
                row = session.get(DocumentRow, int(id))
                if row is not None and row.collection == collection:
                    session.delete(row)
                    session.commit()
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Delete of {id!r} in {collection!r} failed: {e}") from e

    def upload(self, filename: str, data: bytes, mime_type: str) -> str:
        """Store a blob once per SHA-256; re-uploads return the existing reference.

        Concurrent uploads of the same bytes race on the unique sha256 column; the loser
        rolls back and returns the winner's row.
        """
        digest = sha256_bytes(data)
        by_digest = select(MediaRow).where(MediaRow.sha256 == digest)
        try:
            with Session(self.engine) as session:
                row = session.exec(by_digest).first()
                if row is not None:
                    return str(row.id)
                row = MediaRow(filename=filename, mime_type=mime_type, sha256=digest, size=len(data), data=data)
                session.add(row)
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    row = session.exec(by_digest).first()
                    if row is None:
                        raise
                    return str(row.id)
                session.refresh(row)
                return str(row.id)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Upload of {filename!r} failed: {e}") from e
