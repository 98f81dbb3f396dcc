from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Column, DateTime, LargeBinary, String, UniqueConstraint
from sqlmodel import Field, SQLModel


class DocumentRow(SQLModel, table=True):
    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("collection", "slug", name="uq_documents_collection_slug"),)
    id: Optional[int] = Field(default=None, primary_key=True)
    collection: str = Field(..., index=True, nullable=False)
    slug: Optional[str] = Field(default=None, index=True)
    data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
    updated_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))


class MediaRow(SQLModel, table=True):
    __tablename__ = "media"
    id: Optional[int] = Field(default=None, primary_key=True)
    filename: str = Field(..., nullable=False)
    mime_type: str = Field(..., nullable=False)
    sha256: str = Field(..., sa_column=Column(String(64), unique=True, nullable=False))
    size: int = Field(default=0, nullable=False)
    data: bytes = Field(..., sa_column=Column(LargeBinary, nullable=False))
    created_at: datetime = Field(default_factory=datetime.now, sa_column=Column(DateTime(timezone=False), nullable=False))
