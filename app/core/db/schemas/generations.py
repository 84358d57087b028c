from __future__ import annotations

from datetime import datetime
from typing import Optional
from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.core.db.base import Base


class Generation(Base):
    """Metadata of one successful flashcard generation."""

    __tablename__ = "generations"
    __table_args__ = (
        CheckConstraint(
            "source_text_length BETWEEN 1000 AND 10000",
            name="ck_generations_source_text_length",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    model: Mapped[str] = mapped_column(String, nullable=False)
    generated_count: Mapped[int] = mapped_column(Integer, nullable=False)
    # Filled later by the review workflow
    accepted_unedited_count: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    accepted_edited_count: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True
    )
    source_text_hash: Mapped[str] = mapped_column(String, nullable=False)
    source_text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    generation_duration: Mapped[int] = mapped_column(Integer, nullable=False)  # ms
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class GenerationErrorLog(Base):
    """A classified generation failure kept for diagnostics."""

    __tablename__ = "generation_error_logs"
    __table_args__ = (
        CheckConstraint(
            "source_text_length BETWEEN 1000 AND 10000",
            name="ck_generation_error_logs_source_text_length",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[str] = mapped_column(String, nullable=False, index=True)
    model: Mapped[str] = mapped_column(String, nullable=False)
    source_text_hash: Mapped[str] = mapped_column(String, nullable=False)
    source_text_length: Mapped[int] = mapped_column(Integer, nullable=False)
    error_code: Mapped[str] = mapped_column(String(100), nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )


__all__ = [
    "Generation",
    "GenerationErrorLog",
]
