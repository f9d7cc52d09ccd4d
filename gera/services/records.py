"""
Lifecycle of image-bearing records (articles and advertiser leads).

A record owns at most one stored image. Replacing or deleting the record's
image removes the previous file from storage only after the database no
longer references it; a file that fails to store never becomes referenced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, ClassVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from gera.core.exceptions import MissingFields, NotFound, ValidationError
from gera.db.base import Base
from gera.models.article import Article
from gera.models.lead import LEAD_PENDING, VALID_LEAD_STATUSES, Lead
from gera.storage import AbstractStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadedImage:
    data: bytes
    content_type: str | None
    filename: str | None = None


class MediaRecordManager:
    """Create / update / delete for one model class with an ``image`` column."""

    model: ClassVar[type[Base]]
    label: ClassVar[str]
    required_fields: ClassVar[tuple[str, ...]]
    optional_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, db: AsyncSession, storage: AbstractStorage) -> None:
        self.db = db
        self.storage = storage

    # ── Field handling ──────────────────────────────────────────────
    def _clean(self, fields: dict[str, Any], partial: bool) -> dict[str, Any]:
        allowed = self.required_fields + self.optional_fields
        cleaned: dict[str, Any] = {}
        for name, value in fields.items():
            if name not in allowed or value is None:
                continue
            cleaned[name] = value.strip() if isinstance(value, str) else value

        missing = [
            name
            for name in self.required_fields
            if (not partial and not cleaned.get(name))
            or (partial and name in cleaned and not cleaned[name])
        ]
        if missing:
            raise MissingFields(missing)
        self.validate(cleaned)
        return cleaned

    def validate(self, fields: dict[str, Any]) -> None:
        """Hook for kind-specific validation of cleaned fields."""

    async def _discard(self, reference: str | None) -> None:
        """Best-effort removal of a file no record references any more."""
        if not reference:
            return
        try:
            await self.storage.delete(reference)
        except OSError as exc:
            logger.warning("Could not remove %s image %s: %s", self.label, reference, exc)

    async def _commit_or_discard(self, new_reference: str | None) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            await self._discard(new_reference)
            raise

    # ── Queries ─────────────────────────────────────────────────────
    async def get(self, record_id: int) -> Any:
        result = await self.db.execute(select(self.model).where(self.model.id == record_id))
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFound(f"{self.label.capitalize()} not found")
        return record

    async def list_all(self) -> list[Any]:
        result = await self.db.execute(
            select(self.model).order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(self.model.id)))
        return result.scalar() or 0

    # ── Lifecycle ───────────────────────────────────────────────────
    async def create(self, fields: dict[str, Any], upload: UploadedImage | None = None) -> Any:
        cleaned = self._clean(fields, partial=False)

        reference = None
        if upload is not None:
            reference = await self.storage.store(upload.data, upload.content_type, upload.filename)

        record = self.model(**cleaned, image=reference)
        self.db.add(record)
        await self._commit_or_discard(reference)
        await self.db.refresh(record)
        logger.info("Created %s %d (image=%s)", self.label, record.id, reference)
        return record

    async def update(
        self,
        record_id: int,
        fields: dict[str, Any],
        upload: UploadedImage | None = None,
        image_ref: str | None = None,
    ) -> Any:
        record = await self.get(record_id)
        cleaned = self._clean(fields, partial=True)

        old_reference = record.image
        reference = old_reference
        new_reference = None
        if upload is not None:
            # Store first: a rejected upload leaves the record untouched
            new_reference = await self.storage.store(
                upload.data, upload.content_type, upload.filename
            )
            reference = new_reference
        elif image_ref is not None and image_ref.strip():
            reference = self.storage.reference_for(image_ref.strip())
            if reference is None:
                raise ValidationError("Image reference does not match a stored file")

        for name, value in cleaned.items():
            setattr(record, name, value)
        record.image = reference

        await self._commit_or_discard(new_reference)
        await self.db.refresh(record)

        if old_reference and old_reference != reference:
            await self._discard(old_reference)
        logger.info("Updated %s %d", self.label, record_id)
        return record

    async def delete(self, record_id: int) -> None:
        record = await self.get(record_id)
        await self._discard(record.image)
        await self.db.delete(record)
        await self.db.commit()
        logger.info("Deleted %s %d", self.label, record_id)


class ArticleManager(MediaRecordManager):
    model = Article
    label = "article"
    required_fields = ("title", "summary", "body", "category")

    async def list_public(self, category: str | None = None) -> list[Article]:
        query = select(Article).order_by(Article.created_at.desc(), Article.id.desc())
        if category:
            query = query.where(Article.category == category)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def latest(self) -> Article | None:
        result = await self.db.execute(
            select(Article).order_by(Article.created_at.desc(), Article.id.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def search(self, term: str) -> list[Article]:
        # Escape SQL LIKE metacharacters to prevent wildcard injection
        safe = term.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")
        pattern = f"%{safe}%"
        result = await self.db.execute(
            select(Article)
            .where(
                Article.title.ilike(pattern, escape="\\")
                | Article.summary.ilike(pattern, escape="\\")
                | Article.body.ilike(pattern, escape="\\")
            )
            .order_by(Article.created_at.desc(), Article.id.desc())
        )
        return list(result.scalars().all())


class LeadManager(MediaRecordManager):
    model = Lead
    label = "lead"
    required_fields = ("name", "company", "email", "phone", "kind", "message")
    optional_fields = ("status",)

    def validate(self, fields: dict[str, Any]) -> None:
        status = fields.get("status")
        if status is not None and status not in VALID_LEAD_STATUSES:
            raise ValidationError(
                f"Status must be one of: {', '.join(sorted(VALID_LEAD_STATUSES))}"
            )

    async def submit(self, fields: dict[str, Any], upload: UploadedImage | None = None) -> Lead:
        """Public submission: always enters the review queue as pending."""
        fields = {**fields, "status": LEAD_PENDING}
        return await self.create(fields, upload)

    async def count_by_status(self, status: str) -> int:
        result = await self.db.execute(select(func.count(Lead.id)).where(Lead.status == status))
        return result.scalar() or 0
