"""
Admin endpoints: dashboard, user listing / CSV export, article & lead CRUD,
generic image upload.

Every route in this module sits behind ``require_admin``.
"""

from __future__ import annotations

import csv
import io
import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from gera.api.deps import (get_article_manager, get_db, get_lead_manager,
                           get_storage, require_admin)
from gera.api.uploads import read_upload, with_image_url
from gera.core.exceptions import ValidationError
from gera.models.lead import LEAD_ACTIVE, LEAD_PENDING
from gera.schemas.content import (ArticleRead, CreatedResponse, DashboardStats,
                                  DeleteResponse, LeadRead, UploadResponse)
from gera.schemas.user import UserRead
from gera.services.credentials import CredentialStore
from gera.services.records import ArticleManager, LeadManager
from gera.storage import AbstractStorage

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


# ── Dashboard ───────────────────────────────────────────────────────
@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(
    db: AsyncSession = Depends(get_db),
    articles: ArticleManager = Depends(get_article_manager),
    leads: LeadManager = Depends(get_lead_manager),
) -> DashboardStats:
    return DashboardStats(
        total_users=await CredentialStore(db).count(),
        total_articles=await articles.count(),
        active_leads=await leads.count_by_status(LEAD_ACTIVE),
        pending_leads=await leads.count_by_status(LEAD_PENDING),
    )


# ── Users ───────────────────────────────────────────────────────────
@router.get("/users", response_model=list[UserRead])
async def list_users(db: AsyncSession = Depends(get_db)):
    return await CredentialStore(db).list_users()


@router.get("/users/export")
async def export_users(db: AsyncSession = Depends(get_db)) -> StreamingResponse:
    """Export registered users as a CSV file download."""
    users = await CredentialStore(db).list_users()

    def iter_csv():
        buf = io.StringIO()
        writer = csv.writer(buf, quoting=csv.QUOTE_ALL)
        writer.writerow(["Name", "Email", "Registered at"])
        for user in users:
            created = user.created_at.strftime("%d/%m/%Y") if user.created_at else ""
            writer.writerow([user.name or "", user.email, created])
            yield buf.getvalue()
            buf.seek(0)
            buf.truncate(0)
        yield buf.getvalue()

    return StreamingResponse(
        iter_csv(),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=users.csv"},
    )


# ── Articles ────────────────────────────────────────────────────────
@router.get("/articles", response_model=list[ArticleRead])
async def list_articles(
    articles: ArticleManager = Depends(get_article_manager),
    storage: AbstractStorage = Depends(get_storage),
) -> list[ArticleRead]:
    return [with_image_url(ArticleRead, a, storage) for a in await articles.list_all()]


@router.post("/articles", response_model=CreatedResponse, status_code=201)
async def create_article(
    title: str | None = Form(None),
    summary: str | None = Form(None),
    body: str | None = Form(None),
    category: str | None = Form(None),
    image: UploadFile | None = File(None),
    articles: ArticleManager = Depends(get_article_manager),
) -> CreatedResponse:
    article = await articles.create(
        {"title": title, "summary": summary, "body": body, "category": category},
        await read_upload(image),
    )
    return CreatedResponse(id=article.id)


@router.put("/articles/{article_id}", response_model=ArticleRead)
async def update_article(
    article_id: int,
    title: str | None = Form(None),
    summary: str | None = Form(None),
    body: str | None = Form(None),
    category: str | None = Form(None),
    image_ref: str | None = Form(None),
    image: UploadFile | None = File(None),
    articles: ArticleManager = Depends(get_article_manager),
    storage: AbstractStorage = Depends(get_storage),
) -> ArticleRead:
    """Update text fields; a new ``image`` replaces (and removes) the old file."""
    article = await articles.update(
        article_id,
        {"title": title, "summary": summary, "body": body, "category": category},
        await read_upload(image),
        image_ref,
    )
    return with_image_url(ArticleRead, article, storage)


@router.delete("/articles/{article_id}", response_model=DeleteResponse)
async def delete_article(
    article_id: int,
    articles: ArticleManager = Depends(get_article_manager),
) -> DeleteResponse:
    await articles.delete(article_id)
    return DeleteResponse(message=f"Article {article_id} deleted")


# ── Leads ───────────────────────────────────────────────────────────
@router.get("/leads", response_model=list[LeadRead])
async def list_leads(
    leads: LeadManager = Depends(get_lead_manager),
    storage: AbstractStorage = Depends(get_storage),
) -> list[LeadRead]:
    return [with_image_url(LeadRead, lead, storage) for lead in await leads.list_all()]


@router.post("/leads", response_model=CreatedResponse, status_code=201)
async def create_lead(
    name: str | None = Form(None),
    company: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    kind: str | None = Form(None),
    message: str | None = Form(None),
    status: str | None = Form(None),
    image: UploadFile | None = File(None),
    leads: LeadManager = Depends(get_lead_manager),
) -> CreatedResponse:
    lead = await leads.create(
        {
            "name": name,
            "company": company,
            "email": email,
            "phone": phone,
            "kind": kind,
            "message": message,
            "status": status,
        },
        await read_upload(image),
    )
    return CreatedResponse(id=lead.id)


@router.put("/leads/{lead_id}", response_model=LeadRead)
async def update_lead(
    lead_id: int,
    name: str | None = Form(None),
    company: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    kind: str | None = Form(None),
    message: str | None = Form(None),
    status: str | None = Form(None),
    image_ref: str | None = Form(None),
    image: UploadFile | None = File(None),
    leads: LeadManager = Depends(get_lead_manager),
    storage: AbstractStorage = Depends(get_storage),
) -> LeadRead:
    lead = await leads.update(
        lead_id,
        {
            "name": name,
            "company": company,
            "email": email,
            "phone": phone,
            "kind": kind,
            "message": message,
            "status": status,
        },
        await read_upload(image),
        image_ref,
    )
    return with_image_url(LeadRead, lead, storage)


@router.delete("/leads/{lead_id}", response_model=DeleteResponse)
async def delete_lead(
    lead_id: int,
    leads: LeadManager = Depends(get_lead_manager),
) -> DeleteResponse:
    await leads.delete(lead_id)
    return DeleteResponse(message=f"Lead {lead_id} deleted")


# ── Generic upload ──────────────────────────────────────────────────
@router.post("/upload", response_model=UploadResponse, status_code=201)
async def upload_image(
    image: UploadFile | None = File(None),
    storage: AbstractStorage = Depends(get_storage),
) -> UploadResponse:
    upload = await read_upload(image)
    if upload is None:
        raise ValidationError("No file uploaded")
    reference = await storage.store(upload.data, upload.content_type, upload.filename)
    return UploadResponse(reference=reference, url=storage.public_url_for(reference))
