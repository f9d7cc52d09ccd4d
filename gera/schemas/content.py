"""Pydantic schemas for articles, leads and the admin dashboard."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class ArticleSummary(BaseModel):
    id: int
    title: str
    summary: str
    category: str
    image: str | None = None
    image_url: str | None = None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class ArticleRead(ArticleSummary):
    body: str


class LeadRead(BaseModel):
    id: int
    name: str
    company: str
    email: str
    phone: str
    kind: str
    message: str
    status: str
    image: str | None = None
    image_url: str | None = None
    created_at: datetime | None

    model_config = {"from_attributes": True}


class CreatedResponse(BaseModel):
    success: bool = True
    id: int


class DeleteResponse(BaseModel):
    success: bool = True
    message: str


class UploadResponse(BaseModel):
    success: bool = True
    reference: str
    url: str


class DashboardStats(BaseModel):
    total_users: int
    total_articles: int
    active_leads: int
    pending_leads: int


class HealthResponse(BaseModel):
    db: bool
