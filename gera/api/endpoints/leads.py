"""
Public advertiser submission endpoint (multipart, optional image).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, UploadFile

from gera.api.deps import get_lead_manager
from gera.api.uploads import read_upload
from gera.schemas.content import CreatedResponse
from gera.services.records import LeadManager

router = APIRouter(tags=["leads"])
logger = logging.getLogger(__name__)


@router.post("/leads", response_model=CreatedResponse)
async def submit_lead(
    name: str | None = Form(None),
    company: str | None = Form(None),
    email: str | None = Form(None),
    phone: str | None = Form(None),
    kind: str | None = Form(None),
    message: str | None = Form(None),
    image: UploadFile | None = File(None),
    leads: LeadManager = Depends(get_lead_manager),
) -> CreatedResponse:
    """Queue an advertising request for admin review."""
    lead = await leads.submit(
        {
            "name": name,
            "company": company,
            "email": email,
            "phone": phone,
            "kind": kind,
            "message": message,
        },
        await read_upload(image),
    )
    logger.info("Lead %d submitted by %s", lead.id, lead.company)
    return CreatedResponse(id=lead.id)
