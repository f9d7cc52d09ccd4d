"""
Helpers turning multipart uploads into storage-ready payloads.
"""

from __future__ import annotations

from fastapi import UploadFile

from gera.services.records import UploadedImage
from gera.storage import AbstractStorage


async def read_upload(upload: UploadFile | None) -> UploadedImage | None:
    """Return the uploaded image, or None when the form carried no file."""
    if upload is None or not upload.filename:
        return None
    try:
        data = await upload.read()
    finally:
        await upload.close()
    return UploadedImage(data=data, content_type=upload.content_type, filename=upload.filename)


def with_image_url(schema, record, storage: AbstractStorage):
    """Validate ``record`` into ``schema`` and fill in the public image URL."""
    out = schema.model_validate(record)
    if record.image:
        out.image_url = storage.public_url_for(record.image)
    return out
