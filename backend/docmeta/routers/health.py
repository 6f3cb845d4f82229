from __future__ import annotations

from fastapi import APIRouter

from ..settings import settings

router = APIRouter()


@router.get("/", tags=["health"])
def health():
    return {
        "message": "Document Metadata API",
        "version": "1.0.0",
        "status": "running",
        "environment": settings.normalized_environment,
        "storage": settings.normalized_storage_backend,
        "table": settings.table_name,
        "endpoints": [
            "GET /api/documents?ownerId=",
            "GET /api/documents/by-categories?ownerId=&category=",
            "GET /api/documents/{id}",
            "POST /api/documents",
            "DELETE /api/documents/{id}",
        ],
    }
