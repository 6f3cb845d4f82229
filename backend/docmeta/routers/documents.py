from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request, Response
from pydantic import BaseModel, Field, field_validator

from ..models.document import Document
from ..services.document_service import DocumentAccessService
from ..services.pagination import PageRequest
from ..timestamps import Instant, decode_instant

router = APIRouter(tags=["documents"])


class DocumentBody(BaseModel):
    id: str = Field(..., min_length=1)
    ownerId: int | None = None
    category: int | None = None
    subCategory: int | None = None
    createdAt: str | None = None
    updatedAt: str | None = None
    createdBy: str | None = None
    updatedBy: str | None = None
    notes: str | None = None
    version: int | None = Field(default=None, ge=1)

    @field_validator("createdAt", "updatedAt")
    @classmethod
    def _iso_instant(cls, v: str | None) -> str | None:
        if v is not None:
            Instant.parse(v)
        return v

    def to_document(self) -> Document:
        return Document(
            id=self.id,
            owner_id=self.ownerId,
            category=self.category,
            sub_category=self.subCategory,
            created_at=decode_instant(self.createdAt),
            updated_at=decode_instant(self.updatedAt),
            created_by=self.createdBy,
            updated_by=self.updatedBy,
            notes=self.notes,
            version=self.version,
        )


def _service(request: Request) -> DocumentAccessService:
    return request.app.state.document_service


@router.get("/documents")
def list_documents(
    request: Request,
    ownerId: int = Query(...),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=500),
):
    result = _service(request).list_by_owner(ownerId, PageRequest(page=page, size=size))
    return result.to_api(Document.to_api)


@router.get("/documents/by-categories")
def list_documents_by_categories(
    request: Request,
    ownerId: int = Query(...),
    category: list[int] = Query(default=[]),
):
    docs = _service(request).list_by_owner_and_categories_in(ownerId, category)
    return {"content": [d.to_api() for d in docs]}


@router.get("/documents/{documentId}")
def get_document(request: Request, documentId: str):
    doc = _service(request).get_by_id(documentId)
    if doc is None:
        raise HTTPException(status_code=404, detail="Document not found")
    return doc.to_api()


@router.post("/documents", status_code=201)
def save_document(request: Request, body: DocumentBody):
    saved = _service(request).save(body.to_document())
    return saved.to_api()


@router.delete("/documents/{documentId}", status_code=204)
def delete_document(request: Request, documentId: str):
    _service(request).delete(documentId)
    return Response(status_code=204)
