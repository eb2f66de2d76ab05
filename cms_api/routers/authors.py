from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.database import get_db
from cms_api.dependencies import RequestContext, get_media_store, get_request_context
from cms_api.media import MediaStore
from cms_api.problems import to_response
from cms_api.schemas import AuthorCredentials, AuthorUpdate
from cms_api.services import author_service

router = APIRouter(prefix="/api/author", tags=["authors"])

@router.post("/create", status_code=201)
async def create_author(
    credentials: AuthorCredentials,
    db: AsyncSession = Depends(get_db),
    media: MediaStore = Depends(get_media_store),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await author_service.create_author(db, media, ctx, credentials))

@router.get("/fetch")
async def fetch_authors(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await author_service.fetch_authors(db, ctx))

@router.get("/fetch/{id}")
async def fetch_author(
    id: str,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await author_service.fetch_author(db, ctx, id))

@router.put("/update/{id}", status_code=201)
async def update_author(
    id: str,
    credentials: AuthorUpdate,
    db: AsyncSession = Depends(get_db),
    media: MediaStore = Depends(get_media_store),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await author_service.update_author(db, media, ctx, id, credentials))

@router.delete("/delete/{id}", status_code=204)
async def delete_author(
    id: str,
    db: AsyncSession = Depends(get_db),
    media: MediaStore = Depends(get_media_store),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await author_service.delete_author(db, media, ctx, id))
