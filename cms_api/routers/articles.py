from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.database import get_db
from cms_api.dependencies import RequestContext, get_media_store, get_request_context
from cms_api.media import MediaStore
from cms_api.problems import to_response
from cms_api.schemas import ArticleCredentials, ArticleUpdate
from cms_api.services import article_service

router = APIRouter(prefix="/api", tags=["articles"])

@router.post("/article/create", status_code=201)
async def create_article(
    credentials: ArticleCredentials,
    db: AsyncSession = Depends(get_db),
    media: MediaStore = Depends(get_media_store),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await article_service.create_article(db, media, ctx, credentials))

@router.get("/articles/fetch")
async def fetch_articles(
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await article_service.fetch_articles(db, ctx))

@router.get("/article/fetch/{id}")
async def fetch_article(
    id: str,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await article_service.fetch_article(db, ctx, id))

@router.put("/article/update/{id}", status_code=201)
async def update_article(
    id: str,
    credentials: ArticleUpdate,
    db: AsyncSession = Depends(get_db),
    media: MediaStore = Depends(get_media_store),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await article_service.update_article(db, media, ctx, id, credentials))

@router.delete("/article/delete/{id}", status_code=204)
async def delete_article(
    id: str,
    db: AsyncSession = Depends(get_db),
    media: MediaStore = Depends(get_media_store),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await article_service.delete_article(db, media, ctx, id))
