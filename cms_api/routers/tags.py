from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.database import get_db
from cms_api.dependencies import RequestContext, get_request_context
from cms_api.problems import to_response
from cms_api.schemas import TagCredentials, TagUpdate
from cms_api.services import tag_service

router = APIRouter(prefix="/api/tag", tags=["tags"])

@router.post("/create", status_code=201)
async def create_tag(
    credentials: TagCredentials,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await tag_service.create_tag(db, ctx, credentials))

@router.get("/fetch")
async def fetch_tags(db: AsyncSession = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    return to_response(await tag_service.fetch_tags(db, ctx))

@router.get("/fetch/{id}")
async def fetch_tag(id: str, db: AsyncSession = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    return to_response(await tag_service.fetch_tag(db, ctx, id))

@router.put("/update/{id}", status_code=201)
async def update_tag(
    id: str,
    credentials: TagUpdate,
    db: AsyncSession = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    return to_response(await tag_service.update_tag(db, ctx, id, credentials))

@router.delete("/delete/{id}", status_code=204)
async def delete_tag(id: str, db: AsyncSession = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    return to_response(await tag_service.delete_tag(db, ctx, id))
