"""
Tag service — CRUD for the Tag entity.

Same shape as the article and author services without a media step.
Tags are not linked to articles by foreign key (articles keep their
tags as a delimited string), so deleting a tag never touches articles.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.dependencies import RequestContext
from cms_api.models import Tag
from cms_api.results import OperationResult
from cms_api.schemas import TagCredentials, TagUpdate
from cms_api.services.common import apply_partial, fail, missing_id, not_found


def _tag_to_dict(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "title": tag.title,
        "updatedAt": tag.updated_at.isoformat() if tag.updated_at else None,
    }


async def _get_tag(db: AsyncSession, tag_id: str) -> Tag | None:
    result = await db.execute(select(Tag).where(Tag.id == tag_id))
    return result.scalar_one_or_none()


async def create_tag(db: AsyncSession, ctx: RequestContext, data: TagCredentials) -> OperationResult:
    try:
        tag = Tag(title=data.title)
        db.add(tag)
        await db.commit()
        ctx.logger.info("Created tag %s", tag.id)
        return OperationResult.ok(201)
    except Exception as exc:
        return await fail(db, ctx, exc)


async def fetch_tags(db: AsyncSession, ctx: RequestContext) -> OperationResult:
    try:
        q = (
            select(Tag)
            .order_by(Tag.updated_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(q)
        return OperationResult.ok(200, [_tag_to_dict(t) for t in result.scalars().all()])
    except Exception as exc:
        return await fail(db, ctx, exc)


async def fetch_tag(db: AsyncSession, ctx: RequestContext, tag_id: str) -> OperationResult:
    try:
        if not tag_id:
            return missing_id(ctx, "tag")
        tag = await _get_tag(db, tag_id)
        if tag is None:
            return not_found(ctx, "tag")
        return OperationResult.ok(200, _tag_to_dict(tag))
    except Exception as exc:
        return await fail(db, ctx, exc)


async def update_tag(
    db: AsyncSession, ctx: RequestContext, tag_id: str, data: TagUpdate
) -> OperationResult:
    try:
        if not tag_id:
            return missing_id(ctx, "tag")
        tag = await _get_tag(db, tag_id)
        if tag is None:
            return not_found(ctx, "tag")

        apply_partial(tag, title=data.title)
        await db.commit()
        return OperationResult.ok(201)
    except Exception as exc:
        return await fail(db, ctx, exc)


async def delete_tag(db: AsyncSession, ctx: RequestContext, tag_id: str) -> OperationResult:
    try:
        if not tag_id:
            return missing_id(ctx, "tag")
        tag = await _get_tag(db, tag_id)
        if tag is None:
            return not_found(ctx, "tag")

        await db.delete(tag)
        await db.commit()
        ctx.logger.info("Deleted tag %s", tag_id)
        return OperationResult.ok(204)
    except Exception as exc:
        return await fail(db, ctx, exc)
