"""
Author service — business logic for the Author entity.

Authors follow the same media ordering as articles (see
``article_service``): upload before release on update, release before
row removal on delete.  Deleting an author also removes its articles,
so every article caption is released before any row goes.

The detail view nests lightweight article summaries without an author
back-reference, avoiding circular nesting.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from cms_api.config import settings
from cms_api.dependencies import RequestContext
from cms_api.media import MediaStore
from cms_api.models import Author
from cms_api.results import OperationResult
from cms_api.schemas import AuthorCredentials, AuthorUpdate
from cms_api.services.common import (
    apply_partial,
    fail,
    missing_id,
    not_found,
    release_superseded_asset,
    settle_failed_replacement,
)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _author_to_dict(author: Author) -> dict:
    """Serialise an Author ORM instance to a plain dict (list view)."""
    return {
        "id": author.id,
        "title": author.title,
        "firstName": author.first_name,
        "lastName": author.last_name,
        "photoUrl": author.photo_url,
        "updatedAt": author.updated_at.isoformat() if author.updated_at else None,
    }


def _article_summary_to_dict(article) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "description": article.description,
        "content": article.content,
        "updatedAt": article.updated_at.isoformat() if article.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_author(
    db: AsyncSession, media: MediaStore, ctx: RequestContext, data: AuthorCredentials
) -> OperationResult:
    try:
        upload = await media.upload(data.photo, settings.AUTHOR_PHOTO_PRESET)
        if not upload.successful:
            ctx.logger.error(upload.error_detail)
            return OperationResult.system_error(upload.error_detail)

        author = Author(
            title=data.title,
            first_name=data.first_name,
            last_name=data.last_name,
            photo_asset_id=upload.asset_id,
            photo_url=upload.url,
        )
        db.add(author)
        try:
            await db.commit()
        except Exception:
            await release_superseded_asset(media, ctx, upload.asset_id)
            raise

        ctx.logger.info("Created author %s", author.id)
        return OperationResult.ok(201)
    except Exception as exc:
        return await fail(db, ctx, exc)


async def fetch_authors(db: AsyncSession, ctx: RequestContext) -> OperationResult:
    """Return every author, most recently modified first.  Articles are not loaded."""
    try:
        q = (
            select(Author)
            .order_by(Author.updated_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(q)
        return OperationResult.ok(200, [_author_to_dict(a) for a in result.scalars().all()])
    except Exception as exc:
        return await fail(db, ctx, exc)


async def fetch_author(db: AsyncSession, ctx: RequestContext, author_id: str) -> OperationResult:
    """
    Return one author with summaries of their articles.

    ``selectinload`` issues a single extra query for the articles rather
    than one per article.
    """
    try:
        if not author_id:
            return missing_id(ctx, "author")

        q = (
            select(Author)
            .where(Author.id == author_id)
            .options(selectinload(Author.articles))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(q)
        author = result.scalar_one_or_none()
        if author is None:
            return not_found(ctx, "author")

        data = _author_to_dict(author)
        data["articles"] = [_article_summary_to_dict(a) for a in author.articles]
        return OperationResult.ok(200, data)
    except Exception as exc:
        return await fail(db, ctx, exc)


async def update_author(
    db: AsyncSession,
    media: MediaStore,
    ctx: RequestContext,
    author_id: str,
    data: AuthorUpdate,
) -> OperationResult:
    try:
        if not author_id:
            return missing_id(ctx, "author")

        result = await db.execute(select(Author).where(Author.id == author_id))
        author = result.scalar_one_or_none()
        if author is None:
            return not_found(ctx, "author")

        upload = None
        if data.photo:
            upload = await media.upload(data.photo, settings.AUTHOR_PHOTO_PRESET)
            if not upload.successful:
                ctx.logger.error(upload.error_detail)
                return OperationResult.system_error(upload.error_detail)

        apply_partial(
            author,
            title=data.title,
            first_name=data.first_name,
            last_name=data.last_name,
        )

        old_released = False
        if upload is not None:
            old_released = await release_superseded_asset(media, ctx, author.photo_asset_id)
            author.photo_asset_id = upload.asset_id
            author.photo_url = upload.url

        try:
            await db.commit()
        except Exception:
            if upload is not None:
                await settle_failed_replacement(media, ctx, upload.asset_id, old_released)
            raise

        ctx.logger.info("Updated author %s", author_id)
        return OperationResult.ok(201)
    except Exception as exc:
        return await fail(db, ctx, exc)


async def delete_author(
    db: AsyncSession, media: MediaStore, ctx: RequestContext, author_id: str
) -> OperationResult:
    """
    Delete an author, their articles, and every image they reference.

    All asset deletes are required and happen before any row is removed;
    the first refusal aborts with a 500 and every row is kept.
    """
    try:
        if not author_id:
            return missing_id(ctx, "author")

        q = (
            select(Author)
            .where(Author.id == author_id)
            .options(selectinload(Author.articles))
            # An instance already in the session may hold a stale
            # articles collection; reload it.
            .execution_options(populate_existing=True)
        )
        result = await db.execute(q)
        author = result.scalar_one_or_none()
        if author is None:
            return not_found(ctx, "author")

        asset_ids = [a.image_asset_id for a in author.articles]
        asset_ids.append(author.photo_asset_id)
        for asset_id in asset_ids:
            outcome = await media.delete(asset_id)
            if not outcome.successful:
                ctx.logger.error(outcome.error_detail)
                return OperationResult.system_error(outcome.error_detail)

        for article in author.articles:
            await db.delete(article)
        await db.delete(author)
        await db.commit()

        ctx.logger.info("Deleted author %s and %d article(s)", author_id, len(author.articles))
        return OperationResult.ok(204)
    except Exception as exc:
        return await fail(db, ctx, exc)
