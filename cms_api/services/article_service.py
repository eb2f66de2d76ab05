"""
Article service — business logic for the Article entity.

Design notes
------------
- Every article owns one caption image on the media store.  The media
  store and the database fail independently and share no transaction,
  so every write follows a fixed order: validate, upload the new
  caption, release the superseded caption, commit.  A failed upload
  aborts before anything in the database changes.
- ``delete_article`` releases the caption *before* removing the row.
  If the row delete then fails, the row is left pointing at a missing
  image (visible and fixable); the reverse order could leave an image
  that nothing references.
- The author foreign key is checked before any upload so a doomed write
  never costs a media-store round-trip.
- Reads join the author (``joinedload``) and expose only the author's
  display fields.
- Each function commits exactly once on success and rolls back through
  ``common.fail`` on any unexpected error.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from cms_api.config import settings
from cms_api.dependencies import RequestContext
from cms_api.media import MediaStore
from cms_api.models import Article, Author, join_tags
from cms_api.results import OperationResult
from cms_api.schemas import ArticleCredentials, ArticleUpdate
from cms_api.services.common import (
    apply_partial,
    fail,
    missing_id,
    not_found,
    release_superseded_asset,
    settle_failed_replacement,
)

_UNKNOWN_AUTHOR = "The specified author id does not match any existing author"


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _author_display(author: Author | None) -> dict | None:
    if author is None:
        return None
    return {
        "firstName": author.first_name,
        "lastName": author.last_name,
        "photoUrl": author.photo_url,
    }


def _article_to_dict(article: Article) -> dict:
    """Serialise an Article ORM instance with its author's display fields."""
    return {
        "id": article.id,
        "title": article.title,
        "description": article.description,
        "content": article.content,
        "tags": article.tag_list,
        "imageUrl": article.image_url,
        "updatedAt": article.updated_at.isoformat() if article.updated_at else None,
        "author": _author_display(article.author),
    }


async def _author_exists(db: AsyncSession, author_id: str) -> bool:
    result = await db.execute(select(Author.id).where(Author.id == author_id))
    return result.scalar_one_or_none() is not None


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_article(
    db: AsyncSession, media: MediaStore, ctx: RequestContext, data: ArticleCredentials
) -> OperationResult:
    """
    Create an article, uploading its caption first.

    Returns 201 with no payload; the new id is not echoed back.
    """
    try:
        if not await _author_exists(db, data.author_id):
            ctx.logger.error("The specified author id does not match an existing author")
            return OperationResult.bad_request(_UNKNOWN_AUTHOR)

        upload = await media.upload(data.caption, settings.ARTICLE_CAPTION_PRESET)
        if not upload.successful:
            ctx.logger.error(upload.error_detail)
            return OperationResult.system_error(upload.error_detail)

        article = Article(
            title=data.title,
            description=data.description,
            content=data.content,
            author_id=data.author_id,
            tags=join_tags(data.tags),
            image_asset_id=upload.asset_id,
            image_url=upload.url,
        )
        db.add(article)
        try:
            await db.commit()
        except Exception:
            # The row never landed; don't leave its caption behind.
            await release_superseded_asset(media, ctx, upload.asset_id)
            raise

        ctx.logger.info("Created article %s", article.id)
        return OperationResult.ok(201)
    except Exception as exc:
        return await fail(db, ctx, exc)


async def fetch_articles(db: AsyncSession, ctx: RequestContext) -> OperationResult:
    """Return every article, most recently modified first."""
    try:
        q = (
            select(Article)
            .options(joinedload(Article.author))
            .order_by(Article.updated_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await db.execute(q)
        articles = result.unique().scalars().all()
        return OperationResult.ok(200, [_article_to_dict(a) for a in articles])
    except Exception as exc:
        return await fail(db, ctx, exc)


async def fetch_article(db: AsyncSession, ctx: RequestContext, article_id: str) -> OperationResult:
    try:
        if not article_id:
            return missing_id(ctx, "article")

        q = (
            select(Article)
            .where(Article.id == article_id)
            .options(joinedload(Article.author))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(q)
        article = result.unique().scalar_one_or_none()
        if article is None:
            return not_found(ctx, "article")

        return OperationResult.ok(200, _article_to_dict(article))
    except Exception as exc:
        return await fail(db, ctx, exc)


async def update_article(
    db: AsyncSession,
    media: MediaStore,
    ctx: RequestContext,
    article_id: str,
    data: ArticleUpdate,
) -> OperationResult:
    """
    Partially update an article.

    Only non-empty fields are applied; an empty ``tags`` list is treated
    as "no change".  A new caption is uploaded before the old one is
    released, and a failed upload leaves both the row and the old
    caption untouched.
    """
    try:
        if not article_id:
            return missing_id(ctx, "article")

        result = await db.execute(select(Article).where(Article.id == article_id))
        article = result.scalar_one_or_none()
        if article is None:
            return not_found(ctx, "article")

        if data.author_id and data.author_id != article.author_id:
            if not await _author_exists(db, data.author_id):
                ctx.logger.error("The specified author id does not match an existing author")
                return OperationResult.bad_request(_UNKNOWN_AUTHOR)

        upload = None
        if data.caption:
            upload = await media.upload(data.caption, settings.ARTICLE_CAPTION_PRESET)
            if not upload.successful:
                ctx.logger.error(upload.error_detail)
                return OperationResult.system_error(upload.error_detail)

        apply_partial(
            article,
            title=data.title,
            description=data.description,
            content=data.content,
            author_id=data.author_id,
            tags=join_tags(data.tags),
        )

        old_released = False
        if upload is not None:
            old_released = await release_superseded_asset(media, ctx, article.image_asset_id)
            article.image_asset_id = upload.asset_id
            article.image_url = upload.url

        try:
            await db.commit()
        except Exception:
            if upload is not None:
                await settle_failed_replacement(media, ctx, upload.asset_id, old_released)
            raise

        ctx.logger.info("Updated article %s", article_id)
        return OperationResult.ok(201)
    except Exception as exc:
        return await fail(db, ctx, exc)


async def delete_article(
    db: AsyncSession, media: MediaStore, ctx: RequestContext, article_id: str
) -> OperationResult:
    """
    Delete an article together with its caption.

    The caption delete is required: if the media store refuses it the
    row is kept and a 500 is returned.
    """
    try:
        if not article_id:
            return missing_id(ctx, "article")

        result = await db.execute(select(Article).where(Article.id == article_id))
        article = result.scalar_one_or_none()
        if article is None:
            return not_found(ctx, "article")

        outcome = await media.delete(article.image_asset_id)
        if not outcome.successful:
            ctx.logger.error(outcome.error_detail)
            return OperationResult.system_error(outcome.error_detail)

        await db.delete(article)
        await db.commit()

        ctx.logger.info("Deleted article %s", article_id)
        return OperationResult.ok(204)
    except Exception as exc:
        return await fail(db, ctx, exc)
