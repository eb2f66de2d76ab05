"""
Helpers shared by the entity services.

The media store and the database cannot share a transaction, so writes
follow a fixed compensating sequence:

    validate -> upload new asset -> release superseded asset -> commit

and deletes release the asset before the row is removed.  The helpers
below implement the pieces of that sequence that are identical across
services.
"""
from sqlalchemy.ext.asyncio import AsyncSession

from cms_api.dependencies import RequestContext
from cms_api.media import MediaStore
from cms_api.results import OperationResult


def missing_id(ctx: RequestContext, entity: str) -> OperationResult:
    message = f"The {entity} id is required"
    ctx.logger.error(message)
    return OperationResult.bad_request(message)


def not_found(ctx: RequestContext, entity: str) -> OperationResult:
    message = f"{entity.capitalize()} with the specified id could not be found"
    ctx.logger.error(message)
    return OperationResult.not_found(message)


def apply_partial(target, **fields) -> None:
    """
    Copy each non-empty value in *fields* onto *target*.

    ``None`` and empty strings leave the stored value untouched.
    """
    for name, value in fields.items():
        if value:
            setattr(target, name, value)


async def release_superseded_asset(media: MediaStore, ctx: RequestContext, asset_id: str | None) -> bool:
    """
    Delete an asset that is no longer referenced (replaced image, or a
    fresh upload whose row never got committed).

    Failure leaves a stale blob behind, which is recoverable, so it is
    logged and never fails the calling operation.  Returns True when an
    asset was actually removed.
    """
    if not asset_id:
        return False
    outcome = await media.delete(asset_id)
    if not outcome.successful:
        ctx.logger.warning("Could not release asset %s: %s", asset_id, outcome.error_detail)
        return False
    return True


async def settle_failed_replacement(
    media: MediaStore, ctx: RequestContext, new_asset_id: str | None, old_released: bool
) -> None:
    """
    Clean up after a commit that failed once a replacement was uploaded.

    While the old asset is still stored the rolled-back row keeps a valid
    reference, so the new upload is released.  Once the old asset is
    gone the new upload is the only image left; it is kept and logged
    for manual recovery.
    """
    if not old_released:
        await release_superseded_asset(media, ctx, new_asset_id)
        return
    ctx.logger.error("Commit failed after replacing an image; asset %s is unreferenced", new_asset_id)


async def fail(db: AsyncSession, ctx: RequestContext, exc: Exception) -> OperationResult:
    """Roll back the unit of work and convert *exc* into a 500 envelope."""
    ctx.logger.exception("Unhandled error: %s", exc)
    await db.rollback()
    return OperationResult.system_error(str(exc))
