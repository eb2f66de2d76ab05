# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic for a single entity:
#
#   article_service  — Article CRUD + caption image on the media store
#   author_service   — Author CRUD + display photo on the media store
#   tag_service      — Tag CRUD (no media)
#   common           — helpers shared by the services above
#
# Every service function takes ``(db, [media,] ctx, ...)`` and returns an
# ``OperationResult``; faults are converted at the service boundary and
# never reach the router.  Services own the commit: there is exactly one
# per successful write, issued after any required media-store step.
