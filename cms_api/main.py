import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from cms_api.config import settings
from cms_api.media import media_store
from cms_api.middleware import RequestContextMiddleware
from cms_api.problems import unhandled_exception_handler, validation_exception_handler
from cms_api.routers import articles, authors, tags


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    configure_logging()
    await media_store.connect()
    yield
    # Shutdown
    await media_store.disconnect()

app = FastAPI(
    title="Content Management API",
    description="Authors, articles and tags with images hosted on a media store",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(RequestContextMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Error translation
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# Routers
app.include_router(articles.router)
app.include_router(authors.router)
app.include_router(tags.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
