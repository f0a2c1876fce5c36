# blog/main.py
"""
FastAPI backend for the blog front end: accounts with cookie sessions and
posts with WebP cover images.
"""
from __future__ import annotations
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from blog.auth.auth_util import SessionTokens
from blog.config import Settings
from blog.db import Database
from blog.errors import BlogError
from blog.images.normalizer import ImageNormalizer
from blog.routers import auth, posts

# ───────────────────────── logging ──────────────────────────────────────────
LOG_FORMAT = "%(asctime)s — %(name)s — %(levelname)s — %(message)s"

logger = logging.getLogger(__name__)


async def _blog_error(request: Request, exc: BlogError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.body(), headers=exc.headers)


async def _validation_failure(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies are reported as 400, like rejected credentials.
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


# ───────────────────────── FastAPI app ──────────────────────────────────────
def create_app(settings: Settings | None = None) -> FastAPI:
    if settings is None:
        settings = Settings.from_env()

    logging.basicConfig(format=LOG_FORMAT, level=settings.log_level)

    app = FastAPI(title="Blog Backend")
    app.state.settings = settings
    app.state.db = Database(settings.database_url)
    app.state.session_tokens = SessionTokens(
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.session_expire_minutes,
    )
    app.state.image_normalizer = ImageNormalizer(settings.upload_dir)
    app.state.image_normalizer.ensure_upload_dir()

    app.include_router(auth.router)
    app.include_router(posts.router)
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

    app.add_exception_handler(BlogError, _blog_error)
    app.add_exception_handler(RequestValidationError, _validation_failure)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ───────────────────────── schema & lifecycle ───────────────────────────
    @app.on_event("startup")
    async def on_startup() -> None:
        """Makes sure all required tables exist."""
        await app.state.db.init_models()
        logger.info("Uploads stored in %s", settings.upload_dir)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.db.dispose()

    return app


def run() -> None:
    import uvicorn
    from dotenv import load_dotenv

    load_dotenv()
    settings = Settings.from_env()
    app = create_app(settings)
    logger.info("Starting server on http://%s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


# ───────────────────────── dev entrypoint ───────────────────────────────────
if __name__ == "__main__":
    run()
