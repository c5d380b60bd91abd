import logging
import os
import time
import traceback
import uuid
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi import HTTPException as FastAPIHTTPException
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError
from starlette.responses import PlainTextResponse, RedirectResponse

from db import make_engine, make_session_factory
from photogallery.api import comments, galleries, home, images, stats, users
from photogallery.core.context import AppContext
from photogallery.core.logging_utils import configure_logging
from photogallery.core.middleware import add_middleware
from photogallery.core.settings import Settings, load_settings
from photogallery.core.templates import build_templates
from photogallery.models import AppErrorLog, Base
from photogallery.services.auth import TokenCodec
from photogallery.services.uploads import UploadStorage

load_dotenv()

logger = logging.getLogger("app")


def build_context(settings: Settings) -> AppContext:
    engine = make_engine(settings.DATABASE_URL)
    if settings.DB_AUTO_CREATE:
        Base.metadata.create_all(bind=engine)
    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=make_session_factory(engine),
        templates=build_templates(settings.TEMPLATES_DIR),
        tokens=TokenCodec(settings.SECRET_KEY, settings.TOKEN_TTL_SECONDS),
        uploads=UploadStorage(
            settings.UPLOAD_DIR, settings.MAX_UPLOAD_BYTES, settings.ALLOWED_UPLOAD_FORMATS
        ),
    )


def _record_error(
    ctx: AppContext,
    request: Request,
    status_code: int,
    message: str,
    stack_trace: Optional[str] = None,
) -> None:
    """Best-effort AppErrorLog row; a failing write never masks the original error."""
    request_id = getattr(request.state, "request_id", None)
    db = ctx.session_factory()
    try:
        db.add(
            AppErrorLog(
                RequestID=str(request_id) if request_id else None,
                Path=str(request.url.path),
                Method=request.method,
                StatusCode=status_code,
                Username=ctx.tokens.resolve(request.cookies.get(ctx.settings.AUTH_COOKIE_NAME)),
                ClientIP=request.client.host if request.client else None,
                Message=message,
                StackTrace=stack_trace,
            )
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning("error_log.write_failed", extra={"request_id": request_id}, exc_info=True)
    finally:
        db.close()


def _error_page(ctx: AppContext, request: Request, status_code: int, message: str):
    request_id = getattr(request.state, "request_id", None)
    resp = ctx.templates.TemplateResponse(
        request,
        "error.html",
        context={
            "title": "Error",
            "status_code": status_code,
            "messages": [message],
            "request_id": request_id,
        },
        status_code=status_code,
    )
    if request_id:
        resp.headers["X-Request-ID"] = str(request_id)
    return resp


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings)

    app = FastAPI(title="Photo Gallery")
    ctx = build_context(settings)
    app.state.context = ctx
    add_middleware(app, settings)

    # Mount static folders
    os.makedirs(settings.STATIC_DIR, exist_ok=True)
    app.mount("/static", StaticFiles(directory=settings.STATIC_DIR), name="static")
    app.mount("/storage", StaticFiles(directory=ctx.uploads.directory), name="storage")

    app.include_router(home.router)
    app.include_router(users.router)
    app.include_router(galleries.router)
    app.include_router(images.router)
    app.include_router(comments.router)
    app.include_router(stats.router)

    # Request logging middleware with request id and username
    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start = time.perf_counter()
        request.state.request_id = request_id
        # Token check only; no database round trip here
        username = ctx.tokens.resolve(request.cookies.get(settings.AUTH_COOKIE_NAME))
        extra_ctx = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client": request.client.host if request.client else None,
            "username": username,
            "user_agent": request.headers.get("user-agent"),
        }
        logger.info("request.start", extra=extra_ctx)
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.exception("request.error", extra={**extra_ctx, "duration_ms": duration_ms})
            # Re-raise to be handled by 500 handler
            raise

        duration_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={**extra_ctx, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        return response

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc):
        _record_error(ctx, request, 404, "Not Found")
        return _error_page(ctx, request, 404, "Page not found.")

    @app.exception_handler(FastAPIHTTPException)
    async def http_exception_handler(request: Request, exc: FastAPIHTTPException):
        status = getattr(exc, "status_code", 500) or 500
        if status >= 400:
            _record_error(ctx, request, int(status), str(getattr(exc, "detail", "HTTP error")))
        if status in (301, 302, 303, 307, 308) and exc.headers and exc.headers.get("Location"):
            return RedirectResponse(url=exc.headers["Location"], status_code=status)
        request_id = getattr(request.state, "request_id", None)
        resp = JSONResponse({"detail": exc.detail}, status_code=status)
        if request_id:
            resp.headers["X-Request-ID"] = str(request_id)
        return resp

    @app.exception_handler(500)
    async def server_error_handler(request: Request, exc):
        logger.error(
            "request.unhandled",
            extra={"request_id": getattr(request.state, "request_id", None), "path": request.url.path},
        )
        try:
            _record_error(
                ctx,
                request,
                500,
                str(exc),
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            )
            return _error_page(ctx, request, 500, "Something went wrong.")
        except Exception:
            # Last resort when the template itself cannot render
            return PlainTextResponse("Internal Server Error", status_code=500)

    logger.info("app.started", extra={"database": ctx.engine.dialect.name})
    return app


app = create_app()
