"""Home page and liveness probe."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from photogallery.core.context import AppContext, get_context
from photogallery.models.user import User
from photogallery.services.auth import get_actor

router = APIRouter()

TITLE = "Gallery App"


@router.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    return ctx.templates.TemplateResponse(request, "index.html", context={"title": TITLE})


@router.get("/health")
def health_check(ctx: AppContext = Depends(get_context)):
    missing = []
    if ctx.settings.SECRET_KEY == "CHANGE_THIS_TO_A_SECRET_KEY" or not ctx.settings.SECRET_KEY:
        missing.append("SECRET_KEY")

    db_ok = False
    db_error = None
    try:
        with ctx.engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
        db_ok = True
    except SQLAlchemyError as e:
        db_error = str(e)

    status = "ok" if db_ok and not missing else ("degraded" if db_ok else "error")
    payload = {
        "status": status,
        "time": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "missing": missing,
        "db": {"ok": db_ok, "error": db_error, "dialect": ctx.engine.dialect.name},
    }
    # Always 200; status is in the payload
    return JSONResponse(content=payload, status_code=200)
