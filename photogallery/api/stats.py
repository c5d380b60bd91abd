from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from db import get_db
from photogallery.core.context import AppContext, get_context
from photogallery.models.user import User
from photogallery.services.auth import get_actor
from photogallery.services.stores import totals

router = APIRouter(prefix="/stats")


@router.get("/", response_class=HTMLResponse)
def stat_browse(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    # Visitors without a session get the home page instead
    if actor is None:
        return ctx.templates.TemplateResponse(request, "index.html", context={"title": "Gallery App"})
    return ctx.templates.TemplateResponse(
        request,
        "stat_browse.html",
        context={"title": "Statistics", "totals": totals(db)},
    )
