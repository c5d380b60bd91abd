import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from db import get_db
from photogallery.core.context import AppContext, get_context
from photogallery.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    GalleryError,
    NotFoundError,
    StructuralGuardError,
    ValidationError,
)
from photogallery.models.user import User
from photogallery.services import auth
from photogallery.services.auth import get_actor
from photogallery.services.policy import Action, enforce
from photogallery.services.stores import UserStore
from photogallery.services.validation import validate_user_form

router = APIRouter(prefix="/users")
audit = logging.getLogger("audit")


def _render_home(request: Request, ctx: AppContext, err: GalleryError):
    return ctx.templates.TemplateResponse(
        request,
        "index.html",
        context={"title": "Gallery App", "messages": err.messages},
        status_code=err.status_code,
    )


def _render_list(request: Request, ctx: AppContext, db: Session, messages=None, status_code=200):
    return ctx.templates.TemplateResponse(
        request,
        "user_list.html",
        context={
            "title": "List of users",
            "user_list": UserStore(db).all(),
            "messages": messages or [],
        },
        status_code=status_code,
    )


def _render_form(request: Request, ctx: AppContext, user=None, messages=None, status_code=200):
    return ctx.templates.TemplateResponse(
        request,
        "user_form.html",
        context={"title": "Add New User", "user": user or {}, "messages": messages or []},
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
def user_list(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        enforce(actor, Action.USER_LIST)
    except (AuthenticationError, AuthorizationError) as err:
        return _render_home(request, ctx, err)
    return _render_list(request, ctx, db)


@router.get("/user_add", response_class=HTMLResponse)
def user_add_page(
    request: Request,
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        enforce(actor, Action.USER_CREATE)
    except (AuthenticationError, AuthorizationError) as err:
        return _render_home(request, ctx, err)
    return _render_form(request, ctx)


@router.post("/user_add", response_class=HTMLResponse)
def user_add(
    request: Request,
    name: str = Form(""),
    surname: str = Form(""),
    username: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        enforce(actor, Action.USER_CREATE)
    except (AuthenticationError, AuthorizationError) as err:
        return _render_home(request, ctx, err)

    cleaned, messages = validate_user_form(name, surname, username, password)
    # Echo the entered values back, never the password
    echoed = {"Name": cleaned["name"], "Surname": cleaned["surname"], "Username": cleaned["username"]}
    try:
        if messages:
            raise ValidationError(messages)
        new_user = User(
            Username=cleaned["username"],
            Name=cleaned["name"],
            Surname=cleaned["surname"],
            HashedPassword=auth.hash_password(cleaned["password"]),
            Role=auth.role_for_username(cleaned["username"], ctx.settings.ADMIN_USERNAME),
        )
        user_id = UserStore(db).create(new_user)
    except (ValidationError, ConflictError) as err:
        return _render_form(request, ctx, echoed, err.messages, err.status_code)

    audit.info(
        "user.created",
        extra={"user_id": user_id, "username": cleaned["username"], "by": actor.Username},
    )
    return _render_form(request, ctx, messages=[f'Username "{cleaned["username"]}" added'])


@router.get("/user_login", response_class=HTMLResponse)
def user_login_page(
    request: Request,
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    return ctx.templates.TemplateResponse(request, "user_login_form.html", context={"title": "Login"})


@router.post("/user_login")
def user_login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    db: Session = Depends(get_db),
    ctx: AppContext = Depends(get_context),
):
    user, error = auth.authenticate_user(db, username.strip(), password)
    if user is None:
        audit.warning(
            "auth.login.failed",
            extra={
                "username": username,
                "client": request.client.host if request.client else None,
                "request_id": getattr(request.state, "request_id", None),
            },
        )
        return ctx.templates.TemplateResponse(
            request,
            "user_login_form.html",
            context={"title": "Login", "messages": [error], "username": username},
            status_code=401,
        )

    token = ctx.tokens.issue(user.Username)
    audit.info(
        "auth.login.success",
        extra={
            "user_id": user.UserID,
            "client": request.client.host if request.client else None,
            "request_id": getattr(request.state, "request_id", None),
        },
    )
    response = RedirectResponse(url="/", status_code=302)
    auth.set_auth_cookie(response, ctx, token)
    return response


@router.get("/user_logout", response_class=HTMLResponse)
def user_logout(
    request: Request,
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    audit.info(
        "auth.logout",
        extra={
            "username": getattr(actor, "Username", None),
            "client": request.client.host if request.client else None,
            "request_id": getattr(request.state, "request_id", None),
        },
    )
    # The page below renders as anonymous
    request.state.actor = None
    response = ctx.templates.TemplateResponse(request, "index.html", context={"title": "Gallery App"})
    auth.clear_auth_cookie(response, ctx)
    return response


@router.post("/user_delete/{user_id}")
def user_delete(
    request: Request,
    user_id: str,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        enforce(actor, Action.USER_LIST)
    except (AuthenticationError, AuthorizationError) as err:
        return _render_home(request, ctx, err)

    users = UserStore(db)
    try:
        target = users.get(user_id)
        enforce(actor, Action.USER_DELETE, target)
        if users.count_galleries(target.UserID):
            raise StructuralGuardError("Cannot delete user: user still owns galleries.")
        deleted_name = target.Username
        users.delete(target.UserID)
    except (NotFoundError, AuthorizationError, StructuralGuardError) as err:
        return _render_list(request, ctx, db, err.messages, err.status_code)

    audit.info("user.deleted", extra={"username": deleted_name, "by": actor.Username})
    return RedirectResponse(url="/users/", status_code=302)
