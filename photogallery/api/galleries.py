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
    GalleryError,
    NotFoundError,
    ValidationError,
)
from photogallery.models import Gallery, User
from photogallery.services.auth import get_actor
from photogallery.services.policy import Action, enforce, is_admin
from photogallery.services.stores import GalleryStore, ImageStore, UserStore, parse_id
from photogallery.services.validation import validate_gallery_form

router = APIRouter(prefix="/galleries")
audit = logging.getLogger("audit")

LOGIN_REQUIRED = "Unauthorized: You must be logged in."


def _render_list(request, ctx: AppContext, db: Session, actor, messages=None, status_code=200):
    if actor is None and not messages:
        messages = [LOGIN_REQUIRED]
    return ctx.templates.TemplateResponse(
        request,
        "gallery_list.html",
        context={
            "title": "List of galleries",
            "galleries": GalleryStore(db).visible_to(actor),
            "messages": messages or [],
        },
        status_code=status_code,
    )


def _owner_choices(db: Session, actor):
    # Only admins pick an owner; everyone else creates for themselves
    return UserStore(db).all() if is_admin(actor) else []


def _render_form(request, ctx: AppContext, db: Session, actor, gallery=None, messages=None, status_code=200):
    return ctx.templates.TemplateResponse(
        request,
        "gallery_form.html",
        context={
            "title": "Add New Gallery",
            "gallery": gallery or {},
            "users": _owner_choices(db, actor),
            "messages": messages or [],
        },
        status_code=status_code,
    )


@router.get("/", response_class=HTMLResponse)
def gallery_list(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    enforce(actor, Action.GALLERY_LIST)
    return _render_list(request, ctx, db, actor)


@router.get("/gallery_add", response_class=HTMLResponse)
def gallery_add_page(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        enforce(actor, Action.GALLERY_CREATE)
    except AuthenticationError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)
    return _render_form(request, ctx, db, actor)


@router.post("/gallery_add", response_class=HTMLResponse)
def gallery_add(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    date: str = Form(""),
    owner_id: str = Form(""),
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        enforce(actor, Action.GALLERY_CREATE)
    except AuthenticationError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)

    cleaned, messages = validate_gallery_form(name, description, date)
    echoed = {"Name": cleaned["name"], "Description": cleaned["description"], "Date": cleaned["date_raw"]}

    owner = actor
    if is_admin(actor) and owner_id.strip():
        owner = UserStore(db).find_by_id(owner_id)
        if owner is None:
            messages.append("Owner not found.")
    echoed["OwnerID"] = getattr(owner, "UserID", None)

    try:
        if messages:
            raise ValidationError(messages)
        gallery = Gallery(
            Name=cleaned["name"],
            Description=cleaned["description"],
            Date=cleaned["date"],
            OwnerID=owner.UserID,
        )
        gallery_id = GalleryStore(db).create(gallery)
    except GalleryError as err:
        return _render_form(request, ctx, db, actor, echoed, err.messages, err.status_code)

    audit.info(
        "gallery.created",
        extra={"gallery_id": gallery_id, "owner_id": owner.UserID, "by": actor.Username},
    )
    return _render_form(request, ctx, db, actor, messages=[f'Gallery "{cleaned["name"]}" added'])


def _render_browse(request, ctx: AppContext, db: Session, actor, selected=None, messages=None, status_code=200):
    galleries = GalleryStore(db).visible_to(actor)
    images = ImageStore(db).in_gallery(selected.GalleryID) if selected is not None else []
    if actor is None and not messages:
        messages = [LOGIN_REQUIRED]
    return ctx.templates.TemplateResponse(
        request,
        "gallery_browse.html",
        context={
            "title": "Browse galleries",
            "galleries": galleries,
            "selected": selected,
            "images": images,
            "messages": messages or [],
        },
        status_code=status_code,
    )


@router.get("/gallery_browse", response_class=HTMLResponse)
def gallery_browse_page(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    enforce(actor, Action.GALLERY_BROWSE)
    return _render_browse(request, ctx, db, actor)


@router.post("/gallery_browse", response_class=HTMLResponse)
def gallery_browse(
    request: Request,
    s_gallery: str = Form(""),
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    enforce(actor, Action.GALLERY_BROWSE)
    if actor is None:
        return _render_browse(request, ctx, db, actor)

    selected = None
    gallery_id = parse_id(s_gallery)
    if gallery_id is not None:
        # Selection is limited to what the list would show
        selected = next((g for g in GalleryStore(db).visible_to(actor) if g.GalleryID == gallery_id), None)
    if selected is None:
        return _render_browse(request, ctx, db, actor, messages=["Gallery not found."], status_code=404)
    return _render_browse(request, ctx, db, actor, selected)


@router.post("/gallery_delete/{gallery_id}", response_class=HTMLResponse)
def gallery_delete(
    request: Request,
    gallery_id: str,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    galleries = GalleryStore(db)
    try:
        if actor is None:
            enforce(actor, Action.GALLERY_DELETE)
        gallery = galleries.get(gallery_id)
        enforce(actor, Action.GALLERY_DELETE, gallery, image_count=galleries.count_images(gallery.GalleryID))
        name = gallery.Name
        galleries.delete(gallery.GalleryID)
    except GalleryError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)

    audit.info(
        "gallery.deleted",
        extra={"gallery_id": parse_id(gallery_id), "gallery_name": name, "by": actor.Username},
    )
    return _render_list(request, ctx, db, actor, ["Gallery deleted successfully."])


def _render_update(request, ctx: AppContext, db: Session, actor, gallery, form=None, messages=None, status_code=200):
    return ctx.templates.TemplateResponse(
        request,
        "gallery_update.html",
        context={
            "title": "Edit gallery",
            "gallery": gallery,
            "form": form,
            "users": _owner_choices(db, actor),
            "messages": messages or [],
        },
        status_code=status_code,
    )


@router.get("/gallery_update/{gallery_id}", response_class=HTMLResponse)
def gallery_update_page(
    request: Request,
    gallery_id: str,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        if actor is None:
            enforce(actor, Action.GALLERY_UPDATE)
        gallery = GalleryStore(db).get(gallery_id)
        enforce(actor, Action.GALLERY_UPDATE, gallery)
    except GalleryError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)
    return _render_update(request, ctx, db, actor, gallery)


@router.post("/gallery_update/{gallery_id}", response_class=HTMLResponse)
def gallery_update(
    request: Request,
    gallery_id: str,
    name: str = Form(""),
    description: str = Form(""),
    date: str = Form(""),
    owner_id: str = Form(""),
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    galleries = GalleryStore(db)
    try:
        if actor is None:
            enforce(actor, Action.GALLERY_UPDATE)
        gallery = galleries.get(gallery_id)
        enforce(actor, Action.GALLERY_UPDATE, gallery)
    except (AuthenticationError, AuthorizationError, NotFoundError) as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)

    cleaned, messages = validate_gallery_form(name, description, date)
    form = {"Name": cleaned["name"], "Description": cleaned["description"], "Date": cleaned["date_raw"]}

    # Only an admin may hand the gallery to someone else
    new_owner_id = gallery.OwnerID
    if is_admin(actor) and owner_id.strip():
        owner = UserStore(db).find_by_id(owner_id)
        if owner is None:
            messages.append("Owner not found.")
        else:
            new_owner_id = owner.UserID
    form["OwnerID"] = new_owner_id

    try:
        if messages:
            raise ValidationError(messages)
        galleries.update(
            gallery.GalleryID,
            Name=cleaned["name"],
            Description=cleaned["description"],
            Date=cleaned["date"],
            OwnerID=new_owner_id,
        )
    except GalleryError as err:
        # Re-read: a failed commit rolled the session back
        return _render_update(
            request, ctx, db, actor, galleries.get(gallery_id), form, err.messages, err.status_code
        )

    audit.info(
        "gallery.updated",
        extra={"gallery_id": gallery.GalleryID, "owner_id": new_owner_id, "by": actor.Username},
    )
    return RedirectResponse(url="/galleries/", status_code=302)
