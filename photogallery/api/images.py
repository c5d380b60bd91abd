import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from db import get_db
from photogallery.core.context import AppContext, get_context
from photogallery.core.errors import (
    AuthenticationError,
    GalleryError,
    ValidationError,
)
from photogallery.models import Image, User
from photogallery.services.auth import get_actor
from photogallery.services.policy import Action, enforce
from photogallery.services.stores import CommentStore, GalleryStore, ImageStore
from photogallery.services.validation import validate_image_form

router = APIRouter(prefix="/images")
audit = logging.getLogger("audit")

LOGIN_REQUIRED = "Unauthorized: You must be logged in."


def _render_list(request, ctx: AppContext, db: Session, actor, messages=None, status_code=200):
    if actor is None and not messages:
        messages = [LOGIN_REQUIRED]
    return ctx.templates.TemplateResponse(
        request,
        "image_list.html",
        context={
            "title": "List of images",
            "images": ImageStore(db).visible_to(actor),
            "messages": messages or [],
        },
        status_code=status_code,
    )


def _render_form(request, ctx: AppContext, db: Session, actor, image=None, messages=None, status_code=200):
    return ctx.templates.TemplateResponse(
        request,
        "image_form.html",
        context={
            "title": "Add New Image",
            "image": image or {},
            "galleries": GalleryStore(db).visible_to(actor),
            "messages": messages or [],
        },
        status_code=status_code,
    )


def _require_login(actor) -> None:
    if actor is None:
        raise AuthenticationError()


@router.get("/", response_class=HTMLResponse)
def image_list(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    enforce(actor, Action.IMAGE_LIST)
    return _render_list(request, ctx, db, actor)


@router.get("/image_add", response_class=HTMLResponse)
def image_add_page(
    request: Request,
    path: str = "",
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        _require_login(actor)
    except AuthenticationError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)
    # The upload page links here with the stored name filled in
    return _render_form(request, ctx, db, actor, {"Path": path.strip()})


@router.post("/image_add", response_class=HTMLResponse)
def image_add(
    request: Request,
    name: str = Form(""),
    description: str = Form(""),
    path: str = Form(""),
    gallery_id: str = Form(""),
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        _require_login(actor)
    except AuthenticationError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)

    cleaned, messages = validate_image_form(name, description, path)
    if cleaned["path"] and not ctx.uploads.exists(cleaned["path"]):
        messages.append("Image file not found. Upload it first.")
    echoed = {
        "Name": cleaned["name"],
        "Description": cleaned["description"],
        "Path": cleaned["path"],
        "GalleryID": gallery_id.strip(),
    }
    if messages:
        err = ValidationError(messages)
        return _render_form(request, ctx, db, actor, echoed, err.messages, err.status_code)

    try:
        gallery = GalleryStore(db).get(gallery_id)
        enforce(actor, Action.IMAGE_CREATE, gallery)
    except GalleryError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)

    try:
        image_id = ImageStore(db).create(
            Image(
                Name=cleaned["name"],
                Description=cleaned["description"],
                Path=cleaned["path"],
                GalleryID=gallery.GalleryID,
            )
        )
    except GalleryError as err:
        return _render_form(request, ctx, db, actor, echoed, err.messages, err.status_code)

    audit.info(
        "image.created",
        extra={"image_id": image_id, "gallery_id": echoed["GalleryID"], "by": actor.Username},
    )
    return _render_form(request, ctx, db, actor, messages=[f'Image "{cleaned["name"]}" added'])


def _render_upload(request, ctx: AppContext, stored=None, messages=None, status_code=200):
    return ctx.templates.TemplateResponse(
        request,
        "image_upload_form.html",
        context={"title": "Upload image", "stored": stored, "messages": messages or []},
        status_code=status_code,
    )


@router.get("/image_upload", response_class=HTMLResponse)
def image_upload_page(
    request: Request,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        _require_login(actor)
    except AuthenticationError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)
    return _render_upload(request, ctx)


@router.post("/image_upload", response_class=HTMLResponse)
async def image_upload(
    request: Request,
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        _require_login(actor)
    except AuthenticationError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)

    filename = file.filename if file is not None else None
    # Read one byte past the limit so oversize files are caught without buffering them whole
    data = await file.read(ctx.uploads.max_bytes + 1) if file is not None else b""
    try:
        stored = ctx.uploads.save(filename, data)
    except ValidationError as err:
        return _render_upload(request, ctx, messages=err.messages, status_code=err.status_code)

    audit.info(
        "image.uploaded",
        extra={"stored_name": stored, "bytes": len(data), "by": actor.Username},
    )
    return _render_upload(request, ctx, stored, [f'File "{stored}" uploaded'])


def _render_update(request, ctx: AppContext, db: Session, actor, image, form=None, messages=None, status_code=200):
    return ctx.templates.TemplateResponse(
        request,
        "image_update.html",
        context={
            "title": "Edit image",
            "image": image,
            "form": form,
            "galleries": GalleryStore(db).visible_to(actor),
            "messages": messages or [],
        },
        status_code=status_code,
    )


@router.get("/image_update", response_class=HTMLResponse)
def image_update_page(
    request: Request,
    image_id: str = "",
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        _require_login(actor)
        image = ImageStore(db).get(image_id)
        enforce(actor, Action.IMAGE_UPDATE, image)
    except GalleryError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)
    return _render_update(request, ctx, db, actor, image)


@router.post("/image_update", response_class=HTMLResponse)
def image_update(
    request: Request,
    image_id: str = "",
    name: str = Form(""),
    description: str = Form(""),
    gallery_id: str = Form(""),
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    images = ImageStore(db)
    try:
        _require_login(actor)
        image = images.get(image_id)
        enforce(actor, Action.IMAGE_UPDATE, image)
    except GalleryError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)

    cleaned, messages = validate_image_form(name, description, require_path=False)
    form = {"Name": cleaned["name"], "Description": cleaned["description"], "GalleryID": gallery_id.strip()}
    patch = {"Name": cleaned["name"], "Description": cleaned["description"]}
    try:
        if messages:
            raise ValidationError(messages)
        if gallery_id.strip():
            destination = GalleryStore(db).get(gallery_id)
            if destination.GalleryID != image.GalleryID:
                # Moving needs the same right as adding to the destination
                enforce(actor, Action.IMAGE_CREATE, destination)
                patch["GalleryID"] = destination.GalleryID
        images.update(image.ImageID, **patch)
    except GalleryError as err:
        return _render_update(
            request, ctx, db, actor, images.get(image_id), form, err.messages, err.status_code
        )

    audit.info("image.updated", extra={"image_id": image.ImageID, "by": actor.Username})
    return RedirectResponse(url="/galleries/gallery_browse", status_code=302)


@router.get("/image_show", response_class=HTMLResponse)
def image_show(
    request: Request,
    image_id: str = "",
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        enforce(actor, Action.IMAGE_VIEW)
        image = ImageStore(db).get(image_id)
    except GalleryError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)
    return ctx.templates.TemplateResponse(
        request,
        "image_show.html",
        context={
            "title": image.Name,
            "image": image,
            "comments": CommentStore(db).for_image(image.ImageID),
            "messages": [],
        },
    )


@router.post("/image_delete/{image_id}", response_class=HTMLResponse)
def image_delete(
    request: Request,
    image_id: str,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    images = ImageStore(db)
    try:
        _require_login(actor)
        image = images.get(image_id)
        enforce(actor, Action.IMAGE_DELETE, image)
        deleted_id = image.ImageID
        images.delete(deleted_id)
    except GalleryError as err:
        return _render_list(request, ctx, db, actor, err.messages, err.status_code)

    audit.info("image.deleted", extra={"image_id": deleted_id, "by": actor.Username})
    return RedirectResponse(url="/galleries/gallery_browse", status_code=302)
