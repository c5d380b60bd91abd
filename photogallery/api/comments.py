import logging
from typing import Optional

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session

from db import get_db
from photogallery.core.context import AppContext, get_context
from photogallery.core.errors import GalleryError, ValidationError
from photogallery.models import Comment, User
from photogallery.services.auth import get_actor
from photogallery.services.policy import Action, enforce
from photogallery.services.stores import CommentStore, ImageStore
from photogallery.services.validation import validate_comment

router = APIRouter(prefix="/comments")
audit = logging.getLogger("audit")


def _image_url(image_id: int) -> str:
    return f"/images/image_show?image_id={image_id}"


def _render_images(request, ctx: AppContext, db: Session, actor, err: GalleryError):
    return ctx.templates.TemplateResponse(
        request,
        "image_list.html",
        context={
            "title": "List of images",
            "images": ImageStore(db).visible_to(actor),
            "messages": err.messages,
        },
        status_code=err.status_code,
    )


@router.post("/comment_add/{image_id}", response_class=HTMLResponse)
def comment_add(
    request: Request,
    image_id: str,
    content: str = Form(""),
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        enforce(actor, Action.COMMENT_CREATE)
        image = ImageStore(db).get(image_id)
    except GalleryError as err:
        return _render_images(request, ctx, db, actor, err)

    text, messages = validate_comment(content)
    if messages:
        err = ValidationError(messages)
        return ctx.templates.TemplateResponse(
            request,
            "image_show.html",
            context={
                "title": image.Name,
                "image": image,
                "comments": CommentStore(db).for_image(image.ImageID),
                "draft": text,
                "messages": err.messages,
            },
            status_code=err.status_code,
        )

    comment_id = CommentStore(db).create(
        Comment(
            ImageID=image.ImageID,
            GalleryID=image.GalleryID,
            AuthorID=actor.UserID,
            Content=text,
        )
    )
    audit.info(
        "comment.created",
        extra={"comment_id": comment_id, "image_id": image.ImageID, "by": actor.Username},
    )
    return RedirectResponse(url=_image_url(image.ImageID), status_code=302)


@router.get("/comment_edit/{comment_id}", response_class=HTMLResponse)
def comment_edit_page(
    request: Request,
    comment_id: str,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    try:
        enforce(actor, Action.COMMENT_EDIT)
        comment = CommentStore(db).get(comment_id)
    except GalleryError as err:
        return _render_images(request, ctx, db, actor, err)
    return ctx.templates.TemplateResponse(
        request,
        "comment_edit.html",
        context={"title": "Edit comment", "comment": comment, "messages": []},
    )


@router.post("/comment_edit/{comment_id}", response_class=HTMLResponse)
def comment_edit(
    request: Request,
    comment_id: str,
    content: str = Form(""),
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    comments = CommentStore(db)
    try:
        enforce(actor, Action.COMMENT_EDIT)
        comment = comments.get(comment_id)
    except GalleryError as err:
        return _render_images(request, ctx, db, actor, err)

    text, messages = validate_comment(content)
    if messages:
        err = ValidationError(messages)
        return ctx.templates.TemplateResponse(
            request,
            "comment_edit.html",
            context={"title": "Edit comment", "comment": comment, "draft": text, "messages": err.messages},
            status_code=err.status_code,
        )

    comments.update(comment.CommentID, Content=text)
    audit.info(
        "comment.edited",
        extra={"comment_id": comment.CommentID, "author_id": comment.AuthorID, "by": actor.Username},
    )
    return RedirectResponse(url=_image_url(comment.ImageID), status_code=302)


@router.post("/comment_delete/{comment_id}", response_class=HTMLResponse)
def comment_delete(
    request: Request,
    comment_id: str,
    db: Session = Depends(get_db),
    actor: Optional[User] = Depends(get_actor),
    ctx: AppContext = Depends(get_context),
):
    comments = CommentStore(db)
    try:
        enforce(actor, Action.COMMENT_DELETE)
        comment = comments.get(comment_id)
        image_id = comment.ImageID
        comments.delete(comment.CommentID)
    except GalleryError as err:
        return _render_images(request, ctx, db, actor, err)

    audit.info("comment.deleted", extra={"comment_id": comment_id, "by": actor.Username})
    return RedirectResponse(url=_image_url(image_id), status_code=302)
