"""Process-wide collaborators, built once in ``create_app`` and injected into handlers."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from photogallery.core.settings import Settings

if TYPE_CHECKING:
    from photogallery.services.auth import TokenCodec
    from photogallery.services.uploads import UploadStorage


@dataclass
class AppContext:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    templates: Jinja2Templates
    tokens: "TokenCodec"
    uploads: "UploadStorage"


def get_context(request: Request) -> AppContext:
    return request.app.state.context
