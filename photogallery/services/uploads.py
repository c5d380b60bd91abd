"""Upload storage for image files.

Uploading is a separate step from registering an image: the file is written
to the upload directory and the stored name is shown to the user, who then
references it from the image form. A file saved without a matching image
record is left in place.
"""

import io
import logging
import os
import re
import uuid
from typing import Iterable, Optional, Tuple

from PIL import Image as PILImage
from PIL import UnidentifiedImageError

from photogallery.core.errors import ValidationError

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9._-]+$")

# Stored extension comes from the sniffed format, never from the client
EXTENSIONS = {"JPEG": ".jpg", "PNG": ".png", "GIF": ".gif", "WEBP": ".webp"}


def safe_name(name: str) -> str:
    name = name.replace("\\", "/").split("/")[-1]
    # allow alnum, dash, underscore, dot; strip others
    return re.sub(r"[^A-Za-z0-9._-]", "_", name).lstrip(".") or "upload"


def unique_path(base_dir: str, fname: str) -> str:
    root, ext = os.path.splitext(fname)
    candidate = os.path.join(base_dir, fname)
    idx = 1
    while os.path.exists(candidate):
        candidate = os.path.join(base_dir, f"{root}_{idx}{ext}")
        idx += 1
    return candidate


def sniff_image(data: bytes) -> Optional[str]:
    """Return the Pillow format name (e.g. 'JPEG') or None when the bytes are not an image."""
    try:
        with PILImage.open(io.BytesIO(data)) as im:
            fmt = im.format
            im.verify()
        return fmt
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None


class UploadStorage:
    def __init__(self, directory: str, max_bytes: int, allowed_formats: Iterable[str]):
        self.directory = directory
        self.max_bytes = int(max_bytes)
        self.allowed_formats = tuple(f.upper() for f in allowed_formats)
        os.makedirs(self.directory, exist_ok=True)

    def is_stored_name(self, name: str) -> bool:
        return bool(name) and bool(_SAFE_NAME.match(name)) and not name.startswith(".")

    def exists(self, name: str) -> bool:
        return self.is_stored_name(name) and os.path.isfile(os.path.join(self.directory, name))

    def check(self, filename: Optional[str], data: bytes) -> Tuple[str, str]:
        if not filename:
            raise ValidationError(["Image upload error!", "No file selected."])
        if not data:
            raise ValidationError(["Image upload error!", "The file is empty."])
        if len(data) > self.max_bytes:
            raise ValidationError(
                ["Image upload error!", f"File too large (max {self.max_bytes // 1_000_000} MB)."]
            )
        fmt = sniff_image(data)
        if fmt is None or fmt.upper() not in self.allowed_formats:
            raise ValidationError(["Image upload error!", "Only image files can be uploaded."])
        return safe_name(filename), fmt

    def save(self, filename: Optional[str], data: bytes) -> str:
        """Validate and write the upload; return the stored file name."""
        fname, fmt = self.check(filename, data)
        root = os.path.splitext(fname)[0] or "upload"
        ext = EXTENSIONS.get(fmt.upper(), "." + fmt.lower())
        # Short random suffix keeps names unguessable across users
        fname = f"{root}_{uuid.uuid4().hex[:8]}{ext}"
        path = unique_path(self.directory, fname)
        tmp = path + ".tmp"
        with open(tmp, "wb") as fh:
            fh.write(data)
        os.replace(tmp, path)
        stored = os.path.basename(path)
        logger.info("upload.saved", extra={"stored_name": stored, "bytes": len(data), "format": fmt})
        return stored
