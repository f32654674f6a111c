"""Source file reference for a photo."""

from __future__ import annotations

import hashlib
from functools import cached_property
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from photocue.models import FileKind

SUPPORTED_MIMETYPES = ("image/jpeg", "image/png", "image/gif")
ANIMATED_MIMETYPES = ("image/gif",)


class SourceFile:
    """A file on disk, with its content type sniffed by Pillow."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"SourceFile({str(self.path)!r})"

    @property
    def exists(self) -> bool:
        return self.path.is_file()

    @property
    def fullname(self) -> str:
        return self.path.name

    @property
    def name(self) -> str:
        return self.path.stem

    @property
    def extension(self) -> str:
        return self.path.suffix

    @cached_property
    def mimetype(self) -> str | None:
        """Mimetype from the file content, None if Pillow can't read it."""
        if not self.exists:
            return None
        try:
            with Image.open(self.path) as image:
                return Image.MIME.get(image.format or "")
        except (UnidentifiedImageError, OSError):
            return None

    @property
    def kind(self) -> FileKind | None:
        mimetype = self.mimetype
        if mimetype not in SUPPORTED_MIMETYPES:
            return None
        if mimetype in ANIMATED_MIMETYPES:
            return FileKind.ANIMATED
        return FileKind.STILL

    @cached_property
    def md5(self) -> str:
        digest = hashlib.md5()
        with self.path.open("rb") as f:
            for chunk in iter(lambda: f.read(65536), b""):
                digest.update(chunk)
        return digest.hexdigest()
