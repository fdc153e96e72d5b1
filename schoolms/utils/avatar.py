# schoolms/utils/avatar.py
"""Normalise stored profile photo references into URLs the frontend can load."""
from typing import Optional
from urllib.parse import urlparse

from ..core.config import settings


def _files_route() -> str:
    return "/" + settings.files_route.strip("/")


def build_avatar_url(src: Optional[str]) -> Optional[str]:
    """
    Map a stored avatar reference to a displayable URL.

    Absolute links to our own file route become relative so they go through
    the same origin; legacy ``uploads/`` paths are moved under the file route.
    Unknown shapes return None so the client falls back to initials.
    """
    if not src:
        return None
    src = src.strip()
    if not src:
        return None

    files_route = _files_route()
    files_path = files_route.lstrip("/")

    if src.startswith("data:image/"):
        return src

    if src.startswith("http://") or src.startswith("https://"):
        if settings.public_api_url:
            api_host = urlparse(settings.public_api_url).netloc
            parsed = urlparse(src)
            if parsed.netloc == api_host and parsed.path.startswith(files_route + "/"):
                return parsed.path + (f"?{parsed.query}" if parsed.query else "")
        return src

    if src.startswith(files_route + "/"):
        return src
    if src.startswith(files_path + "/"):
        return "/" + src
    if src.startswith("/uploads/"):
        return f"{files_route}/{src[len('/uploads/'):]}"
    if src.startswith("uploads/"):
        return f"{files_route}/{src[len('uploads/'):]}"

    return None
