"""Utility functions for image URIs and MIME types."""

import posixpath
from urllib.parse import unquote


def mime_type_to_extension(mime_type: str) -> str:
    """Map an image MIME type to a file extension (image/jpeg -> jpg)."""
    if mime_type == "image/jpeg":
        return "jpg"
    return mime_type.rsplit("/", 1)[-1]


def extension_to_mime_type(extension: str) -> str:
    """Map a file extension to an image MIME type (jpg -> image/jpeg)."""
    extension = extension.lower().lstrip(".")
    if extension in ("jpg", "jpeg"):
        return "image/jpeg"
    return f"image/{extension}"


def split_uri(uri: str) -> tuple[str, str]:
    """Split a URI into its path and any trailing ?query or #fragment."""
    cut = len(uri)
    for marker in ("?", "#"):
        found = uri.find(marker)
        if found != -1:
            cut = min(cut, found)
    return uri[:cut], uri[cut:]


def uri_path(uri: str) -> str:
    """Decoded file path of a relative glTF URI."""
    return unquote(split_uri(uri)[0])


def uri_extension(uri: str) -> str:
    """
    Extension of a relative glTF URI, without the dot.

    Query strings and fragments are ignored, percent-escapes decoded.
    Returns an empty string when the file name has no extension.
    """
    base = posixpath.basename(uri_path(uri))
    if "." not in base.lstrip("."):
        return ""
    return base.rsplit(".", 1)[-1].lower()


def replace_uri_extension(uri: str, extension: str) -> str:
    """
    Swap the trailing extension of a URI, keeping directory and base name.

    A query string or fragment stays in place: foo.png?v=1 -> foo.webp?v=1
    """
    path, suffix = split_uri(uri)
    head, base = posixpath.split(path)
    stem = base.rsplit(".", 1)[0] if "." in base.lstrip(".") else base
    return posixpath.join(head, f"{stem}.{extension}") + suffix
