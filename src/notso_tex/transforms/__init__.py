"""Document transforms that recompress textures with squoosh-cli."""

from notso_tex.transforms.selection import SelectedTexture, select_textures
from notso_tex.transforms.squoosh import (
    EncodeProfile,
    Transform,
    compress_textures,
    mozjpeg,
    oxipng,
    webp,
)
from notso_tex.transforms.towebp import to_webp

__all__ = [
    "EncodeProfile",
    "SelectedTexture",
    "Transform",
    "compress_textures",
    "mozjpeg",
    "oxipng",
    "select_textures",
    "to_webp",
    "webp",
]
