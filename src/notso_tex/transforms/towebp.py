"""Convert every non-WebP texture to WebP."""

from __future__ import annotations

from notso_tex.document import Texture
from notso_tex.transforms.squoosh import (
    EncodeProfile,
    Transform,
    codec_flags,
    merge_options,
    profile_transform,
)
from notso_tex.utils.constants import (
    EXT_TEXTURE_WEBP,
    MATCH_ALL,
    TOWEBP_DEFAULT_OPTIONS,
)
from notso_tex.utils.squoosh import Encoder


def skip_webp(texture: Texture) -> str | None:
    """Never re-encode a texture that is already WebP."""
    if texture.mime_type == "image/webp":
        return "already WebP"
    return None


def to_webp(
    *,
    slots: str | None = None,
    encoder: Encoder | None = None,
) -> Transform:
    """
    Convert textures to WebP with encoder defaults.

    Unlike ``webp()``, there is no format filter: every texture matching
    ``slots`` is converted unless it is WebP already, so running it twice
    leaves the second run with nothing to do.
    """
    options = merge_options(TOWEBP_DEFAULT_OPTIONS, slots=slots)
    profile = EncodeProfile(
        flags=codec_flags("webp"),
        out_extension="webp",
        out_mime_type="image/webp",
        formats=MATCH_ALL,
        slots=options["slots"],
        skip=skip_webp,
        required_extension=EXT_TEXTURE_WEBP,
    )
    return profile_transform(profile, encoder)
