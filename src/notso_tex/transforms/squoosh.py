"""Texture compression through squoosh-cli (WebP, MozJPEG, OxiPNG)."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from notso_tex.document import Document
from notso_tex.transforms.selection import SkipPredicate, select_textures
from notso_tex.utils import mime_type_to_extension, replace_uri_extension, uri_extension
from notso_tex.utils.constants import (
    EXT_TEXTURE_WEBP,
    MATCH_ALL,
    MOZJPEG_DEFAULT_OPTIONS,
    OXIPNG_DEFAULT_OPTIONS,
    WEBP_DEFAULT_OPTIONS,
)
from notso_tex.utils.logging import format_bytes
from notso_tex.utils.squoosh import Encoder, SquooshEncoder

# A transform mutates a document and returns how many textures it compressed
Transform: TypeAlias = Callable[[Document], int]


@dataclass(frozen=True)
class EncodeProfile:
    """What to select, and how squoosh-cli should re-encode it."""

    flags: tuple[str, ...]
    out_extension: str
    out_mime_type: str
    formats: str = MATCH_ALL
    slots: str = MATCH_ALL
    skip: SkipPredicate | None = None
    required_extension: str | None = None


def merge_options(defaults: Any, **overrides: Any) -> dict[str, Any]:
    """Overlay non-None keyword options on a defaults dict."""
    merged = dict(defaults)
    merged.update({k: v for k, v in overrides.items() if v is not None})
    return merged


def _validate_level(value: Any, name: str, low: int, high: int) -> int | None:
    """Validate an optional integer encoder setting."""
    if value is None:
        return None
    # Reject bool explicitly (bool is subclass of int)
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an integer, got {type(value).__name__}")
    if not (low <= value <= high):
        raise ValueError(f"{name} must be in [{low}, {high}], got {value}")
    return value


def codec_flags(codec: str, **settings: int | None) -> tuple[str, ...]:
    """
    squoosh-cli tokens selecting a codec and its JSON settings.

    Unset settings are left out, so an empty object means encoder defaults:
        codec_flags("webp", quality=80) -> ("--webp", '{"quality":80}')
    """
    options = {k: v for k, v in settings.items() if v is not None}
    return (f"--{codec}", json.dumps(options, separators=(",", ":")))


def compress_textures(
    document: Document,
    profile: EncodeProfile,
    encoder: Encoder | None = None,
) -> int:
    """
    Re-encode every selected texture of a document, in document order.

    Textures are mutated in place. A missing encoder is reported before
    anything is selected, even when nothing would be. The first encoder
    failure propagates unchanged; textures compressed before it keep their
    new payloads.

    Returns:
        Number of textures compressed.
    """
    logger = document.get_logger()
    encoder = encoder or SquooshEncoder()
    encoder.check()

    if profile.required_extension:
        document.create_extension(profile.required_extension, required=True)

    selected = select_textures(
        document, formats=profile.formats, slots=profile.slots, skip=profile.skip
    )

    num_compressed = 0
    for texture, slots, label in selected:
        in_extension = uri_extension(texture.uri or "") or mime_type_to_extension(
            texture.mime_type
        )
        in_bytes = len(texture.image)
        logger.debug(
            f"• squoosh-cli {' '.join(profile.flags)} ({label}, .{in_extension})"
        )

        try:
            image = encoder.encode(
                texture.image, in_extension, profile.flags, profile.out_extension
            )
        except Exception:
            logger.error("• Texture compression failed.")
            raise

        texture.image = image
        texture.mime_type = profile.out_mime_type
        if texture.uri:
            texture.uri = replace_uri_extension(texture.uri, profile.out_extension)

        num_compressed += 1
        logger.info(
            f"• Texture {label} ({', '.join(slots)}) "
            f"{format_bytes(in_bytes)} → {format_bytes(len(image))}."
        )

    if num_compressed == 0:
        logger.warn("No textures were found, or none were selected for compression.")

    return num_compressed


def profile_transform(
    profile: EncodeProfile, encoder: Encoder | None = None
) -> Transform:
    """Bind a profile (and optionally an encoder) into a Transform."""

    def transform(document: Document) -> int:
        return compress_textures(document, profile, encoder)

    return transform


def webp(
    *,
    slots: str | None = None,
    formats: str | None = None,
    quality: int | None = None,
    encoder: Encoder | None = None,
) -> Transform:
    """Compress textures to WebP and require EXT_texture_webp."""
    options = merge_options(
        WEBP_DEFAULT_OPTIONS, slots=slots, formats=formats, quality=quality
    )
    profile = EncodeProfile(
        flags=codec_flags(
            "webp", quality=_validate_level(options["quality"], "quality", 0, 100)
        ),
        out_extension="webp",
        out_mime_type="image/webp",
        formats=options["formats"],
        slots=options["slots"],
        required_extension=EXT_TEXTURE_WEBP,
    )
    return profile_transform(profile, encoder)


def mozjpeg(
    *,
    slots: str | None = None,
    formats: str | None = None,
    quality: int | None = None,
    encoder: Encoder | None = None,
) -> Transform:
    """Recompress JPEG textures with MozJPEG."""
    options = merge_options(
        MOZJPEG_DEFAULT_OPTIONS, slots=slots, formats=formats, quality=quality
    )
    profile = EncodeProfile(
        flags=codec_flags(
            "mozjpeg", quality=_validate_level(options["quality"], "quality", 0, 100)
        ),
        out_extension="jpg",
        out_mime_type="image/jpeg",
        formats=options["formats"],
        slots=options["slots"],
    )
    return profile_transform(profile, encoder)


def oxipng(
    *,
    slots: str | None = None,
    formats: str | None = None,
    effort: int | None = None,
    encoder: Encoder | None = None,
) -> Transform:
    """Losslessly optimize PNG textures with OxiPNG."""
    options = merge_options(
        OXIPNG_DEFAULT_OPTIONS, slots=slots, formats=formats, effort=effort
    )
    profile = EncodeProfile(
        flags=codec_flags(
            "oxipng", effort=_validate_level(options["effort"], "effort", 0, 6)
        ),
        out_extension="png",
        out_mime_type="image/png",
        formats=options["formats"],
        slots=options["slots"],
    )
    return profile_transform(profile, encoder)
