"""Texture selection by format and slot pattern."""

from __future__ import annotations

from collections.abc import Callable
from fnmatch import fnmatchcase
from typing import NamedTuple, TypeAlias

from notso_tex.document import Document, Texture
from notso_tex.utils.constants import MATCH_ALL

# Returns a reason to skip the texture, or None to keep it
SkipPredicate: TypeAlias = Callable[[Texture], str | None]


class SelectedTexture(NamedTuple):
    """A texture picked for compression, with its slots and display label."""

    texture: Texture
    slots: list[str]
    label: str


def texture_label(texture: Texture, index: int, total: int) -> str:
    """URI, else name, else a 1-based 'index/total' position."""
    return texture.uri or texture.name or f"{index + 1}/{total}"


def matches_slots(slots: list[str], pattern: str) -> bool:
    """True if any slot glob-matches pattern, ignoring case."""
    if pattern == MATCH_ALL:
        return True
    pattern = pattern.lower()
    return any(fnmatchcase(slot.lower(), pattern) for slot in slots)


def matches_format(texture: Texture, formats: str) -> bool:
    """True if formats is the wildcard or the texture is image/<formats>."""
    return formats == MATCH_ALL or texture.mime_type == f"image/{formats}"


def select_textures(
    document: Document,
    formats: str = MATCH_ALL,
    slots: str = MATCH_ALL,
    skip: SkipPredicate | None = None,
) -> list[SelectedTexture]:
    """
    Filter a document's textures down to those eligible for compression.

    Args:
        document: Document to read textures and slot bindings from
        formats: "*" or an image subtype ("jpeg", "png", ...)
        slots: "*" or a case-insensitive glob over slot names ("*Color*")
        skip: Checked before the filters; a non-None reason excludes a texture

    Returns:
        Selected textures in document order. Empty is a valid result.
    """
    logger = document.get_logger()
    textures = document.list_textures()
    selected: list[SelectedTexture] = []

    for index, texture in enumerate(textures):
        texture_slots = document.texture_slots(texture)
        label = texture_label(texture, index, len(textures))

        reason = skip(texture) if skip is not None else None
        if reason:
            logger.debug(f"• Skipping {label}, {reason}.")
            continue
        if not matches_format(texture, formats):
            logger.debug(f'• Skipping {label}, excluded by formats "{formats}".')
            continue
        if not matches_slots(texture_slots, slots):
            logger.debug(f'• Skipping {label}, excluded by slots "{slots}".')
            continue

        selected.append(SelectedTexture(texture, texture_slots, label))

    return selected
