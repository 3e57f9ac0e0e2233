"""Constants and default options for texture compression."""

from typing import TypedDict

# External encoder
SQUOOSH_COMMAND: str = "squoosh-cli"
SQUOOSH_PACKAGE: str = "@squoosh/cli"

# Environment variables
ENV_CI: str = "CI"  # Skip the PATH check (encoder calls are mocked in CI)
ENV_SQUOOSH_CLI: str = "NOTSO_TEX_SQUOOSH_CLI"  # Override executable name/path

# Wildcard accepted by both the formats and slots filters
MATCH_ALL: str = "*"

# Link name between a glTF texture and its image; never a material slot
GENERIC_LINK_NAME: str = "texture"

EXT_TEXTURE_WEBP: str = "EXT_texture_webp"


class WebPOptions(TypedDict, total=False):
    """Options for the squoosh WebP encoder."""

    slots: str
    formats: str
    quality: int | None


class MozJPEGOptions(TypedDict, total=False):
    """Options for the squoosh MozJPEG encoder."""

    slots: str
    formats: str
    quality: int | None


class OxiPNGOptions(TypedDict, total=False):
    """Options for the squoosh OxiPNG optimizer."""

    slots: str
    formats: str
    effort: int | None


class ToWebPOptions(TypedDict, total=False):
    """Options for converting every non-WebP texture to WebP."""

    slots: str


WEBP_DEFAULT_OPTIONS: WebPOptions = {
    "slots": MATCH_ALL,
    "formats": MATCH_ALL,
    "quality": None,  # None = encoder default
}

MOZJPEG_DEFAULT_OPTIONS: MozJPEGOptions = {
    "slots": MATCH_ALL,
    "formats": "jpeg",
    "quality": None,
}

OXIPNG_DEFAULT_OPTIONS: OxiPNGOptions = {
    "slots": MATCH_ALL,
    "formats": "png",
    "effort": None,
}

TOWEBP_DEFAULT_OPTIONS: ToWebPOptions = {
    "slots": MATCH_ALL,
}
