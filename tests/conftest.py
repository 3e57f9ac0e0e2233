"""
Pytest fixtures for texture compression tests.

Documents are built in memory with pygltflib, and the squoosh-cli encoder
is replaced by StubEncoder so no external binary is needed.
"""

from __future__ import annotations

from collections.abc import Sequence

import pytest
from pygltflib import (
    GLTF2,
    Buffer,
    BufferView,
    Image,
    Material,
    PbrMetallicRoughness,
    TextureInfo,
)
from pygltflib import Texture as GltfTexture

from notso_tex.document import Document
from notso_tex.utils.logging import Logger, Verbosity
from notso_tex.utils.squoosh import CompressionError

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"png-payload"
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"jpeg-payload!"
WEBP_BYTES = b"RIFF\x00\x00\x00\x00WEBPVP8 " + b"webp"

PBR_SLOTS = ("baseColorTexture", "metallicRoughnessTexture")


def build_gltf(
    images: Sequence[tuple[bytes, str]],
    materials: Sequence[dict[str, int]] = (),
    names: Sequence[str | None] | None = None,
) -> GLTF2:
    """
    Build a single-buffer glTF with images stored in bufferViews.

    Args:
        images: (payload, mime type) per image; texture i samples image i
        materials: slot name -> texture index, one dict per material
        names: optional image names
    """
    blob = bytearray()
    views: list[BufferView] = []
    gltf_images: list[Image] = []

    for i, (payload, mime_type) in enumerate(images):
        blob += b"\x00" * ((4 - len(blob) % 4) % 4)
        view = BufferView(buffer=0, byteOffset=len(blob), byteLength=len(payload))
        views.append(view)
        blob += payload
        name = names[i] if names else None
        gltf_images.append(Image(bufferView=i, mimeType=mime_type, name=name))

    gltf_materials: list[Material] = []
    for slots in materials:
        pbr = PbrMetallicRoughness()
        material = Material(pbrMetallicRoughness=pbr)
        for slot, index in slots.items():
            if slot in PBR_SLOTS:
                setattr(pbr, slot, TextureInfo(index=index))
            else:
                setattr(material, slot, TextureInfo(index=index))
        gltf_materials.append(material)

    gltf = GLTF2(
        buffers=[Buffer(byteLength=len(blob))],
        bufferViews=views,
        images=gltf_images,
        textures=[GltfTexture(source=i) for i in range(len(images))],
        materials=gltf_materials,
    )
    gltf.set_binary_blob(bytes(blob))
    return gltf


def build_document(
    images: Sequence[tuple[bytes, str]],
    materials: Sequence[dict[str, int]] = (),
    names: Sequence[str | None] | None = None,
    verbosity: Verbosity = Verbosity.DEBUG,
) -> Document:
    """Wrap build_gltf() in a Document with a chatty logger."""
    return Document(build_gltf(images, materials, names), logger=Logger(verbosity))


class StubEncoder:
    """In-memory encoder recording every call.

    Returns ``output`` (or the input unchanged when None) and raises
    CompressionError on the ``fail_on``-th call (1-based).
    """

    def __init__(self, output: bytes | None = None, fail_on: int | None = None):
        self.output = output
        self.fail_on = fail_on
        self.calls: list[tuple[bytes, str, tuple[str, ...], str]] = []

    def check(self) -> None:
        pass

    def encode(
        self,
        image: bytes,
        in_extension: str,
        flags: Sequence[str],
        out_extension: str,
    ) -> bytes:
        self.calls.append((image, in_extension, tuple(flags), out_extension))
        if self.fail_on is not None and len(self.calls) == self.fail_on:
            raise CompressionError("squoosh-cli exited with status 1")
        return image if self.output is None else self.output


@pytest.fixture
def encoder() -> StubEncoder:
    """Pass-through encoder."""
    return StubEncoder()


@pytest.fixture
def mixed_document() -> Document:
    """PNG base color, JPEG normal map, WebP occlusion, and an unused PNG."""
    return build_document(
        [
            (PNG_BYTES, "image/png"),
            (JPEG_BYTES, "image/jpeg"),
            (WEBP_BYTES, "image/webp"),
            (PNG_BYTES, "image/png"),
        ],
        materials=[
            {"baseColorTexture": 0, "normalTexture": 1},
            {"occlusionTexture": 2},
        ],
        names=["albedo", None, "ao", None],
    )


@pytest.fixture
def make_document():
    """Factory fixture, see build_document()."""
    return build_document


@pytest.fixture
def make_encoder():
    """Factory fixture, see StubEncoder."""
    return StubEncoder
