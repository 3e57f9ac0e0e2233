"""Texture-level view over a glTF document held by pygltflib."""

from __future__ import annotations

import base64
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pygltflib import GLTF2

from notso_tex.utils import extension_to_mime_type, uri_extension, uri_path
from notso_tex.utils.constants import GENERIC_LINK_NAME
from notso_tex.utils.logging import Logger

# textureInfo properties on a glTF material
PBR_TEXTURE_SLOTS: tuple[str, ...] = ("baseColorTexture", "metallicRoughnessTexture")
MATERIAL_TEXTURE_SLOTS: tuple[str, ...] = (
    "normalTexture",
    "occlusionTexture",
    "emissiveTexture",
)


@dataclass(eq=False)
class Texture:
    """One image payload of the document (a glTF ``images[]`` entry)."""

    image: bytes
    mime_type: str
    uri: str | None = None
    name: str | None = None
    index: int = field(default=-1, repr=False)


@dataclass(frozen=True, eq=False)
class Link:
    """Named edge from a consumer (material or glTF texture) to a Texture."""

    name: str
    parent: Any
    child: Texture


def _get(obj: Any, key: str) -> Any:
    """Read a property from a pygltflib object or a raw extension dict."""
    if obj is None:
        return None
    if isinstance(obj, dict):
        return obj.get(key)
    return getattr(obj, key, None)


def _material_slots(material: Any) -> Iterator[tuple[str, Any]]:
    """Yield (slot name, textureInfo) for every texture a material uses."""
    pbr = _get(material, "pbrMetallicRoughness")
    for slot in PBR_TEXTURE_SLOTS:
        info = _get(pbr, slot)
        if info is not None:
            yield slot, info

    for slot in MATERIAL_TEXTURE_SLOTS:
        info = _get(material, slot)
        if info is not None:
            yield slot, info

    # KHR_materials_* keep their textureInfos as plain dicts
    for extension in (_get(material, "extensions") or {}).values():
        if not isinstance(extension, dict):
            continue
        for key, value in extension.items():
            if key.endswith("Texture") and isinstance(value, dict) and "index" in value:
                yield key, value


def texture_sources(gltf_texture: Any) -> list[int]:
    """Image indices a glTF texture points at, fallback source first."""
    sources: list[int] = []
    source = _get(gltf_texture, "source")
    if source is not None:
        sources.append(source)
    for extension in (_get(gltf_texture, "extensions") or {}).values():
        ext_source = _get(extension, "source")
        if ext_source is not None and ext_source not in sources:
            sources.append(ext_source)
    return sources


class Document:
    """
    Textures, their slot bindings and declared extensions of one glTF asset.

    The wrapped ``GLTF2`` stays the source of truth for everything except
    image payloads, which are decoded once into ``Texture`` objects and
    written back by ``notso_tex.exporters.gltf.write_document``.
    """

    def __init__(
        self,
        gltf: GLTF2,
        base_dir: str | Path | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.gltf = gltf
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self.logger = logger or Logger()

        required = set(gltf.extensionsRequired or [])
        self.extensions: dict[str, bool] = {
            name: name in required for name in gltf.extensionsUsed or []
        }
        self._textures = [
            self._load_texture(index, image)
            for index, image in enumerate(gltf.images or [])
        ]

    def _load_texture(self, index: int, image: Any) -> Texture:
        payload, uri, mime_type = self._read_image(image)
        if not mime_type:
            mime_type = extension_to_mime_type(uri_extension(uri or ""))
        return Texture(
            image=payload,
            mime_type=mime_type,
            uri=uri,
            name=image.name or None,
            index=index,
        )

    def _read_image(self, image: Any) -> tuple[bytes, str | None, str | None]:
        """Return (bytes, uri, MIME type) for a glTF image."""
        if image.bufferView is not None:
            view = self.gltf.bufferViews[image.bufferView]
            blob = self.gltf.binary_blob() or b""
            start = view.byteOffset or 0
            return blob[start : start + view.byteLength], None, image.mimeType

        uri = image.uri or ""
        if uri.startswith("data:"):
            header, _, payload = uri.partition(",")
            mime_type = image.mimeType or header[5:].split(";", 1)[0]
            return base64.b64decode(payload), None, mime_type

        if not uri:
            label = image.name or "?"
            raise ValueError(f"Image {label} has neither bufferView nor uri")
        if self.base_dir is None:
            raise ValueError(f"Cannot resolve image uri without a base_dir: {uri}")
        payload = (self.base_dir / uri_path(uri)).read_bytes()
        return payload, uri, image.mimeType

    def get_logger(self) -> Logger:
        """Logger for diagnostics emitted while transforming this document."""
        return self.logger

    def list_textures(self) -> list[Texture]:
        """All textures, in document order."""
        return list(self._textures)

    def list_links(self) -> list[Link]:
        """Every binding that points at a texture."""
        textures = self._textures
        gltf_textures = self.gltf.textures or []
        links: list[Link] = []

        for material in self.gltf.materials or []:
            for slot, info in _material_slots(material):
                tex_index = _get(info, "index")
                if tex_index is None or tex_index >= len(gltf_textures):
                    continue
                for source in texture_sources(gltf_textures[tex_index]):
                    links.append(Link(slot, material, textures[source]))

        for gltf_texture in gltf_textures:
            for source in texture_sources(gltf_texture):
                links.append(Link(GENERIC_LINK_NAME, gltf_texture, textures[source]))

        return links

    def texture_slots(self, texture: Texture) -> list[str]:
        """Names of the slots using the given texture, e.g. ['normalTexture']."""
        slots: list[str] = []
        for link in self.list_links():
            if link.child is not texture or link.name == GENERIC_LINK_NAME:
                continue
            if link.name not in slots:
                slots.append(link.name)
        return slots

    def create_extension(self, name: str, required: bool = False) -> None:
        """Declare an extension, optionally marking it required."""
        self.extensions[name] = self.extensions.get(name, False) or required

    def is_extension_required(self, name: str) -> bool:
        return self.extensions.get(name, False)
