"""GLB/glTF import and export for texture documents."""

from __future__ import annotations

import base64
from pathlib import Path

from pygltflib import GLTF2, Buffer, BufferFormat, BufferView

from notso_tex.document import Document, Texture, texture_sources
from notso_tex.utils import uri_path
from notso_tex.utils.constants import EXT_TEXTURE_WEBP
from notso_tex.utils.logging import Logger

SUPPORTED_SUFFIXES: tuple[str, ...] = (".glb", ".gltf")


def pad4(data: bytes) -> bytes:
    """Pad to a 4-byte boundary, as GLB bufferViews require."""
    return data + b"\x00" * ((4 - (len(data) % 4)) % 4)


def read_document(path: str | Path, logger: Logger | None = None) -> Document:
    """
    Load a GLB or glTF file into a Document.

    Buffers of a .gltf file are pulled into a single binary blob so images
    stored in bufferViews resolve the same way as for GLB input.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")

    ext = path.suffix.lower()
    if ext not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported format: {ext}")

    gltf = GLTF2().load(str(path))
    if gltf is None:
        raise ValueError(f"Could not parse {path.name}")
    if len(gltf.buffers) > 1:
        raise ValueError(f"Multiple buffers are not supported ({len(gltf.buffers)})")
    if ext == ".gltf" and gltf.buffers:
        gltf.convert_buffers(BufferFormat.BINARYBLOB)

    return Document(gltf, base_dir=path.parent, logger=logger)


def _rebuild_blob(
    gltf: GLTF2, original_blob: bytes, replacements: dict[int, bytes]
) -> bytearray:
    """Repack the binary blob, swapping in new bytes for some bufferViews."""
    views = gltf.bufferViews
    order = sorted(range(len(views)), key=lambda i: views[i].byteOffset or 0)

    new_blob = bytearray()
    cursor = 0

    for i in order:
        view = views[i]
        offset = view.byteOffset or 0
        length = view.byteLength or 0

        # Keep bytes between views untouched (accessor data may rely on it)
        if offset > cursor:
            new_blob += original_blob[cursor:offset]
            cursor = offset

        if i in replacements:
            data = replacements[i]
        else:
            data = original_blob[offset : offset + length]
        new_blob += b"\x00" * ((4 - (len(new_blob) % 4)) % 4)
        view.byteOffset = len(new_blob)
        view.byteLength = len(data)
        new_blob += pad4(data)

        cursor = max(cursor, offset + length)

    if cursor < len(original_blob):
        new_blob += original_blob[cursor:]

    return new_blob


def _data_uri(texture: Texture) -> str:
    payload = base64.b64encode(texture.image).decode("ascii")
    return f"data:{texture.mime_type};base64,{payload}"


def _apply_webp_extension(document: Document) -> set[int]:
    """
    Point glTF textures at WebP images through EXT_texture_webp.

    A texture that already has a WebP source keeps it. When the extension is
    required, its converted core source is no longer needed.

    Returns:
        Indices of images no texture references any more.
    """
    if EXT_TEXTURE_WEBP not in document.extensions:
        return set()

    required = document.is_extension_required(EXT_TEXTURE_WEBP)
    textures = document.list_textures()
    gltf_textures = document.gltf.textures or []
    released: set[int] = set()

    for gltf_texture in gltf_textures:
        source = gltf_texture.source
        if source is None or textures[source].mime_type != "image/webp":
            continue
        extensions = dict(gltf_texture.extensions or {})
        webp_source = dict(extensions.get(EXT_TEXTURE_WEBP) or {}).get("source")
        if webp_source is None:
            extensions[EXT_TEXTURE_WEBP] = {"source": source}
            gltf_texture.extensions = extensions
        elif webp_source != source:
            released.add(source)
        if required:
            # Required extension: no PNG/JPEG fallback in core `source`
            gltf_texture.source = None

    if not required:
        return set()
    referenced = {i for t in gltf_textures for i in texture_sources(t)}
    return released - referenced


def _drop_images(gltf: GLTF2, dropped: set[int]) -> None:
    """Remove images and renumber the texture sources pointing past them."""
    if not dropped:
        return

    remap: dict[int, int] = {}
    kept = []
    for index, image in enumerate(gltf.images):
        if index in dropped:
            continue
        remap[index] = len(kept)
        kept.append(image)
    gltf.images = kept

    for gltf_texture in gltf.textures or []:
        if gltf_texture.source is not None:
            gltf_texture.source = remap[gltf_texture.source]
        for extension in (gltf_texture.extensions or {}).values():
            if isinstance(extension, dict) and extension.get("source") is not None:
                extension["source"] = remap[extension["source"]]


def _declare_extensions(document: Document) -> None:
    gltf = document.gltf
    for name, required in document.extensions.items():
        if name not in gltf.extensionsUsed:
            gltf.extensionsUsed.append(name)
        if required and name not in gltf.extensionsRequired:
            gltf.extensionsRequired.append(name)


def write_document(document: Document, path: str | Path) -> Path:
    """
    Write a Document to GLB or glTF, including any recompressed images.

    Images already in a bufferView stay there. File images are written next
    to a .gltf output under their URI, or embedded for .glb output. Data URI
    images are re-encoded for .gltf and embedded for .glb. Core sources made
    redundant by an existing EXT_texture_webp source are dropped.

    Returns:
        The output path.
    """
    path = Path(path)
    ext = path.suffix.lower()
    if ext not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported format: {ext}")

    gltf = document.gltf
    replacements: dict[int, bytes] = {}
    embeds: list[Texture] = []
    dropped = _apply_webp_extension(document)

    for texture in document.list_textures():
        if texture.index in dropped:
            continue
        image = gltf.images[texture.index]
        if image.bufferView is not None:
            image.mimeType = texture.mime_type
            replacements[image.bufferView] = texture.image
        elif ext == ".glb":
            embeds.append(texture)
        elif texture.uri:
            target = path.parent / uri_path(texture.uri)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(texture.image)
            image.uri = texture.uri
            image.mimeType = None
        else:
            image.uri = _data_uri(texture)
            image.mimeType = texture.mime_type

    if replacements or embeds:
        blob = _rebuild_blob(gltf, gltf.binary_blob() or b"", replacements)
        for texture in embeds:
            blob += b"\x00" * ((4 - (len(blob) % 4)) % 4)
            view = BufferView(
                buffer=0, byteOffset=len(blob), byteLength=len(texture.image)
            )
            gltf.bufferViews.append(view)
            blob += pad4(texture.image)
            image = gltf.images[texture.index]
            image.bufferView = len(gltf.bufferViews) - 1
            image.uri = None
            image.mimeType = texture.mime_type

        if not gltf.buffers:
            gltf.buffers.append(Buffer(byteLength=0))
        gltf.buffers[0].byteLength = len(blob)
        gltf.set_binary_blob(bytes(blob))

    _drop_images(gltf, dropped)
    _declare_extensions(document)

    path.parent.mkdir(parents=True, exist_ok=True)
    if ext == ".glb":
        gltf.save_binary(str(path))
    else:
        if gltf.buffers:
            gltf.convert_buffers(BufferFormat.DATAURI)
        gltf.save_json(str(path))
    return path
