"""
Texture Compressor for glTF/GLB Assets
======================================
Recompresses the textures of a glTF document with squoosh-cli.

Transforms:
- webp: encode textures as WebP and require EXT_texture_webp
- mozjpeg: recompress JPEG textures with MozJPEG
- oxipng: losslessly optimize PNG textures with OxiPNG
- to_webp: convert every texture that is not WebP yet

Textures can be narrowed down by image format ("jpeg", "png") and by a
case-insensitive glob over the material slots that use them
("baseColorTexture", "normalTexture", ...).

Usage:
    CLI:
        notso-tex webp model.glb -o output.glb --quality 80
        notso-tex mozjpeg model.gltf --slots "*Color*"
        notso-tex towebp model.glb

    Python:
        from notso_tex import read_document, webp, write_document

        doc = read_document("model.glb")
        webp(quality=80)(doc)
        write_document(doc, "model_webp.glb")
"""

from importlib.metadata import PackageNotFoundError, version

from notso_tex.cli import main
from notso_tex.document import Document, Texture
from notso_tex.exporters import read_document, write_document
from notso_tex.transforms import mozjpeg, oxipng, to_webp, webp

try:
    __version__ = version("notso-tex")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "Document",
    "Texture",
    "main",
    "mozjpeg",
    "oxipng",
    "read_document",
    "to_webp",
    "webp",
    "write_document",
]
