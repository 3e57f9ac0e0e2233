"""GLB/glTF import and export functions."""

from notso_tex.exporters.gltf import read_document, write_document

__all__ = [
    "read_document",
    "write_document",
]
