"""Tests for glTF import and export of texture documents."""

from __future__ import annotations

import base64
from pathlib import Path

import pytest
from pygltflib import GLTF2, BufferFormat, Image, Material, TextureInfo
from pygltflib import Texture as GltfTexture

from notso_tex.document import Document
from notso_tex.transforms import to_webp


class TestReadDocument:
    """Tests for read_document function."""

    def test_unsupported_format_raises(self, tmp_path: Path) -> None:
        """Unsupported format should raise ValueError."""
        from notso_tex.exporters import read_document

        path = tmp_path / "model.fbx"
        path.write_bytes(b"fbx")

        with pytest.raises(ValueError, match="Unsupported format"):
            read_document(path)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """Missing input should raise FileNotFoundError."""
        from notso_tex.exporters import read_document

        with pytest.raises(FileNotFoundError):
            read_document(tmp_path / "missing.glb")

    def test_reads_gltf_with_embedded_buffer(
        self, tmp_path: Path, make_document
    ) -> None:
        """bufferView images of a .gltf resolve through its data URI buffer."""
        from notso_tex.exporters import read_document

        doc = make_document([(b"png-bytes", "image/png")])
        doc.gltf.convert_buffers(BufferFormat.DATAURI)
        path = tmp_path / "scene.gltf"
        doc.gltf.save_json(str(path))

        (texture,) = read_document(path).list_textures()

        assert texture.image == b"png-bytes"
        assert texture.mime_type == "image/png"


class TestWriteDocument:
    """Tests for write_document function."""

    def test_glb_round_trip_with_replacement(
        self, tmp_path: Path, make_document
    ) -> None:
        """Replaced payloads are repacked; others survive unchanged."""
        from notso_tex.exporters import read_document, write_document

        doc = make_document(
            [(b"png-one", "image/png"), (b"jpeg-two!", "image/jpeg")],
            materials=[{"baseColorTexture": 0, "normalTexture": 1}],
        )
        first = doc.list_textures()[0]
        first.image = b"RIFF-a-longer-webp-payload"
        first.mime_type = "image/webp"

        out = write_document(doc, tmp_path / "out.glb")
        reread = read_document(out)

        a, b = reread.list_textures()
        assert a.image == b"RIFF-a-longer-webp-payload"
        assert a.mime_type == "image/webp"
        assert b.image == b"jpeg-two!"
        assert reread.texture_slots(b) == ["normalTexture"]
        for view in reread.gltf.bufferViews:
            assert (view.byteOffset or 0) % 4 == 0

    def test_webp_extension_written(
        self, tmp_path: Path, make_document, make_encoder
    ) -> None:
        """Required EXT_texture_webp moves WebP sources into the extension."""
        from notso_tex.exporters import read_document, write_document

        doc = make_document(
            [(b"png", "image/png")], materials=[{"baseColorTexture": 0}]
        )
        to_webp(encoder=make_encoder(output=b"RIFFwebp"))(doc)

        out = write_document(doc, tmp_path / "out.glb")
        gltf = GLTF2().load(str(out))

        assert gltf.textures[0].source is None
        assert gltf.textures[0].extensions == {"EXT_texture_webp": {"source": 0}}
        assert "EXT_texture_webp" in gltf.extensionsUsed
        assert "EXT_texture_webp" in gltf.extensionsRequired

        reread = read_document(out)
        (texture,) = reread.list_textures()
        assert reread.texture_slots(texture) == ["baseColorTexture"]

    def test_existing_webp_source_is_kept(
        self, tmp_path: Path, make_document, make_encoder
    ) -> None:
        """A texture with a WebP source keeps it; its converted fallback goes."""
        from notso_tex.exporters import read_document, write_document

        doc = make_document(
            [(b"png-fallback", "image/png"), (b"RIFF-original", "image/webp")],
            materials=[{"baseColorTexture": 0}],
        )
        doc.gltf.textures = [
            GltfTexture(source=0, extensions={"EXT_texture_webp": {"source": 1}})
        ]
        to_webp(encoder=make_encoder(output=b"RIFF-converted"))(doc)

        out = write_document(doc, tmp_path / "out.glb")
        gltf = GLTF2().load(str(out))

        assert len(gltf.images) == 1
        assert gltf.textures[0].source is None
        assert gltf.textures[0].extensions == {"EXT_texture_webp": {"source": 0}}

        (texture,) = read_document(out).list_textures()
        assert texture.image == b"RIFF-original"
        assert texture.mime_type == "image/webp"

    def test_shared_fallback_image_survives(
        self, tmp_path: Path, make_document, make_encoder
    ) -> None:
        """A fallback another texture still samples is not dropped."""
        from notso_tex.exporters import write_document

        doc = make_document(
            [(b"png-shared", "image/png"), (b"RIFF-original", "image/webp")],
            materials=[{"baseColorTexture": 0, "emissiveTexture": 1}],
        )
        doc.gltf.textures = [
            GltfTexture(source=0, extensions={"EXT_texture_webp": {"source": 1}}),
            GltfTexture(source=0),
        ]
        to_webp(encoder=make_encoder(output=b"RIFF-converted"))(doc)

        out = write_document(doc, tmp_path / "out.glb")
        gltf = GLTF2().load(str(out))

        assert len(gltf.images) == 2
        assert gltf.textures[0].extensions == {"EXT_texture_webp": {"source": 1}}
        assert gltf.textures[1].extensions == {"EXT_texture_webp": {"source": 0}}

    def test_no_webp_extension_for_png_output(
        self, tmp_path: Path, make_document
    ) -> None:
        """Nothing WebP-related is declared when no transform asked for it."""
        from notso_tex.exporters import write_document

        doc = make_document([(b"png", "image/png")])

        out = write_document(doc, tmp_path / "out.glb")
        gltf = GLTF2().load(str(out))

        assert "EXT_texture_webp" not in (gltf.extensionsUsed or [])
        assert gltf.textures[0].source == 0

    def test_gltf_writes_file_images(self, tmp_path: Path, make_encoder) -> None:
        """File images are written next to the output under their new URI."""
        from notso_tex.exporters import read_document, write_document

        src = tmp_path / "src"
        src.mkdir()
        (src / "albedo.png").write_bytes(b"png!")
        gltf = GLTF2(
            images=[Image(uri="albedo.png")],
            textures=[GltfTexture(source=0)],
            materials=[Material(emissiveTexture=TextureInfo(index=0))],
        )
        doc = Document(gltf, base_dir=src)
        to_webp(encoder=make_encoder(output=b"webp!"))(doc)

        out = write_document(doc, tmp_path / "out" / "scene.gltf")

        assert (tmp_path / "out" / "albedo.webp").read_bytes() == b"webp!"
        (texture,) = read_document(out).list_textures()
        assert texture.uri == "albedo.webp"
        assert texture.mime_type == "image/webp"
        assert texture.image == b"webp!"

    def test_glb_embeds_file_images(self, tmp_path: Path) -> None:
        """GLB output pulls file images into the binary chunk."""
        from notso_tex.exporters import read_document, write_document

        (tmp_path / "albedo.png").write_bytes(b"png-file")
        gltf = GLTF2(images=[Image(uri="albedo.png")], textures=[GltfTexture(source=0)])
        doc = Document(gltf, base_dir=tmp_path)

        out = write_document(doc, tmp_path / "packed.glb")

        (texture,) = read_document(out).list_textures()
        assert texture.image == b"png-file"
        assert texture.mime_type == "image/png"
        assert texture.uri is None

    def test_gltf_rewrites_data_uri(self, tmp_path: Path) -> None:
        """Data URI images are re-encoded with the new MIME type."""
        from notso_tex.exporters import write_document

        payload = base64.b64encode(b"png").decode("ascii")
        gltf = GLTF2(images=[Image(uri=f"data:image/png;base64,{payload}")])
        doc = Document(gltf)
        (texture,) = doc.list_textures()
        texture.image = b"webp"
        texture.mime_type = "image/webp"

        out = write_document(doc, tmp_path / "scene.gltf")
        image = GLTF2().load(str(out)).images[0]

        expected = base64.b64encode(b"webp").decode("ascii")
        assert image.uri == f"data:image/webp;base64,{expected}"

    def test_unsupported_output_raises(self, tmp_path: Path, make_document) -> None:
        """Only .glb and .gltf can be written."""
        from notso_tex.exporters import write_document

        with pytest.raises(ValueError, match="Unsupported format"):
            write_document(make_document([]), tmp_path / "out.usdz")


class TestPad4:
    """Tests for pad4 function."""

    @pytest.mark.parametrize("length", [0, 1, 2, 3, 4, 5])
    def test_pads_to_multiple_of_four(self, length: int) -> None:
        """Padding keeps the data and aligns the length."""
        from notso_tex.exporters.gltf import pad4

        padded = pad4(b"x" * length)

        assert len(padded) % 4 == 0
        assert padded[:length] == b"x" * length
