"""
Tests for crop and render.
"""

from pathlib import Path

import pytest
from PIL import Image

from src.compose.engine import (
    crop,
    crop_file,
    encode_image,
    load_image,
    render,
    render_file,
    save_image,
)
from src.compose.models import CropRegion, RenderSettings
from src.core.errors import DecodeError, EncodeError, InvalidRegion, StorageError

RED = (255, 0, 0, 255)
WHITE = (255, 255, 255, 255)


@pytest.fixture
def red_square() -> Image.Image:
    return Image.new("RGBA", (100, 100), RED)


@pytest.fixture
def gradient_source() -> Image.Image:
    image = Image.new("RGB", (64, 48))
    image.putdata([(x * 4, y * 5, (x + y) % 256) for y in range(48) for x in range(64)])
    return image


class TestCrop:
    """Tests for crop()."""

    def test_crop_size_and_content(self, gradient_source: Image.Image):
        """Test that the result has the region's size and pixels."""
        result = crop(gradient_source, CropRegion(x=10, y=5, width=20, height=15))

        assert result.size == (20, 15)
        assert result.getpixel((0, 0)) == gradient_source.getpixel((10, 5))
        assert result.getpixel((19, 14)) == gradient_source.getpixel((29, 19))

    def test_crop_is_clamped(self, gradient_source: Image.Image):
        """Test that overflowing regions are clamped, never padded."""
        result = crop(gradient_source, CropRegion(x=50, y=40, width=100, height=100))
        assert result.size == (14, 8)

    def test_crop_does_not_mutate_source(self, gradient_source: Image.Image):
        """Test that the source is left intact."""
        before = gradient_source.tobytes()
        crop(gradient_source, CropRegion(x=0, y=0, width=10, height=10))
        assert gradient_source.tobytes() == before

    @pytest.mark.parametrize(
        "region",
        [
            CropRegion(x=0, y=0, width=0, height=10),
            CropRegion(x=500, y=500, width=10, height=10),
        ],
    )
    def test_empty_crop_raises(self, gradient_source: Image.Image, region: CropRegion):
        """Test that zero-area crops are rejected."""
        with pytest.raises(InvalidRegion):
            crop(gradient_source, region)


class TestRender:
    """Tests for render()."""

    def test_identity_render_is_pixel_identical(self, gradient_source: Image.Image):
        """Test that default settings return an equal copy."""
        result = render(gradient_source, RenderSettings())

        assert result is not gradient_source
        assert result.size == gradient_source.size
        assert result.tobytes() == gradient_source.tobytes()

    def test_padding_grows_canvas(self, red_square: Image.Image):
        """Test that padding adds to each side and the background fills it."""
        result = render(red_square, RenderSettings(padding=20, background="white"))

        assert result.size == (140, 140)
        assert result.mode == "RGBA"
        assert result.getpixel((5, 5)) == WHITE
        assert result.getpixel((70, 70)) == RED

    def test_transparent_padding(self, red_square: Image.Image):
        """Test that padding without a background stays transparent."""
        result = render(red_square, RenderSettings(padding=10))
        assert result.getpixel((0, 0))[3] == 0
        assert result.getpixel((50, 50)) == RED

    def test_rounded_corners(self, red_square: Image.Image):
        """Test that corners are cut out and the centre is kept."""
        result = render(red_square, RenderSettings(corner_radius=20))

        assert result.size == (100, 100)
        assert result.getpixel((0, 0))[3] == 0
        assert result.getpixel((99, 99))[3] == 0
        assert result.getpixel((50, 50)) == RED

    def test_shadow_darkens_background(self):
        """Test that the shadow is drawn at its offset behind the content."""
        source = Image.new("RGBA", (40, 40), RED)
        settings = RenderSettings(
            padding=40,
            background="white",
            shadow={"blur": 0, "offsetX": 10, "offsetY": 10, "opacity": 50},
        )
        result = render(source, settings)

        shadowed = result.getpixel((85, 85))
        assert shadowed[0] < 255
        assert shadowed[0] == shadowed[1] == shadowed[2]
        assert result.getpixel((5, 5)) == WHITE
        assert result.getpixel((60, 60)) == RED

    def test_gradient_background_runs_between_colours(self, red_square: Image.Image):
        """Test that a top-to-bottom gradient starts and ends at its colours."""
        settings = RenderSettings(
            padding=10,
            background={"type": "gradient", "gradientColors": ["#000000", "#ffffff"], "gradientAngle": 180},
        )
        result = render(red_square, settings)

        assert result.getpixel((0, 0)) == (0, 0, 0, 255)
        assert result.getpixel((0, 119)) == WHITE

    def test_render_is_deterministic(self, gradient_source: Image.Image):
        """Test that the same input and settings give the same pixels."""
        settings = RenderSettings(padding=8, corner_radius=6, shadow=True, blur=1.5, background="gradient")
        first = render(gradient_source, settings)
        second = render(gradient_source, settings)
        assert first.tobytes() == second.tobytes()

    def test_render_does_not_mutate_source(self, gradient_source: Image.Image):
        """Test that rendering leaves the input untouched."""
        before = gradient_source.tobytes()
        render(gradient_source, RenderSettings(padding=5, blur=2, corner_radius=4))
        assert gradient_source.tobytes() == before
        assert gradient_source.mode == "RGB"


class TestCodec:
    """Tests for load/encode/save."""

    def test_encode_unsupported_format(self, red_square: Image.Image):
        """Test that unknown formats raise EncodeError."""
        with pytest.raises(EncodeError):
            encode_image(red_square, "TIFF-ISH")

    def test_encode_jpeg_drops_alpha(self, red_square: Image.Image):
        """Test that RGBA images can be written as JPEG."""
        data = encode_image(red_square, "jpg")
        assert data[:2] == b"\xff\xd8"

    def test_load_undecodable_bytes(self):
        """Test that garbage bytes raise DecodeError."""
        with pytest.raises(DecodeError):
            load_image(b"definitely not an image")

    def test_load_missing_file(self, tmp_path: Path):
        """Test that a missing file raises StorageError."""
        with pytest.raises(StorageError):
            load_image(tmp_path / "missing.png")

    def test_failed_encode_writes_nothing(self, red_square: Image.Image, tmp_path: Path):
        """Test that save_image leaves no file behind on EncodeError."""
        target = tmp_path / "out.bmp"
        with pytest.raises(EncodeError):
            save_image(red_square, target, "BMP")
        assert not target.exists()


class TestFileHelpers:
    """Tests for crop_file and render_file."""

    def test_crop_file(self, gradient_source: Image.Image, tmp_path: Path):
        """Test that a crop is written as a new region PNG."""
        source = tmp_path / "capture.png"
        gradient_source.save(source)

        result = crop_file(source, CropRegion(x=0, y=0, width=16, height=16), tmp_path / "out")

        assert result.name.startswith("region_")
        assert result.parent == (tmp_path / "out").resolve()
        with Image.open(result) as image:
            assert image.size == (16, 16)

    def test_render_file_defaults_to_source_dir(self, red_square: Image.Image, tmp_path: Path):
        """Test that render_file writes next to the source and keeps it."""
        source = tmp_path / "capture.png"
        red_square.save(source)
        original = source.read_bytes()

        result = render_file(source, RenderSettings(padding=20, background="white"))

        assert result.parent == tmp_path.resolve()
        assert result.name.startswith("rendered_")
        assert source.read_bytes() == original
        with Image.open(result) as image:
            assert image.size == (140, 140)
