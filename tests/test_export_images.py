"""Tests for resolving and sizing embedded images."""

from __future__ import annotations

import base64

from datagrid.export.images import fit_size, load_image, resolve_image_source


PIXEL_B64 = "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
PIXEL = base64.b64decode(PIXEL_B64)


class TestResolveImageSource:
    """Tests for resolve_image_source."""

    def test_data_uri(self):
        """Base64 data URIs decode to their bytes."""
        assert resolve_image_source(f"data:image/png;base64,{PIXEL_B64}") == PIXEL

    def test_bad_base64(self):
        """Malformed base64 is not resolvable."""
        assert resolve_image_source("data:image/png;base64,@@@") is None
        assert resolve_image_source("data:image/png;base64") is None

    def test_local_path_and_file_url(self, tmp_path):
        """Local paths and file URLs are read from disk."""
        path = tmp_path / "logo.png"
        path.write_bytes(PIXEL)
        assert resolve_image_source(str(path)) == PIXEL
        assert resolve_image_source(path.as_uri()) == PIXEL

    def test_unresolvable(self, tmp_path):
        """Remote URLs, missing files and empty sources resolve to None."""
        assert resolve_image_source("https://example.com/logo.png") is None
        assert resolve_image_source(str(tmp_path / "missing.png")) is None
        assert resolve_image_source(str(tmp_path)) is None
        assert resolve_image_source("") is None


class TestFitSize:
    """Tests for fit_size."""

    def test_scales_down_keeping_ratio(self):
        """Large images shrink to the bound."""
        assert fit_size(200, 100, 40) == (40, 20)
        assert fit_size(50, 100, 40) == (20, 40)

    def test_never_enlarges(self):
        """Small images keep their size."""
        assert fit_size(10, 5, 40) == (10, 5)

    def test_unknown_size(self):
        """Degenerate sizes fill the bound."""
        assert fit_size(0, 0, 40) == (40, 40)


class TestLoadImage:
    """Tests for load_image."""

    def test_measures_image(self):
        """A readable image is measured and bounded."""
        embedded = load_image(f"data:image/png;base64,{PIXEL_B64}", 40)
        assert embedded is not None
        assert (embedded.width, embedded.height) == (1, 1)
        assert embedded.width_pt == 0.75
        assert embedded.stream().read() == PIXEL

    def test_not_an_image(self, tmp_path):
        """Bytes that are not an image are rejected."""
        path = tmp_path / "notes.png"
        path.write_text("not an image", encoding="utf-8")
        assert load_image(str(path), 40) is None
