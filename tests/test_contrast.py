"""Tests for the header and column color helpers."""

import pytest

from datagrid.contrast import contrast_color, hover_color, luminance


class TestContrastColor:
    """Tests for contrast_color."""

    def test_white_background_gets_black_text(self):
        """A white background needs black text."""
        assert contrast_color("#ffffff") == "#000000"

    def test_black_background_gets_white_text(self):
        """A black background needs white text."""
        assert contrast_color("#000000") == "#ffffff"

    def test_none_stays_none(self):
        """No color means no text color."""
        assert contrast_color(None) is None

    def test_invalid_color_returns_none(self):
        """Strings that are not hex colors are treated as absent."""
        assert contrast_color("not-a-color") is None
        assert contrast_color("#12345") is None
        assert contrast_color("") is None

    def test_short_hex_is_expanded(self):
        """#rgb is accepted like #rrggbb."""
        assert contrast_color("#fff") == "#000000"
        assert contrast_color("#000") == "#ffffff"

    def test_hex_without_hash(self):
        """The leading # is optional."""
        assert contrast_color("ffffff") == "#000000"

    def test_mid_tones(self):
        """Luminance just above the threshold picks black text."""
        assert contrast_color("#808080") == "#000000"
        assert contrast_color("#336699") == "#ffffff"


class TestLuminance:
    """Tests for luminance."""

    def test_extremes(self):
        """White is 1, black is 0."""
        assert luminance("#ffffff") == pytest.approx(1.0)
        assert luminance("#000000") == pytest.approx(0.0)

    def test_channel_weights(self):
        """Green weighs most, blue least."""
        assert luminance("#00ff00") == pytest.approx(0.587)
        assert luminance("#ff0000") == pytest.approx(0.299)
        assert luminance("#0000ff") == pytest.approx(0.114)

    def test_invalid(self):
        """Invalid input has no luminance."""
        assert luminance(None) is None
        assert luminance("#zzzzzz") is None


class TestHoverColor:
    """Tests for hover_color."""

    def test_light_color_is_darkened(self):
        """Light backgrounds darken by 10%."""
        assert hover_color("#ffffff") == "#e6e6e6"
        assert hover_color("#808080") == "#737373"

    def test_dark_color_is_lightened(self):
        """Dark backgrounds lighten by 15%."""
        assert hover_color("#336699") == "#3b75b0"

    def test_channels_are_clamped(self):
        """Lightening never exceeds 255 per channel."""
        assert hover_color("#ff0000") == "#ff0000"

    def test_black_stays_black(self):
        """Lightening zero channels leaves them at zero."""
        assert hover_color("#000000") == "#000000"

    def test_invalid_returns_none(self):
        """Invalid input has no hover color."""
        assert hover_color(None) is None
        assert hover_color("red") is None
