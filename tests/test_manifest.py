"""Tests for the HTML manifest."""

import pytest

from atlast.manifest import Manifest, ManifestEntry, ManifestError, parse_descent


def _manifest() -> Manifest:
    return Manifest(
        rows=[
            [ManifestEntry("000", 2), ManifestEntry("001")],
            [ManifestEntry("002", 1)],
        ]
    )


class TestManifestEntry:
    def test_filename(self):
        assert ManifestEntry("007").filename == "007.png"

    def test_img_tag_with_descent(self):
        assert ManifestEntry("000", 2).to_img_tag() == "<img src='000.png' data-descent=2>"

    def test_img_tag_without_descent(self):
        assert ManifestEntry("000").to_img_tag() == "<img src='000.png'>"

    def test_img_tag_escapes_src(self):
        assert ManifestEntry("a'b&c").to_img_tag() == "<img src='a&#x27;b&amp;c.png'>"

    def test_explicit_path_is_filename(self):
        entry = ManifestEntry("custom.bmp", path="custom.bmp")
        assert entry.filename == "custom.bmp"
        assert entry.to_img_tag() == "<img src='custom.bmp'>"

    def test_from_src_keeps_non_png_path(self):
        entry = ManifestEntry.from_src("X.PNG", "1")
        assert (entry.identifier, entry.path, entry.filename) == ("X.PNG", "X.PNG", "X.PNG")

    def test_from_src_png_has_no_path(self):
        assert ManifestEntry.from_src("000.png", None) == ManifestEntry("000")


class TestParseDescent:
    def test_absent_is_zero(self):
        assert parse_descent(None) == 0

    def test_number(self):
        assert parse_descent("12") == 12

    def test_negative_rejected(self):
        with pytest.raises(ManifestError, match="found: -1"):
            parse_descent("-1")

    def test_non_numeric_rejected(self):
        with pytest.raises(ManifestError, match="found: two"):
            parse_descent("two")

    def test_unicode_digit_rejected(self):
        with pytest.raises(ManifestError, match="found: \u00b2"):
            parse_descent("\u00b2")

    def test_plus_sign_rejected(self):
        with pytest.raises(ManifestError, match="found: \\+3"):
            parse_descent("+3")


class TestToHtml:
    def test_structure(self):
        html = _manifest().to_html()
        assert "<!DOCTYPE html>" in html
        assert html.count("<div data-atlas=row>") == 2
        assert "<img src='000.png' data-descent=2>" in html
        assert "<img src='001.png'>" in html

    def test_len_and_entries(self):
        manifest = _manifest()
        assert len(manifest) == 3
        assert [e.identifier for e in manifest.entries()] == ["000", "001", "002"]


class TestFromHtml:
    def test_roundtrip(self):
        manifest = _manifest()
        assert Manifest.from_html(manifest.to_html()) == manifest

    def test_escaped_identifier_roundtrip(self):
        manifest = Manifest(rows=[[ManifestEntry("a'b&c", 3)]])
        assert Manifest.from_html(manifest.to_html()) == manifest

    def test_hand_edited(self):
        html = """
        <html><body>
        <p>notes <img src='ignored.png'></p>
        <section data-atlas="row">
          <span><img src="x.png" data-descent="4"/></span>
          <img src=y.png>
        </section>
        <div data-atlas=row><img src='z.png' data-descent=0></div>
        </body></html>
        """
        manifest = Manifest.from_html(html)
        assert manifest.rows == [
            [ManifestEntry("x", 4), ManifestEntry("y")],
            [ManifestEntry("z")],
        ]

    def test_empty_row_kept(self):
        manifest = Manifest.from_html("<div data-atlas=row></div><div data-atlas=row><img src='a.png'></div>")
        assert manifest.rows == [[], [ManifestEntry("a")]]

    def test_bad_descent(self):
        html = "<div data-atlas=row><img src='000.png' data-descent=abc></div>"
        with pytest.raises(ManifestError, match="found: abc"):
            Manifest.from_html(html)

    def test_missing_src_value(self):
        html = "<div data-atlas=row><img src></div>"
        with pytest.raises(ManifestError, match="src"):
            Manifest.from_html(html)

    def test_img_without_src_ignored(self):
        html = "<div data-atlas=row><img alt='x'><img src='a.png'></div>"
        assert Manifest.from_html(html).rows == [[ManifestEntry("a")]]

    def test_manifest_error_is_value_error(self):
        assert issubclass(ManifestError, ValueError)


class TestPatchHtml:
    def test_replaces_matching_tags_only(self):
        existing = (
            "<h1>My font</h1>\n"
            "<div data-atlas=row>\n"
            "  <img src='000.png'>\n"
            "  <img src='custom.png' data-descent=5>\n"
            "</div>\n"
            "<div data-atlas=row>\n"
            "  <img src=\"001.png\" data-descent=\"7\" class=\"keep\">\n"
            "</div>\n"
        )
        update = Manifest(rows=[[ManifestEntry("000", 3), ManifestEntry("001", 0)]])

        matched, patched = update.patch_html(existing)

        assert matched == 2
        assert patched == (
            "<h1>My font</h1>\n"
            "<div data-atlas=row>\n"
            "  <img src='000.png' data-descent=3>\n"
            "  <img src='custom.png' data-descent=5>\n"
            "</div>\n"
            "<div data-atlas=row>\n"
            "  <img src='001.png'>\n"
            "</div>\n"
        )

    def test_matching_is_by_identifier_not_position(self):
        existing = "<div data-atlas=row><img src='b.png'><img src='a.png'></div>"
        update = Manifest(rows=[[ManifestEntry("a", 1)]])

        matched, patched = update.patch_html(existing)

        assert matched == 1
        assert patched == "<div data-atlas=row><img src='b.png'><img src='a.png' data-descent=1></div>"

    def test_no_matches_leaves_text_alone(self):
        existing = "<div data-atlas=row>\r\n<img src='q.png'>\r\n</div>"
        matched, patched = _manifest().patch_html(existing)
        assert matched == 0
        assert patched == existing

    def test_patch_then_read(self):
        original = _manifest()
        update = Manifest(rows=[[ManifestEntry("001", 6)]])

        _, patched = update.patch_html(original.to_html())

        assert Manifest.from_html(patched).rows == [
            [ManifestEntry("000", 2), ManifestEntry("001", 6)],
            [ManifestEntry("002", 1)],
        ]
