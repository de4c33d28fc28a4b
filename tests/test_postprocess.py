"""Tests for the structural HTML fix-ups."""

import pytest

from bookpack.postprocess import fix_html, fix_img


class TestFixImg:

    def test_wraps_bare_image(self):
        html = 'Text <img src="a.png" alt="a" /> more'
        assert fix_img(html) == 'Text <p><img src="a.png" alt="a" /></p> more'

    def test_already_wrapped_image_is_untouched(self):
        html = '<p><img alt="Logo" src="./logo.png" /></p>'
        assert fix_img(html) == html

    def test_image_inside_paragraph_text(self):
        html = '<p>See <img alt="x" src="x.png" /></p>'
        assert fix_img(html) == '<p>See <p><img alt="x" src="x.png" /></p></p>'

    def test_each_image_gets_its_own_paragraph(self):
        html = '<img src="a.png" /><img src="b.png" />'
        assert fix_img(html) == '<p><img src="a.png" /></p><p><img src="b.png" /></p>'

    def test_non_self_closing_image_is_left_alone(self):
        html = '<div><img src="a.png"></div>'
        assert fix_img(html) == html

    def test_no_images(self):
        html = "<h1>Title</h1>\n<p>Body</p>"
        assert fix_img(html) == html


class TestFixHtmlIdempotent:

    @pytest.mark.parametrize("html", [
        "",
        "<p>No images here.</p>",
        '<img src="a.png" />',
        '<p><img src="a.png" /></p>',
        '<p>Inline <img src="a.png" /> image</p>',
        '<p><img src="a.png" /> leading</p>',
        '<p><img src="a.png" /><img src="b.png" /></p>',
        '<div>\n<img alt="" src="c.svg" />\n<img src="d.svg"/>\n</div>',
    ])
    def test_twice_equals_once(self, html):
        once = fix_html(html)
        assert fix_html(once) == once

    def test_no_double_wrap(self):
        once = fix_html('<img src="a.png" />')
        assert "<p><p>" not in fix_html(once)
