"""Tests for epub_gen.core.resources."""

import pytest

from epub_gen.core.errors import FetchError
from epub_gen.core.loader import MemoryFetcher
from epub_gen.core.normalizer import normalize_manifest
from epub_gen.core.renderer import MarkdownRenderer
from epub_gen.core.resources import ResourceHarvester, harvest_resources, is_local, media_type

from conftest import JPEG_BYTES, PNG_BYTES


def render(text: str) -> str:
    return MarkdownRenderer().render(text)


class TestMediaTypes:
    @pytest.mark.parametrize(
        "path,expected",
        [
            ("a.png", "image/png"),
            ("a.JPG", "image/jpeg"),
            ("a.jpeg", "image/jpeg"),
            ("a.svg", "image/svg+xml"),
            ("a.css", "text/css"),
            ("a.woff2", "font/woff2"),
            ("noext", "application/octet-stream"),
        ],
    )
    def test_media_type(self, path, expected):
        assert media_type(path) == expected

    @pytest.mark.parametrize(
        "reference,local",
        [
            ("images/a.png", True),
            ("../a.png", True),
            ("https://example.com/a.png", False),
            ("data:image/png;base64,AAAA", False),
        ],
    )
    def test_is_local(self, reference, local):
        assert is_local(reference) is local


class TestHarvester:
    def test_image_rewritten_relative_to_chapter(self):
        harvester = ResourceHarvester(MemoryFetcher({"images/a.png": PNG_BYTES}))
        html = harvester.harvest_chapter(render("![A](../images/a.png)"), "chapters/one.md")

        assert 'src="../resources/0.png"' in html
        assert harvester.resources[0].source == "images/a.png"
        assert harvester.resources[0].media_type == "image/png"

    def test_remote_and_empty_sources_untouched(self):
        harvester = ResourceHarvester(MemoryFetcher({}))
        source = '<p><img src="https://example.com/a.png" alt="r"/><img src="" alt="e"/></p>'
        html = harvester.harvest_chapter(source, "one.md")

        assert 'src="https://example.com/a.png"' in html
        assert 'src=""' in html
        assert harvester.resources == []

    def test_same_source_reused(self):
        harvester = ResourceHarvester(MemoryFetcher({"a.png": PNG_BYTES}))
        html = harvester.harvest_chapter(render("![x](a.png) ![y](./a.png)"), "one.md")

        assert len(harvester.resources) == 1
        assert html.count('src="../resources/0.png"') == 2

    def test_percent_encoded_source(self):
        harvester = ResourceHarvester(MemoryFetcher({"my image.png": PNG_BYTES}))
        html = harvester.harvest_chapter(render("![x](my%20image.png)"), "one.md")
        assert 'src="../resources/0.png"' in html

    def test_extension_kept_as_written(self):
        harvester = ResourceHarvester(MemoryFetcher({"a.JPG": JPEG_BYTES, "b": PNG_BYTES}))
        assert harvester.add("a.JPG", "image").href == "resources/0.JPG"
        assert harvester.add("b", "image").href == "resources/1"

    def test_missing_resource(self):
        harvester = ResourceHarvester(MemoryFetcher({}))
        with pytest.raises(FetchError) as exc_info:
            harvester.harvest_chapter(render("![x](gone.png)"), "chapters/one.md")
        assert exc_info.value.path == "chapters/gone.png"

    def test_other_markup_kept(self):
        harvester = ResourceHarvester(MemoryFetcher({}))
        source = '<h1 id="start">Start</h1>\n<p>A &amp; B</p>'
        html = harvester.harvest_chapter(source, "one.md")

        assert '<h1 id="start">Start</h1>' in html
        assert "A &amp; B" in html
        assert "<body>" not in html


class TestHarvestResources:
    def test_order_stylesheets_cover_images(self, sample_manifest, memory_fetcher):
        manifest = normalize_manifest(sample_manifest)
        fragments = [
            render("![Diagram](../images/diagram.png)"),
            render("![Photo](photo.jpg)"),
        ]

        fragments, resources = harvest_resources(manifest, fragments, memory_fetcher)

        assert [(r.href, r.kind) for r in resources] == [
            ("resources/0.css", "stylesheet"),
            ("resources/1.jpg", "cover"),
            ("resources/2.png", "image"),
            ("resources/3.jpg", "image"),
        ]
        assert 'src="../resources/2.png"' in fragments[0]
        assert 'src="../resources/3.jpg"' in fragments[1]

    def test_remote_stylesheet_and_cover_skipped(self, memory_fetcher):
        manifest = normalize_manifest(
            {
                "contents": ["chapters/one.md"],
                "css": ["https://example.com/a.css"],
                "cover": "https://example.com/cover.jpg",
            }
        )
        _, resources = harvest_resources(manifest, ["<p>text</p>"], memory_fetcher)
        assert resources == []

    def test_cover_also_used_as_image(self, memory_fetcher):
        manifest = normalize_manifest(
            {"contents": ["chapters/one.md"], "cover": "images/cover.jpg"}
        )
        fragments, resources = harvest_resources(
            manifest, [render("![c](../images/cover.jpg)")], memory_fetcher
        )

        assert len(resources) == 1
        assert resources[0].kind == "cover"
        assert 'src="../resources/0.jpg"' in fragments[0]
