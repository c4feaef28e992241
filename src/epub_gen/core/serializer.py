"""Serialize a resolved book into the documents of an EPUB package."""

from collections.abc import Sequence
from dataclasses import dataclass
from xml.sax.saxutils import quoteattr

from lxml import etree
from lxml.builder import E, ElementMaker

from epub_gen.core.archive import ArchiveEntry
from epub_gen.core.errors import SerializationInvariantError
from epub_gen.core.formatting import format_date, format_list
from epub_gen.models.book import Book, Chapter, HeadingNode

NS_OPF = "http://www.idpf.org/2007/opf"
NS_DC = "http://purl.org/dc/elements/1.1/"
NS_NCX = "http://www.daisy.org/z3986/2005/ncx/"
NS_XHTML = "http://www.w3.org/1999/xhtml"
NS_EPUB = "http://www.idpf.org/2007/ops"
NS_CONTAINER = "urn:oasis:names:tc:opendocument:xmlns:container"
XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"
EPUB_TYPE = f"{{{NS_EPUB}}}type"
OPF_EVENT = f"{{{NS_OPF}}}event"
OPF_ROLE = f"{{{NS_OPF}}}role"
OPF_FILE_AS = f"{{{NS_OPF}}}file-as"
OPF_SCHEME = f"{{{NS_OPF}}}scheme"

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
XHTML_DOCTYPE = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.1//EN" '
    '"http://www.w3.org/TR/xhtml11/DTD/xhtml11.dtd">'
)
NCX_DOCTYPE = (
    '<!DOCTYPE ncx PUBLIC "-//NISO//DTD ncx 2005-1//EN" '
    '"http://www.daisy.org/z3986/2005/ncx-2005-1.dtd">'
)

XHTML_TYPE = "application/xhtml+xml"

# lxml cannot bind the OPF namespace to both the default and the opf: prefix,
# so package elements are built in a placeholder namespace and renamed on output
NS_OPF_DEFAULT = f"{NS_OPF}#unprefixed"
OPF = ElementMaker(
    namespace=NS_OPF_DEFAULT, nsmap={None: NS_OPF_DEFAULT, "opf": NS_OPF, "dc": NS_DC}
)
DC = ElementMaker(namespace=NS_DC, nsmap={"dc": NS_DC, "opf": NS_OPF})
NCX = ElementMaker(namespace=NS_NCX, nsmap={None: NS_NCX})
XHTML = ElementMaker(namespace=NS_XHTML, nsmap={None: NS_XHTML, "epub": NS_EPUB})
CONTAINER = ElementMaker(namespace=NS_CONTAINER, nsmap={None: NS_CONTAINER})

STYLESHEET = """\
.titlepage, h1, h2, h3, h4, h5, h6 {
  hyphens: manual;
  -webkit-hyphens: manual;
  line-height: 1.15;
}
.titlepage, .titlepage h1, .titlepage h2 {
  text-align: center;
}
.titlepage h1 {
  font-size: 3em;
  margin: 1em 0 0;
}
.titlepage h2 {
  font-size: 2em;
  margin: 0.25em 0 0;
}
.titlepage .author {
  margin: 4em 0 0;
  font-size: 1.5em;
  font-weight: bold;
}
hr {
  width: 5em;
  height: 1px;
  background: currentColor;
  border: 0;
  margin: 2em auto;
}
"""


@dataclass
class PackageItem:
    """One entry of the OPF manifest."""

    id: str
    href: str
    media_type: str
    properties: str | None = None


class EpubSerializer:
    """Build every structural and content document of the package."""

    ROOT_DIR = "OEBPS"
    DEFAULT_INDENT = 2

    TITLE_HREF = "text/_title.xhtml"
    NAV_HREF = "text/_nav.xhtml"

    def __init__(self, book: Book, indent: int = DEFAULT_INDENT):
        self.book = book
        self.manifest = book.manifest
        self.indent = indent

    @property
    def identifier(self) -> str:
        return f"urn:uuid:{self.manifest.uuid}"

    def entries(self) -> list[ArchiveEntry]:
        """All archive entries in the order they are written."""
        root = self.ROOT_DIR
        entries = [
            ArchiveEntry("mimetype", content=b"application/epub+zip", compress=False),
            ArchiveEntry("META-INF/container.xml", content=self.container_xml()),
            ArchiveEntry(f"{root}/content.opf", content=self.package_opf()),
            ArchiveEntry(f"{root}/toc.ncx", content=self.toc_ncx()),
        ]
        if self.manifest.toc:
            entries.append(ArchiveEntry(f"{root}/{self.NAV_HREF}", content=self.nav_xhtml()))
        entries.append(ArchiveEntry(f"{root}/{self.TITLE_HREF}", content=self.title_xhtml()))
        for chapter in self.book.chapters:
            entries.append(
                ArchiveEntry(f"{root}/text/{chapter.file_name}", content=self.chapter_xhtml(chapter))
            )
        for resource in self.book.resources:
            entries.append(ArchiveEntry(f"{root}/{resource.href}", source=resource.source))
        entries.append(ArchiveEntry(f"{root}/style.css", content=STYLESHEET.encode("utf-8")))
        return entries

    # ------------------------------------------------------------------
    # Structural documents
    # ------------------------------------------------------------------

    def container_xml(self) -> bytes:
        root = CONTAINER.container(
            {"version": "1.0"},
            CONTAINER.rootfiles(
                CONTAINER.rootfile(
                    {
                        "full-path": f"{self.ROOT_DIR}/content.opf",
                        "media-type": "application/oebps-package+xml",
                    }
                )
            ),
        )
        return self._document(root)

    def package_items(self) -> list[PackageItem]:
        """Items of the OPF manifest, navigation document included only with a TOC."""
        items = [
            PackageItem("ncx", "toc.ncx", "application/x-dtbncx+xml"),
            PackageItem("style", "style.css", "text/css"),
            PackageItem("text-title", self.TITLE_HREF, XHTML_TYPE),
        ]
        if self.manifest.toc:
            items.append(PackageItem("nav", self.NAV_HREF, XHTML_TYPE, "nav"))
        for chapter in self.book.chapters:
            items.append(PackageItem(f"text-{chapter.index}", f"text/{chapter.file_name}", XHTML_TYPE))
        for index, resource in enumerate(self.book.resources):
            properties = "cover-image" if resource.kind == "cover" else None
            items.append(PackageItem(f"res-{index}", resource.href, resource.media_type, properties))
        return items

    def spine_refs(self) -> list[str]:
        refs = ["text-title"]
        if self.manifest.toc:
            refs.append("nav")
        refs.extend(f"text-{chapter.index}" for chapter in self.book.chapters)
        return refs

    def guide_refs(self) -> list[tuple[str, str, str]]:
        """Guide references as (type, title, href)."""
        refs = [("title-page", "Title Page", self.TITLE_HREF)]
        if self.manifest.toc:
            refs.append(("toc", "Table of Contents", self.NAV_HREF))
        if self.book.chapters:
            refs.append(("text", "Start", f"text/{self.book.chapters[0].file_name}"))
        return refs

    @property
    def version(self) -> str:
        """EPUB 3 needs a navigation document; without one the package is OPF 2.0."""
        return "3.0" if self.manifest.toc else "2.0"

    def package_opf(self) -> bytes:
        m = self.manifest
        items = self.package_items()
        spine = self.spine_refs()
        guide = self.guide_refs()
        self._check_consistency(items, spine, guide)

        if self.version == "3.0":
            metadata = self._metadata_epub3()
        else:
            metadata = self._metadata_epub2()
        cover = next((item for item in items if item.properties == "cover-image"), None)
        if cover is not None:
            metadata.append(OPF.meta({"name": "cover", "content": cover.id}))

        manifest = OPF.manifest()
        for item in items:
            attrs = {"id": item.id, "href": item.href, "media-type": item.media_type}
            if item.properties and self.version == "3.0":
                attrs["properties"] = item.properties
            manifest.append(OPF.item(attrs))

        package_attrs = {"version": self.version, "unique-identifier": "uuid"}
        if self.version == "3.0":
            package_attrs[XML_LANG] = m.language
        root = OPF.package(
            package_attrs,
            metadata,
            manifest,
            OPF.spine({"toc": "ncx"}, *[OPF.itemref({"idref": ref}) for ref in spine]),
            OPF.guide(
                *[OPF.reference({"type": t, "title": title, "href": href}) for t, title, href in guide]
            ),
        )
        # Swap the placeholder default namespace back once prefixes are settled
        return self._document(root).replace(NS_OPF_DEFAULT.encode(), NS_OPF.encode())

    def _metadata_epub3(self) -> etree._Element:
        m = self.manifest
        metadata = OPF.metadata(
            DC.identifier({"id": "uuid"}, self.identifier),
            DC.title({"id": "title"}, m.full_title),
            OPF.meta({"refines": "#title", "property": "file-as"}, m.sort_title),
            DC.language(m.language),
        )
        if m.rights:
            metadata.append(DC.rights(m.rights))
        metadata.extend(
            [
                DC.date(format_date(m.date)),
                OPF.meta({"property": "dcterms:created"}, format_date(m.created)),
                OPF.meta({"property": "dcterms:dateCopyrighted"}, format_date(m.copyrighted)),
                OPF.meta({"property": "dcterms:modified"}, f"{format_date(m.date)}T00:00:00Z"),
            ]
        )
        if m.publisher:
            metadata.append(DC.publisher(m.publisher))
        metadata.append(DC.type("Text"))
        for index, author in enumerate(m.authors):
            creator_id = f"creator-{index}"
            metadata.extend(
                [
                    DC.creator({"id": creator_id}, author.name),
                    OPF.meta(
                        {"refines": f"#{creator_id}", "property": "role", "scheme": "marc:relators"},
                        author.role,
                    ),
                    OPF.meta({"refines": f"#{creator_id}", "property": "file-as"}, author.sort),
                ]
            )
        if m.isbn:
            metadata.append(DC.identifier({"id": "isbn"}, f"urn:isbn:{m.isbn}"))
        if m.doi:
            metadata.append(DC.identifier({"id": "doi"}, f"doi:{m.doi}"))
        return metadata

    def _metadata_epub2(self) -> etree._Element:
        """OPF 2.0 metadata: typed dates and creator roles as ``opf:`` attributes."""
        m = self.manifest
        metadata = OPF.metadata(
            DC.identifier({"id": "uuid", OPF_SCHEME: "UUID"}, self.identifier),
            DC.title(m.full_title),
            DC.language(m.language),
        )
        if m.rights:
            metadata.append(DC.rights(m.rights))
        metadata.extend(
            [
                DC.date({OPF_EVENT: "creation"}, format_date(m.created)),
                DC.date({OPF_EVENT: "copyright"}, format_date(m.copyrighted)),
                DC.date({OPF_EVENT: "publication"}, format_date(m.date)),
            ]
        )
        if m.publisher:
            metadata.append(DC.publisher(m.publisher))
        metadata.append(DC.type("Text"))
        for author in m.authors:
            metadata.append(DC.creator({OPF_ROLE: author.role, OPF_FILE_AS: author.sort}, author.name))
        if m.isbn:
            metadata.append(DC.identifier({"id": "isbn", OPF_SCHEME: "ISBN"}, m.isbn))
        if m.doi:
            metadata.append(DC.identifier({"id": "doi", OPF_SCHEME: "DOI"}, m.doi))
        return metadata

    def toc_ncx(self) -> bytes:
        m = self.manifest
        self._play_order = 0
        self._max_depth = 1

        nav_map = NCX.navMap(self._nav_point(m.title, self.TITLE_HREF))
        nav_map.extend(self._nav_points(self.book.headings, depth=1))

        head = NCX.head(
            NCX.meta({"name": "dtb:uid", "content": self.identifier}),
            NCX.meta({"name": "dtb:depth", "content": str(self._max_depth)}),
            NCX.meta({"name": "dtb:totalPageCount", "content": "0"}),
            NCX.meta({"name": "dtb:maxPageNumber", "content": "0"}),
        )
        root = NCX.ncx(
            {"version": "2005-1", XML_LANG: m.language},
            head,
            NCX.docTitle(NCX.text(m.title)),
            *[NCX.docAuthor(NCX.text(author.name)) for author in m.authors],
            nav_map,
        )
        return self._document(root, NCX_DOCTYPE)

    def _nav_point(self, label: str, src: str) -> etree._Element:
        point = NCX.navPoint(
            {"id": f"item-{self._play_order}", "playOrder": str(self._play_order + 1)},
            NCX.navLabel(NCX.text(label)),
            NCX.content({"src": src}),
        )
        self._play_order += 1
        return point

    def _nav_points(self, nodes: Sequence[HeadingNode], depth: int) -> list[etree._Element]:
        points = []
        for node in nodes:
            if node.level > self.manifest.toc_depth:
                continue
            if node.empty:
                points.extend(self._nav_points(node.children, depth))
                continue
            self._max_depth = max(self._max_depth, depth)
            point = self._nav_point(node.title, self._heading_href(node, "text/"))
            point.extend(self._nav_points(node.children, depth + 1))
            points.append(point)
        return points

    def _heading_href(self, node: HeadingNode, prefix: str = "") -> str:
        return f"{prefix}{node.chapter}.xhtml#{node.id}"

    # ------------------------------------------------------------------
    # Content documents
    # ------------------------------------------------------------------

    def nav_xhtml(self) -> bytes:
        toc_list = XHTML.ol(XHTML.li(XHTML.a({"href": "_title.xhtml"}, self.manifest.title)))
        toc_list.extend(self._nav_items(self.book.headings))

        landmarks = XHTML.ol(
            XHTML.li(XHTML.a({EPUB_TYPE: "titlepage", "href": "_title.xhtml"}, "Title Page")),
            XHTML.li(XHTML.a({EPUB_TYPE: "toc", "href": "#toc"}, "Table of Contents")),
        )
        if self.book.chapters:
            landmarks.append(
                XHTML.li(
                    XHTML.a(
                        {EPUB_TYPE: "bodymatter", "href": self.book.chapters[0].file_name},
                        "Start",
                    )
                )
            )

        body = XHTML.body(
            XHTML.nav({EPUB_TYPE: "toc", "id": "toc"}, XHTML.h1("Table of Contents"), toc_list),
            XHTML.nav(
                {EPUB_TYPE: "landmarks", "id": "landmarks", "hidden": "hidden"},
                XHTML.h2("Landmarks"),
                landmarks,
            ),
        )
        return self._document(self._html("Table of Contents", body), XHTML_DOCTYPE)

    def _nav_items(self, nodes: Sequence[HeadingNode]) -> list[etree._Element]:
        items = []
        for node in nodes:
            if node.level > self.manifest.toc_depth:
                continue
            if node.empty:
                items.extend(self._nav_items(node.children))
                continue
            item = XHTML.li(XHTML.a({"href": self._heading_href(node)}, node.title))
            children = self._nav_items(node.children)
            if children:
                item.append(XHTML.ol(*children))
            items.append(item)
        return items

    def title_xhtml(self) -> bytes:
        m = self.manifest
        heading = XHTML.h1(XHTML.span({EPUB_TYPE: "title"}, m.title))
        if m.subtitle:
            heading[0].tail = ":"
        section = XHTML.section({"class": "titlepage", EPUB_TYPE: "titlepage"}, heading)
        if m.subtitle:
            section.append(XHTML.h2({EPUB_TYPE: "subtitle"}, m.subtitle))
        if m.authors:
            section.append(XHTML.p({"class": "author"}, format_list([a.name for a in m.authors])))

        body = XHTML.body({EPUB_TYPE: "frontmatter"}, section)
        return self._document(self._html("Title Page", body), XHTML_DOCTYPE)

    def chapter_xhtml(self, chapter: Chapter) -> bytes:
        """Chapter document with the rendered fragment embedded verbatim."""
        language = quoteattr(self.manifest.language)
        head = etree.tostring(
            E.head(E.title(chapter.title), *self._stylesheet_links(E)),
            encoding="unicode",
        )
        markup = (
            f"{XML_DECLARATION}\n{XHTML_DOCTYPE}\n"
            f'<html xmlns="{NS_XHTML}" xmlns:epub="{NS_EPUB}" xml:lang={language} lang={language}>\n'
            f"{head}\n<body>\n{chapter.xhtml.strip()}\n</body>\n</html>\n"
        )
        return markup.encode("utf-8")

    def _html(self, title: str, body: etree._Element) -> etree._Element:
        language = self.manifest.language
        head = XHTML.head(XHTML.title(title), *self._stylesheet_links(XHTML))
        return XHTML.html({XML_LANG: language, "lang": language}, head, body)

    def _stylesheet_links(self, maker) -> list[etree._Element]:
        hrefs = ["../style.css"] + [r.content_href for r in self.book.stylesheets]
        return [maker.link({"rel": "stylesheet", "type": "text/css", "href": href}) for href in hrefs]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _document(self, root: etree._Element, doctype: str | None = None) -> bytes:
        if self.indent:
            etree.indent(root, space=" " * self.indent)
        markup = etree.tostring(root, encoding="unicode", doctype=doctype)
        return f"{XML_DECLARATION}\n{markup}\n".encode("utf-8")

    def _check_consistency(
        self,
        items: list[PackageItem],
        spine: list[str],
        guide: list[tuple[str, str, str]],
    ) -> None:
        ids = {item.id for item in items}
        hrefs = {item.href for item in items}
        missing = [ref for ref in spine if ref not in ids]
        missing += [href for _, _, href in guide if href not in hrefs]
        if missing:
            raise SerializationInvariantError(f"undeclared package items referenced: {missing}")
        has_nav = ["nav" in ids, "nav" in spine, any(href == self.NAV_HREF for _, _, href in guide)]
        if any(has_nav) and not all(has_nav):
            raise SerializationInvariantError("navigation document is only partly declared")
