import unittest

from src.migration.application.workflows.render_document import DocumentRenderer, RenderOptions
from src.migration.domain.errors import ValidationError
from src.migration.domain.models import BinaryAsset, Document

BASE = "https://acme.atlassian.net/wiki"

PAGE_HTML = (
    '<h2 class="heading" data-anchor="1">Top Games</h2>'
    '<p onclick="x()"><a href="#top-games">see the list</a> '
    f'<a href="/wiki/spaces/DOC/pages/200/Other">{BASE}/spaces/DOC/pages/200/Other</a></p>'
    '<img src="/wiki/download/attachments/100/a.png"/>'
    "<script>track()</script>"
)


class FakeSource:
    base_url = BASE
    auth_header = "Basic abc"

    def __init__(self, documents):
        self.documents = documents
        self.binary_calls = []

    async def fetch_full(self, document_id):
        return self.documents[document_id]

    async def fetch_title(self, document_id):
        return f"Title {document_id}"

    async def fetch_binary(self, url, *, headers=None, max_bytes=None):
        self.binary_calls.append((url, headers))
        return BinaryAsset(content_type="image/png", data=b"png")


def document(document_id, raw_html=PAGE_HTML, title=None):
    return Document(
        id=document_id,
        title=f"Doc {document_id}" if title is None else title,
        raw_html=raw_html,
        space_key="DOC",
    )


class DocumentRendererTests(unittest.IsolatedAsyncioTestCase):
    async def test_full_pipeline_produces_clean_fragment(self):
        source = FakeSource({"100": document("100")})

        rendered = await DocumentRenderer(source).render("100")

        html = rendered.html
        self.assertTrue(html.startswith('<div id="__root">'))
        self.assertIn('<h2 id="id-TopGames">Top Games</h2>', html)
        self.assertIn('href="#id-TopGames"', html)
        self.assertIn(">Title 200</a>", html)
        self.assertIn('src="data:image/png;base64,cG5n"', html)
        self.assertNotIn("<script", html)
        self.assertNotIn("class=", html)
        self.assertNotIn("data-anchor", html)
        self.assertNotIn("onclick", html)
        self.assertEqual(rendered.linked_ids, ("200",))
        self.assertEqual(rendered.space_key, "DOC")
        self.assertEqual(rendered.titles_replaced, 1)
        self.assertEqual(rendered.assets.succeeded, 1)
        self.assertIn("id-TopGames", rendered.protected_ids)
        self.assertEqual(source.binary_calls[0][1], {"Authorization": "Basic abc"})

    async def test_full_document_mode_keeps_html_shell(self):
        source = FakeSource({"100": document("100")})

        rendered = await DocumentRenderer(source, RenderOptions(fragment=False)).render("100")

        self.assertIn("<html>", rendered.html)
        self.assertIn("<body>", rendered.html)

    async def test_images_are_left_alone_when_inlining_is_disabled(self):
        source = FakeSource({"100": document("100")})

        rendered = await DocumentRenderer(source, RenderOptions(inline_images=False)).render("100")

        self.assertIsNone(rendered.assets)
        self.assertEqual(source.binary_calls, [])
        self.assertIn('src="/wiki/download/attachments/100/a.png"', rendered.html)

    async def test_same_document_links_are_counted(self):
        html = (
            '<h2 id="intro">Intro</h2>'
            f'<a href="{BASE}/spaces/DOC/pages/100/Handbook#intro">{BASE}/spaces/DOC/pages/100/Handbook#intro</a>'
        )
        source = FakeSource({"100": document("100", raw_html=html)})

        rendered = await DocumentRenderer(source).render("100")

        self.assertIn('<a href="#intro">Intro</a>', rendered.html)
        self.assertEqual(rendered.rewritten_self_links, 1)
        self.assertEqual(rendered.linked_ids, ())

    async def test_empty_export_view_is_rejected(self):
        source = FakeSource({"100": document("100", raw_html="  ")})

        with self.assertRaises(ValidationError):
            await DocumentRenderer(source).render("100")

    async def test_title_override_applies_to_root_only(self):
        source = FakeSource({"100": document("100"), "200": document("200")})
        renderer = DocumentRenderer(source, RenderOptions(title_override="Custom"), root_id="100")

        root = await renderer.render("100")
        child = await renderer.render("200")

        self.assertEqual(root.title, "Custom")
        self.assertEqual(child.title, "Doc 200")

    async def test_missing_title_falls_back_to_id(self):
        source = FakeSource({"7": document("7", title="")})

        rendered = await DocumentRenderer(source).render("7")

        self.assertEqual(rendered.title, "Confluence page 7")

    async def test_keep_ids_preserves_unreferenced_ids(self):
        html = '<p id="loose">text</p>'
        source = FakeSource({"100": document("100", raw_html=html)})

        kept = await DocumentRenderer(source, RenderOptions(keep_ids=True)).render("100")
        dropped = await DocumentRenderer(source).render("100")

        self.assertIn('id="loose"', kept.html)
        self.assertNotIn('id="loose"', dropped.html)
