import unittest

from src.migration.domain.errors import ValidationError
from src.migration.domain.models import CreatedPage
from src.migration.infrastructure.bookstack_client import BookStackClient
from tests.utils.fake_http import FakeResponse, FakeSession

BASE = "https://book.example.com"


class BookStackClientTests(unittest.IsolatedAsyncioTestCase):
    async def test_existing_book_is_matched_case_insensitively(self):
        client = BookStackClient(base_url=BASE, auth_header="Token a:b")
        session = FakeSession(
            [
                FakeResponse(
                    status=200,
                    json_data={
                        "data": [{"id": 3, "name": "Confluence: DOC archive"}, {"id": 4, "name": " confluence: doc "}],
                        "total": 2,
                    },
                )
            ]
        )

        book = await client.find_or_create_book(session, "Confluence: DOC")

        self.assertEqual(book.id, 4)
        self.assertTrue(book.existed)
        method, url, kwargs = session.calls[0]
        self.assertEqual(url, f"{BASE}/api/books")
        self.assertEqual(kwargs["params"]["filter[name:like]"], "%Confluence: DOC%")
        self.assertEqual(kwargs["headers"]["Authorization"], "Token a:b")

    async def test_listing_is_paginated_before_creating(self):
        client = BookStackClient(base_url=BASE, auth_header="Token a:b", page_size=1)
        session = FakeSession(
            [
                FakeResponse(status=200, json_data={"data": [{"id": 1, "name": "Other A"}], "total": 2}),
                FakeResponse(status=200, json_data={"data": [{"id": 2, "name": "Other B"}], "total": 2}),
                FakeResponse(status=200, json_data={"id": 9, "name": "Wanted"}),
            ]
        )

        book = await client.find_or_create_book(session, "Wanted")

        self.assertEqual(book.id, 9)
        self.assertFalse(book.existed)
        self.assertEqual([call[0] for call in session.calls], ["GET", "GET", "POST"])
        self.assertEqual(session.calls[1][2]["params"]["offset"], "1")
        self.assertEqual(
            session.calls[2][2]["json"],
            {"name": "Wanted", "description_html": "<p>Imported from Confluence.</p>"},
        )

    async def test_empty_book_name_is_rejected_before_network(self):
        client = BookStackClient(base_url=BASE, auth_header="Token a:b")
        session = FakeSession([])

        with self.assertRaises(ValidationError):
            await client.find_or_create_book(session, "   ")
        self.assertEqual(session.calls, [])

    async def test_create_page_prefers_chapter(self):
        client = BookStackClient(base_url=BASE, auth_header="Token a:b")
        session = FakeSession(
            [FakeResponse(status=200, json_data={"id": 11, "name": "Page", "slug": "page", "book_slug": "book"})]
        )

        page = await client.create_page(session, name="Page", html="<p>x</p>", book_id=1, chapter_id=2)

        self.assertEqual(page, CreatedPage(id=11, name="Page", slug="page", book_slug="book"))
        self.assertEqual(session.calls[0][1], f"{BASE}/api/pages")
        self.assertEqual(session.calls[0][2]["json"], {"name": "Page", "html": "<p>x</p>", "chapter_id": 2})
        self.assertEqual(client.page_url(page), f"{BASE}/books/book/page/page")

    async def test_create_page_requires_a_parent(self):
        client = BookStackClient(base_url=BASE, auth_header="Token a:b")
        with self.assertRaises(ValidationError):
            await client.create_page(FakeSession([]), name="P", html="")

    def test_page_url_needs_both_slugs(self):
        client = BookStackClient(base_url=BASE, auth_header="Token a:b")
        self.assertIsNone(client.page_url(CreatedPage(id=1, name="P", slug="p")))
