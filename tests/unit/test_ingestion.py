"""Unit tests for ingestion module."""

import asyncio
from datetime import datetime, timezone

import aiohttp
import pytest

from pacfeed.errors import DocumentFormatError, FeedFetchError
from pacfeed.ingestion.fetcher import RSSFetcher, parse_document
from pacfeed.ingestion.interfaces import FeedDocument

URL = "https://example.com/rss"

CHANNEL = """<title>Example</title>
<link>https://example.com/</link>
<description>Example feed</description>"""

ITEM = """<item>
<title>First post</title>
<link>https://example.com/1</link>
<description>Hello</description>
<pubDate>Mon, 01 Jan 2024 12:00:00 GMT</pubDate>
<guid>g1</guid>
</item>"""


def rss(channel=CHANNEL, items=ITEM):
    return f'<?xml version="1.0"?><rss version="2.0"><channel>{channel}{items}</channel></rss>'


class FakeResponse:
    def __init__(self, status, body=""):
        self.status = status
        self.body = body

    async def text(self):
        return self.body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return False


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error

    def get(self, url):
        if self.error:
            raise self.error
        return self.response


class TestParseDocument:
    """Tests for parse_document."""

    def test_parses_channel_and_items(self):
        """Should parse channel fields and every item."""
        document = parse_document(rss(), URL)

        assert isinstance(document, FeedDocument)
        assert document.title == "Example"
        assert document.link == "https://example.com/"
        assert document.description == "Example feed"
        assert len(document.items) == 1

        item = document.items[0]
        assert item.guid == "g1"
        assert item.title == "First post"
        assert item.link == "https://example.com/1"
        assert item.description == "Hello"
        assert item.published_at == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_pubdate_normalised_to_utc(self):
        """Offsets in pubDate should be converted to UTC."""
        item = ITEM.replace("Mon, 01 Jan 2024 12:00:00 GMT", "Mon, 01 Jan 2024 14:00:00 +0200")
        document = parse_document(rss(items=item), URL)
        assert document.items[0].published_at == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_channel_without_items(self):
        """A feed with no items is valid and empty."""
        document = parse_document(rss(items=""), URL)
        assert document.items == []

    def test_atom_is_rejected(self):
        """Non-RSS documents should fail."""
        atom = (
            '<?xml version="1.0"?><feed xmlns="http://www.w3.org/2005/Atom">'
            '<title>Atom</title><id>urn:x</id><updated>2024-01-01T00:00:00Z</updated></feed>'
        )
        with pytest.raises(DocumentFormatError, match="not an RSS document"):
            parse_document(atom, URL)

    def test_garbage_is_rejected(self):
        with pytest.raises(DocumentFormatError):
            parse_document("<html><body>Not a feed</body></html>", URL)

    def test_missing_channel_description(self):
        channel = CHANNEL.replace("<description>Example feed</description>", "")
        with pytest.raises(DocumentFormatError, match="description"):
            parse_document(rss(channel=channel), URL)

    def test_missing_guid_fails_whole_document(self):
        """One bad item should fail the document, not just be skipped."""
        bad = ITEM.replace("<guid>g1</guid>", "")
        with pytest.raises(DocumentFormatError, match="guid"):
            parse_document(rss(items=ITEM.replace("g1", "g0") + bad), URL)

    def test_missing_pubdate(self):
        bad = ITEM.replace("<pubDate>Mon, 01 Jan 2024 12:00:00 GMT</pubDate>", "")
        with pytest.raises(DocumentFormatError, match="pubDate"):
            parse_document(rss(items=bad), URL)

    def test_unparseable_pubdate(self):
        bad = ITEM.replace("Mon, 01 Jan 2024 12:00:00 GMT", "sometime last week")
        with pytest.raises(DocumentFormatError, match="pubDate"):
            parse_document(rss(items=bad), URL)

    def test_truncated_document_is_rejected(self):
        truncated = f'<?xml version="1.0"?><rss version="2.0"><channel>{CHANNEL}{ITEM}'
        with pytest.raises(DocumentFormatError, match="Malformed XML"):
            parse_document(truncated, URL)

    def test_unescaped_ampersand_is_rejected(self):
        bad = ITEM.replace("<title>First post</title>", "<title>A & B</title>")
        with pytest.raises(DocumentFormatError, match="Malformed XML"):
            parse_document(rss(items=bad), URL)

    def test_escaped_ampersand_is_accepted(self):
        item = ITEM.replace("<title>First post</title>", "<title>A &amp; B</title>")
        document = parse_document(rss(items=item), URL)
        assert document.items[0].title == "A & B"

    def test_rss092_is_accepted(self):
        document = parse_document(rss().replace('version="2.0"', 'version="0.92"'), URL)
        assert [i.guid for i in document.items] == ["g1"]

    def test_rdf_is_rejected(self):
        """RSS 1.0 has an rdf:RDF root, not <rss>."""
        rdf = (
            '<?xml version="1.0"?>'
            '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#"'
            ' xmlns="http://purl.org/rss/1.0/">'
            f'<channel rdf:about="https://example.com/">{CHANNEL}</channel>'
            f'<item rdf:about="https://example.com/1">{ITEM[6:-7]}</item>'
            '</rdf:RDF>'
        )
        with pytest.raises(DocumentFormatError, match="not an RSS document"):
            parse_document(rdf, URL)

    def test_empty_guid_is_rejected(self):
        bad = ITEM.replace("<guid>g1</guid>", "<guid></guid>")
        with pytest.raises(DocumentFormatError, match="guid in item 0"):
            parse_document(rss(items=bad), URL)

    def test_empty_channel_title_is_rejected(self):
        channel = CHANNEL.replace("<title>Example</title>", "<title> </title>")
        with pytest.raises(DocumentFormatError, match="title in channel"):
            parse_document(rss(channel=channel), URL)

    def test_format_error_is_fetch_error(self):
        """Shape violations are fetch failures for the source."""
        assert issubclass(DocumentFormatError, FeedFetchError)


@pytest.mark.asyncio
class TestRSSFetcher:
    """Tests for RSSFetcher with a stubbed HTTP session."""

    async def test_fetch_document(self):
        fetcher = RSSFetcher()
        fetcher.session = FakeSession(FakeResponse(200, rss()))

        document = await fetcher.fetch_document(URL)

        assert [i.guid for i in document.items] == ["g1"]

    async def test_non_200_status(self):
        fetcher = RSSFetcher()
        fetcher.session = FakeSession(FakeResponse(404))

        with pytest.raises(FeedFetchError, match="HTTP 404"):
            await fetcher.fetch_document(URL)

    async def test_network_error(self):
        fetcher = RSSFetcher()
        fetcher.session = FakeSession(error=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(FeedFetchError) as exc_info:
            await fetcher.fetch_document(URL)
        assert exc_info.value.url == URL
        assert "refused" in exc_info.value.reason

    async def test_timeout(self):
        fetcher = RSSFetcher()
        fetcher.session = FakeSession(error=asyncio.TimeoutError())

        with pytest.raises(FeedFetchError, match="TimeoutError"):
            await fetcher.fetch_document(URL)

    async def test_malformed_body(self):
        fetcher = RSSFetcher()
        fetcher.session = FakeSession(FakeResponse(200, "not xml at all"))

        with pytest.raises(DocumentFormatError):
            await fetcher.fetch_document(URL)

    async def test_requires_context_manager(self):
        with pytest.raises(RuntimeError):
            await RSSFetcher().fetch_document(URL)

    async def test_context_manager_opens_and_closes_session(self):
        async with RSSFetcher(timeout_seconds=5) as fetcher:
            assert fetcher.session is not None
            assert fetcher.session.timeout.total == 5
        assert fetcher.session is None
