"""Page-oriented snapshot reader.

Crossref snapshots ship as gzip files whose content is a JSON page with
an ordered ``items`` list. Each gzip member is buffered and parsed whole,
one page at a time, then its items are emitted in page order.
"""

from __future__ import annotations

import json
import re
import zlib
from typing import Any, BinaryIO, Iterator

from core.constants import PAGE_ITEMS_FIELD, PAGE_MESSAGE_FIELD
from core.types import RawPage
from ingest.archive_reader import ArchiveReader

_GZIP_WBITS = zlib.MAX_WBITS | 16
_WHITESPACE = re.compile(r"\s*")


class PageArchiveReader(ArchiveReader):
    """Reader for page-oriented ``.json.gz`` files."""

    def _iter_raw_pages(self) -> Iterator[RawPage]:
        path = self.snapshot_file.path
        try:
            handle = path.open("rb")
        except OSError as error:
            raise self._corrupt("file cannot be opened", error) from error
        page_number = 0
        with handle:
            for member_bytes in self._iter_gzip_members(handle):
                for page_document in self._decode_pages(member_bytes):
                    page_number += 1
                    items = self._page_items(page_document, page_number)
                    for item_number, item in enumerate(items, 1):
                        yield RawPage(
                            source_uri=f"{path}:page-{page_number}:item-{item_number}",
                            document=item,
                        )
        if page_number == 0:
            raise self._corrupt("no JSON page found")

    def _iter_gzip_members(self, handle: BinaryIO) -> Iterator[bytes]:
        """Yield the decompressed bytes of each gzip member in turn."""
        decompressor = zlib.decompressobj(wbits=_GZIP_WBITS)
        member_chunks: list[bytes] = []
        member_started = False
        while True:
            try:
                chunk = handle.read(self._config.read_chunk_bytes)
            except OSError as error:
                raise self._corrupt("file cannot be read", error) from error
            if not chunk:
                break
            while chunk:
                if not member_started:
                    # Zero padding between or after members is not data.
                    chunk = chunk.lstrip(b"\x00")
                    if not chunk:
                        break
                member_started = True
                try:
                    member_chunks.append(decompressor.decompress(chunk))
                except zlib.error as error:
                    raise self._corrupt("gzip data cannot be decompressed", error) from error
                if not decompressor.eof:
                    break
                member_bytes = b"".join(member_chunks)
                member_chunks = []
                chunk = decompressor.unused_data
                decompressor = zlib.decompressobj(wbits=_GZIP_WBITS)
                member_started = False
                yield member_bytes
        if member_started:
            raise self._corrupt("gzip stream ends mid-page")

    def _decode_pages(self, member_bytes: bytes) -> list[Any]:
        """Parse all whitespace-separated JSON page documents of one member."""
        try:
            text = member_bytes.decode("utf-8")
        except UnicodeDecodeError as error:
            raise self._corrupt("page is not valid UTF-8", error) from error
        decoder = json.JSONDecoder()
        documents: list[Any] = []
        position = _WHITESPACE.match(text, 0).end()
        while position < len(text):
            try:
                document, position = decoder.raw_decode(text, position)
            except (json.JSONDecodeError, RecursionError) as error:
                raise self._corrupt("page is not valid JSON", error) from error
            documents.append(document)
            position = _WHITESPACE.match(text, position).end()
        return documents

    def _page_items(self, page_document: Any, page_number: int) -> list[Any]:
        """Return the item list of a Crossref snapshot page or API response."""
        container = page_document
        if isinstance(container, dict) and isinstance(container.get(PAGE_MESSAGE_FIELD), dict):
            container = container[PAGE_MESSAGE_FIELD]
        items = container.get(PAGE_ITEMS_FIELD) if isinstance(container, dict) else None
        if not isinstance(items, list):
            raise self._corrupt(
                f"page {page_number} has no '{PAGE_ITEMS_FIELD}' list"
            )
        return items
