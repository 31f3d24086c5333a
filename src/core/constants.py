"""Core constants used across snapshot tool modules.

This module centralizes file suffixes and runtime defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

TOOL_VERSION = "0.1.0"
PAGE_ORIENTED_SUFFIXES = (".json.gz",)
ENTRY_ORIENTED_SUFFIXES = (".tgz", ".tar.gz")
NORMALIZED_SUFFIXES = (".jsonl.gz",)
NEWLINE_DELIMITED_ENTRY_SUFFIX = ".jsonl"
INCOMPLETE_OUTPUT_SUFFIX = ".incomplete"
PAGE_ITEMS_FIELD = "items"
PAGE_MESSAGE_FIELD = "message"
CROSSREF_DOI_FIELD = "DOI"
DATACITE_DOI_FIELD = "doi"
DATACITE_ATTRIBUTES_FIELD = "attributes"
HASH_ALGORITHM = "sha256"
IDENTIFIER_KIND_DOI = "doi"
IDENTIFIER_KIND_CONTENT_HASH = "content_hash"
JSON_SIZE_BUCKET_CHARS = 1024
DEFAULT_PROGRESS_INTERVAL = 10000
DEFAULT_COMPRESSION_LEVEL = 9
DEFAULT_WORKERS = 1
DEFAULT_READ_CHUNK_BYTES = 1024 * 1024
SKIPPED_FORMAT_LABEL = "skipped"
EXIT_CODE_OK = 0
EXIT_CODE_FATAL = 1
EXIT_CODE_INTERRUPTED = 130
