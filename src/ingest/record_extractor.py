"""Record extraction from raw pages.

This module decodes raw pages into canonical records. Decode problems
are returned as ``DecodeFailure`` values so one bad record never
interrupts the stream of the records around it.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Mapping

from core.constants import (
    CROSSREF_DOI_FIELD,
    DATACITE_ATTRIBUTES_FIELD,
    DATACITE_DOI_FIELD,
    HASH_ALGORITHM,
    IDENTIFIER_KIND_CONTENT_HASH,
    IDENTIFIER_KIND_DOI,
)
from core.types import CanonicalRecord, DecodeFailure, FormatTag, RawPage


def extract_record(
    raw_page: RawPage,
    source_format: FormatTag,
) -> CanonicalRecord | DecodeFailure:
    """Decode one raw page into a canonical record.

    Args:
        raw_page: Raw bytes or pre-parsed item from an archive reader.
        source_format: Format tag of the archive being read.

    Returns:
        Canonical record, or a decode failure describing why not.
    """
    if raw_page.content is not None:
        try:
            payload = json.loads(raw_page.content)
        except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as error:
            return DecodeFailure(source_uri=raw_page.source_uri, reason=f"invalid JSON: {error}")
    else:
        payload = raw_page.document
    if not isinstance(payload, dict):
        return DecodeFailure(
            source_uri=raw_page.source_uri,
            reason=f"expected JSON object, got {type(payload).__name__}",
        )
    try:
        encoded = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    except (ValueError, RecursionError) as error:
        return DecodeFailure(source_uri=raw_page.source_uri, reason=f"unencodable JSON: {error}")
    doi = get_doi_from_payload(payload)
    return CanonicalRecord(
        identifier=doi if doi is not None else build_content_identifier(payload),
        identifier_kind=IDENTIFIER_KIND_DOI if doi is not None else IDENTIFIER_KIND_CONTENT_HASH,
        source_format=source_format,
        payload=payload,
        encoded=encoded,
    )


def get_doi_from_payload(payload: Mapping[str, Any]) -> str | None:
    """Return the record DOI from Crossref or DataCite fields.

    Args:
        payload: Record JSON object.

    Returns:
        DOI string when present, else None.
    """
    for field_name in (CROSSREF_DOI_FIELD, DATACITE_DOI_FIELD):
        doi = payload.get(field_name)
        if isinstance(doi, str) and doi:
            return doi
    attributes = payload.get(DATACITE_ATTRIBUTES_FIELD)
    if isinstance(attributes, dict):
        doi = attributes.get(DATACITE_DOI_FIELD)
        if isinstance(doi, str) and doi:
            return doi
    return None


def build_content_identifier(payload: Mapping[str, Any]) -> str:
    """Build a stable identifier from the canonical JSON of a payload."""
    canonical_json = json.dumps(payload, sort_keys=True, ensure_ascii=False, separators=(",", ":"))
    hasher = hashlib.new(HASH_ALGORITHM)
    hasher.update(canonical_json.encode("utf-8"))
    return hasher.hexdigest()
