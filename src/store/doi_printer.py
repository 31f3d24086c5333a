"""DOI listing sink that prints one DOI per record."""

from __future__ import annotations

import sys
from typing import TextIO

from core.constants import IDENTIFIER_KIND_DOI
from core.types import CanonicalRecord


class DoiPrinter:
    """Write the DOI of each record that carries one."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self.dois_printed = 0

    def write(self, record: CanonicalRecord) -> None:
        if record.identifier_kind != IDENTIFIER_KIND_DOI:
            return
        self._stream.write(record.identifier + "\n")
        self.dois_printed += 1
