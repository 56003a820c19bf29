"""Text acquisition boundary.

Document decoding (PDF, DOCX, XLSX, OCR) lives outside the extraction core;
anything that turns ``(bytes, mime_type)`` into ``RawText`` can be plugged in
through the ``TextAcquirer`` protocol. ``PlainTextAcquirer`` covers the text
formats that need no external decoder.
"""

import csv
import io
from typing import Optional, Protocol, Tuple

from callsheet_ai.core.exceptions import CorruptInputError, InputError, UnsupportedFormatError
from callsheet_ai.models.contact import RawText
from callsheet_ai.utils.logging import get_logger

LOGGER = get_logger(__name__)


class TextAcquirer(Protocol):
    def acquire(self, document: bytes, mime_type: str, file_name: Optional[str] = None) -> RawText:
        """Return the document text or raise a TextAcquisitionError."""
        ...


class PlainTextAcquirer:
    """Decodes plain text, markdown, CSV and TSV documents."""

    TEXT_TYPES: Tuple[str, ...] = ("text/plain", "text/markdown", "text/tab-separated-values")
    CSV_TYPES: Tuple[str, ...] = ("text/csv", "application/csv")
    ENCODINGS: Tuple[str, ...] = ("utf-8-sig", "cp1252")

    def acquire(self, document: bytes, mime_type: str, file_name: Optional[str] = None) -> RawText:
        base_type = (mime_type or "").split(";")[0].strip().lower()
        if base_type not in self.TEXT_TYPES + self.CSV_TYPES:
            raise UnsupportedFormatError(f"No text acquirer for mime type '{mime_type}'")
        if not document:
            raise InputError("Document is empty")

        text = self._decode(document)
        if "\x00" in text:
            raise CorruptInputError("Document contains binary data")

        if base_type in self.CSV_TYPES:
            text = self._csv_to_rows(text)

        LOGGER.debug(
            "Acquired document text",
            extra={"file_name": file_name, "mime_type": base_type, "length": len(text)},
        )
        return RawText(text=text, file_name=file_name, mime_type=base_type)

    def _decode(self, document: bytes) -> str:
        for encoding in self.ENCODINGS:
            try:
                return document.decode(encoding)
            except UnicodeDecodeError:
                continue
        raise CorruptInputError("Document is not valid text in any supported encoding")

    @staticmethod
    def _csv_to_rows(text: str) -> str:
        """Render CSV rows as pipe-delimited lines."""
        try:
            rows = list(csv.reader(io.StringIO(text)))
        except csv.Error as e:
            raise CorruptInputError(f"Malformed CSV: {e}", original_error=e)
        return "\n".join(" | ".join(cell.strip() for cell in row) for row in rows if any(row))
