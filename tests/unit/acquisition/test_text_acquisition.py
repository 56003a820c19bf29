"""Tests for plain text acquisition."""

import pytest

from callsheet_ai.core.exceptions import CorruptInputError, InputError, UnsupportedFormatError
from callsheet_ai.services.acquisition import PlainTextAcquirer


@pytest.fixture
def acquirer() -> PlainTextAcquirer:
    return PlainTextAcquirer()


class TestPlainTextAcquirer:

    def test_utf8_with_bom(self, acquirer):
        raw = acquirer.acquire("\ufeffDIRECTOR: Zoë Adler".encode("utf-8"), "text/plain; charset=utf-8", "a.txt")

        assert raw.text == "DIRECTOR: Zoë Adler"
        assert raw.file_name == "a.txt"
        assert raw.mime_type == "text/plain"

    def test_cp1252_fallback(self, acquirer):
        raw = acquirer.acquire("Café Crew – 212-555-0101".encode("cp1252"), "text/plain")
        assert raw.text == "Café Crew – 212-555-0101"

    def test_csv_rendered_as_pipe_rows(self, acquirer):
        document = b'Name,Email,Phone\nRuth Vega,ruth@vega.com,646-555-0111\n,,\n"Holt, Ben",,917-555-0144\n'
        raw = acquirer.acquire(document, "text/csv", "crew.csv")

        assert raw.text.splitlines() == [
            "Name | Email | Phone",
            "Ruth Vega | ruth@vega.com | 646-555-0111",
            "Holt, Ben |  | 917-555-0144",
        ]

    def test_unsupported_mime_type(self, acquirer):
        with pytest.raises(UnsupportedFormatError):
            acquirer.acquire(b"%PDF-1.7", "application/pdf")

    def test_empty_document(self, acquirer):
        with pytest.raises(InputError):
            acquirer.acquire(b"", "text/plain")

    def test_binary_content(self, acquirer):
        with pytest.raises(CorruptInputError):
            acquirer.acquire(b"PK\x03\x04\x00\x00binary", "text/plain")
