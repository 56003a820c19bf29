"""Text acquisition - turning document bytes into RawText for extraction."""

from callsheet_ai.services.acquisition.text_acquisition import PlainTextAcquirer, TextAcquirer

__all__ = [
    "PlainTextAcquirer",
    "TextAcquirer",
]
