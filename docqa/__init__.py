"""docqa: upload a document, ask questions answered strictly from its text."""

__version__ = "0.1.0"
