"""inkpad — image upload slots and media ingestion for the document editor."""

__version__ = "0.1.0"
