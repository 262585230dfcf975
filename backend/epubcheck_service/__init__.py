"""EPUBCheck Service: EPUB validation backed by the W3C EPUBCheck engine."""

__version__ = "0.1.0"
