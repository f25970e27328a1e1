"""
Documents Feature - text extraction for uploaded documents.

Extracted text becomes the Source's content and is indexed like pasted text.
"""

from app.features.documents.extractor import DocumentExtractor

__all__ = ["DocumentExtractor"]
