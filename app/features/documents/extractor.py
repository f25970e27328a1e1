"""
Document Extractor - text and metadata from uploaded documents.

Supports:
- PDF: pypdf, page by page
- DOCX: python-docx, paragraphs then tables
- Markdown and plain text: UTF-8, then cp1252, then latin-1

Extraction runs in a worker thread (see IngestionService.ingest_document);
everything here is synchronous.
"""

import io
import logging
import re
import struct
import zipfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import pypdf
from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from app.shared.errors import ValidationError

logger = logging.getLogger("Memora.Documents.Extractor")

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class DocumentExtractor:
    """Extract text content and metadata from supported document formats."""

    SUPPORTED_TYPES = {
        "pdf": ["application/pdf"],
        "docx": [DOCX_MIME],
        "markdown": ["text/markdown", "text/x-markdown"],
        "text": ["text/plain"],
    }

    @classmethod
    def detect_format(cls, filename: str, mime_type: Optional[str] = None) -> Optional[str]:
        """Format key from the MIME type, else from the file extension."""
        if mime_type:
            for fmt, mimes in cls.SUPPORTED_TYPES.items():
                if mime_type.split(";")[0].strip().lower() in mimes:
                    return fmt

        ext = Path(filename or "").suffix.lower().lstrip(".")
        if ext == "pdf":
            return "pdf"
        if ext == "docx":
            return "docx"
        if ext in ("md", "markdown"):
            return "markdown"
        if ext == "txt":
            return "text"
        return None

    @classmethod
    def extract(
        cls,
        file_bytes: bytes,
        filename: str,
        mime_type: Optional[str] = None,
    ) -> Tuple[str, Dict[str, Any]]:
        """
        Extract text content and metadata from a document.

        Raises:
            ValidationError: unsupported format, unreadable file, or no text
        """
        fmt = cls.detect_format(filename, mime_type)
        if fmt is None:
            raise ValidationError(
                f"Unsupported document type: {filename} ({mime_type or 'unknown'})",
                details={"filename": filename, "mime_type": mime_type},
            )

        extractors = {
            "pdf": cls._extract_pdf,
            "docx": cls._extract_docx,
            "markdown": cls._extract_markdown,
            "text": cls._extract_text,
        }
        text, metadata = extractors[fmt](file_bytes, filename)

        if not text.strip():
            raise ValidationError(f"No text could be extracted from {filename}", details=metadata)

        logger.info(f"Extracted {len(text)} chars from {fmt}: {filename}")
        return text.strip(), metadata

    @classmethod
    def _extract_pdf(cls, file_bytes: bytes, filename: str) -> Tuple[str, Dict[str, Any]]:
        metadata: Dict[str, Any] = {"format": "pdf", "filename": filename}
        try:
            reader = pypdf.PdfReader(io.BytesIO(file_bytes))
            pages = [page.extract_text() or "" for page in reader.pages]
            title = reader.metadata.title if reader.metadata else None
        except (pypdf.errors.PyPdfError, ValueError, KeyError, TypeError, struct.error) as e:
            logger.error(f"Failed to read PDF {filename}: {e}")
            raise ValidationError(f"Could not read PDF {filename}: {e}") from e

        metadata["page_count"] = len(pages)
        if title:
            metadata["title"] = title
        return "\n\n".join(p.strip() for p in pages if p.strip()), metadata

    @classmethod
    def _extract_docx(cls, file_bytes: bytes, filename: str) -> Tuple[str, Dict[str, Any]]:
        metadata: Dict[str, Any] = {"format": "docx", "filename": filename}
        try:
            doc = Document(io.BytesIO(file_bytes))
        except (PackageNotFoundError, zipfile.BadZipFile, ValueError, KeyError) as e:
            logger.error(f"Failed to read DOCX {filename}: {e}")
            raise ValidationError(f"Could not read DOCX {filename}: {e}") from e

        parts = [para.text for para in doc.paragraphs if para.text.strip()]

        # Tables are not part of doc.paragraphs
        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    parts.append(" | ".join(cells))

        if doc.core_properties.title:
            metadata["title"] = doc.core_properties.title
        return "\n\n".join(parts), metadata

    @classmethod
    def _extract_markdown(cls, file_bytes: bytes, filename: str) -> Tuple[str, Dict[str, Any]]:
        text, metadata = cls._extract_text(file_bytes, filename)
        metadata["format"] = "markdown"

        title_match = re.search(r"^#\s+(.+)$", text, re.MULTILINE)
        if title_match:
            metadata["title"] = title_match.group(1).strip()
        return text, metadata

    @classmethod
    def _extract_text(cls, file_bytes: bytes, filename: str) -> Tuple[str, Dict[str, Any]]:
        metadata: Dict[str, Any] = {"format": "text", "filename": filename}
        # latin-1 accepts any byte sequence, so it goes last
        for encoding in ("utf-8", "cp1252", "latin-1"):
            try:
                text = file_bytes.decode(encoding)
            except UnicodeDecodeError:
                continue
            metadata["encoding"] = encoding
            return text, metadata
        raise ValidationError(f"Could not decode {filename} as text")
