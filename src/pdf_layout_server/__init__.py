"""Reconstruct paragraphs and ruled tables from PDF pages into HTML email messages."""

from .packaging import ConversionResult, PackagingError, SignatureStore, convert_pdf

__all__ = ["ConversionResult", "PackagingError", "SignatureStore", "convert_pdf"]
