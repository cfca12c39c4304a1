"""OCR module."""

from .document_ai import DocumentAiClient, IOcrClient, to_ocr_result

__all__ = ["DocumentAiClient", "IOcrClient", "to_ocr_result"]
