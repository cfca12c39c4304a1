"""Document and OCR result data models."""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum


class FileType(str, Enum):
    """File classification of a processed attachment."""

    IMAGE = "image"
    PDF = "pdf"
    DOC = "doc"
    OTHER = "other"


@dataclass
class BoundingBox:
    """Normalized block position on a page."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass
class OcrBlock:
    """A typed, confidence-scored layout block."""

    type: str
    confidence: float
    bbox: BoundingBox = field(default_factory=BoundingBox)


@dataclass
class OcrPage:
    """One page of an OCR result."""

    page_number: int
    width: float
    height: float
    blocks: list[OcrBlock] = field(default_factory=list)


@dataclass
class OcrEntity:
    """An extracted entity."""

    type: str
    mention_text: str
    confidence: float


@dataclass
class OcrTableCell:
    """A table cell with its span and trimmed text."""

    text: str
    row_span: int = 1
    col_span: int = 1


@dataclass
class OcrTableRow:
    """A table row; header rows precede body rows."""

    cells: list[OcrTableCell]
    is_header: bool = False


@dataclass
class OcrTable:
    """A table found on a page."""

    page_number: int
    rows: list[OcrTableRow] = field(default_factory=list)


@dataclass
class OcrResult:
    """Structured output of the document-processing service."""

    text: str
    pages: list[OcrPage] = field(default_factory=list)
    entities: list[OcrEntity] = field(default_factory=list)
    tables: list[OcrTable] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Plain JSON-compatible representation."""
        return asdict(self)


@dataclass
class Document:
    """The OCR result for exactly one message's media."""

    id: str
    message_id: str  # Message.id, unique
    chat_id: str  # Chat.id
    file_url: str
    file_type: FileType
    file_name: str
    transcription: dict  # OcrResult.to_dict()
    raw_text: str
    processed_at: datetime
