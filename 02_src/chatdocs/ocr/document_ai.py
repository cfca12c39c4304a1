"""OCR client implementation using Google Document AI."""

from typing import Any, Protocol

from google.api_core.client_options import ClientOptions
from google.cloud import documentai

from ..errors import OcrError
from ..logging_config import get_logger
from ..models import (
    BoundingBox,
    OcrBlock,
    OcrEntity,
    OcrPage,
    OcrResult,
    OcrTable,
    OcrTableCell,
    OcrTableRow,
)

logger = get_logger(__name__)


class IOcrClient(Protocol):
    """Abstraction for document OCR."""

    @property
    def configured(self) -> bool:
        """Whether the client has everything it needs to call the service."""
        ...

    async def process(self, content: bytes, mime_type: str) -> OcrResult:
        """Extract text, layout, entities and tables from a binary document."""
        ...


def extract_blocks(page: Any) -> list[OcrBlock]:
    """Layout blocks of a page with normalized bounding boxes."""
    blocks = []
    for block in page.blocks or []:
        layout = block.layout
        vertices = list(layout.bounding_poly.normalized_vertices or [])

        bbox = BoundingBox()
        if vertices:
            bbox.x = vertices[0].x or 0.0
            bbox.y = vertices[0].y or 0.0
        if len(vertices) > 1:
            bbox.width = (vertices[1].x or 0.0) - (vertices[0].x or 0.0)
        if len(vertices) > 2:
            bbox.height = (vertices[2].y or 0.0) - (vertices[0].y or 0.0)

        blocks.append(
            OcrBlock(
                type=getattr(layout, "type_", None) or "UNKNOWN",
                confidence=layout.confidence or 0.0,
                bbox=bbox,
            )
        )
    return blocks


def _cell_text(text: str, cell: Any) -> str:
    segments = list(cell.layout.text_anchor.text_segments or [])
    if not segments:
        return ""
    start = segments[0].start_index or 0
    end = segments[0].end_index or 0
    return text[start:end].strip()


def _extract_rows(text: str, rows: Any, is_header: bool) -> list[OcrTableRow]:
    return [
        OcrTableRow(
            cells=[
                OcrTableCell(
                    text=_cell_text(text, cell),
                    row_span=cell.row_span or 1,
                    col_span=cell.col_span or 1,
                )
                for cell in row.cells
            ],
            is_header=is_header,
        )
        for row in rows or []
    ]


def extract_tables(document: Any) -> list[OcrTable]:
    """Tables of every page; header rows first, then body rows."""
    text = document.text or ""
    tables = []
    for page in document.pages or []:
        for table in page.tables or []:
            tables.append(
                OcrTable(
                    page_number=page.page_number,
                    rows=_extract_rows(text, table.header_rows, True)
                    + _extract_rows(text, table.body_rows, False),
                )
            )
    return tables


def to_ocr_result(document: Any) -> OcrResult:
    """Convert a Document AI document into an OcrResult."""
    return OcrResult(
        text=document.text or "",
        pages=[
            OcrPage(
                page_number=page.page_number,
                width=page.dimension.width,
                height=page.dimension.height,
                blocks=extract_blocks(page),
            )
            for page in document.pages or []
        ],
        entities=[
            OcrEntity(
                type=getattr(entity, "type_", ""),
                mention_text=entity.mention_text,
                confidence=entity.confidence,
            )
            for entity in document.entities or []
        ],
        tables=extract_tables(document),
    )


class DocumentAiClient:
    """Google Document AI processor client."""

    def __init__(
        self,
        project_id: str,
        location: str,
        processor_id: str,
    ):
        self._project_id = project_id
        self._location = location
        self._processor_id = processor_id
        self._client: documentai.DocumentProcessorServiceAsyncClient | None = None

    @property
    def configured(self) -> bool:
        return bool(self._project_id and self._location and self._processor_id)

    def _get_client(self) -> documentai.DocumentProcessorServiceAsyncClient:
        # Created on first use: building it resolves Google credentials
        if self._client is None:
            self._client = documentai.DocumentProcessorServiceAsyncClient(
                client_options=ClientOptions(
                    api_endpoint=f"{self._location}-documentai.googleapis.com"
                )
            )
        return self._client

    async def process(self, content: bytes, mime_type: str) -> OcrResult:
        """Process a binary document with the configured processor."""
        if not self.configured:
            raise OcrError("Document AI is not configured")

        try:
            client = self._get_client()
            request = documentai.ProcessRequest(
                name=client.processor_path(
                    self._project_id, self._location, self._processor_id
                ),
                raw_document=documentai.RawDocument(
                    content=content, mime_type=mime_type
                ),
            )
            result = await client.process_document(request=request)
            return to_ocr_result(result.document)

        except Exception as e:
            logger.error("Document AI processing failed: %s", e, exc_info=True)
            raise OcrError(f"Document AI processing failed: {e}") from e
