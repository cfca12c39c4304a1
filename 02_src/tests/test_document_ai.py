"""Tests for the Document AI OCR client."""

from types import SimpleNamespace as NS
from unittest.mock import AsyncMock, Mock, patch

import pytest

from chatdocs.errors import OcrError
from chatdocs.ocr import DocumentAiClient, to_ocr_result


def vertex(x, y):
    return NS(x=x, y=y)


def cell(start, end, row_span=0, col_span=0):
    return NS(
        layout=NS(text_anchor=NS(text_segments=[NS(start_index=start, end_index=end)])),
        row_span=row_span,
        col_span=col_span,
    )


def sample_document():
    text = "Name Qty\nApple 3\n"
    block = NS(
        layout=NS(
            type_="PARAGRAPH",
            confidence=0.9,
            bounding_poly=NS(
                normalized_vertices=[
                    vertex(0.1, 0.2),
                    vertex(0.5, 0.2),
                    vertex(0.5, 0.6),
                    vertex(0.1, 0.6),
                ]
            ),
        )
    )
    bare_block = NS(layout=NS(confidence=None, bounding_poly=NS(normalized_vertices=[])))
    table = NS(
        header_rows=[NS(cells=[cell(0, 5), cell(5, 8)])],
        body_rows=[NS(cells=[cell(9, 15, row_span=2), cell(15, 17)])],
    )
    page = NS(
        page_number=1,
        dimension=NS(width=612.0, height=792.0),
        blocks=[block, bare_block],
        tables=[table],
    )
    entity = NS(type_="product", mention_text="Apple", confidence=0.8)
    return NS(text=text, pages=[page], entities=[entity])


class TestToOcrResult:
    """Tests for response conversion."""

    def test_pages_and_blocks(self):
        result = to_ocr_result(sample_document())

        assert result.text == "Name Qty\nApple 3\n"
        page = result.pages[0]
        assert (page.page_number, page.width, page.height) == (1, 612.0, 792.0)

        block = page.blocks[0]
        assert block.type == "PARAGRAPH"
        assert block.confidence == 0.9
        assert block.bbox.x == 0.1
        assert block.bbox.y == 0.2
        assert block.bbox.width == pytest.approx(0.4)
        assert block.bbox.height == pytest.approx(0.4)

    def test_block_without_vertices(self):
        block = to_ocr_result(sample_document()).pages[0].blocks[1]

        assert block.type == "UNKNOWN"
        assert block.confidence == 0.0
        assert (block.bbox.x, block.bbox.y, block.bbox.width, block.bbox.height) == (
            0.0,
            0.0,
            0.0,
            0.0,
        )

    def test_entities(self):
        entity = to_ocr_result(sample_document()).entities[0]
        assert (entity.type, entity.mention_text, entity.confidence) == ("product", "Apple", 0.8)

    def test_tables_header_first_with_trimmed_text(self):
        table = to_ocr_result(sample_document()).tables[0]

        assert table.page_number == 1
        assert [row.is_header for row in table.rows] == [True, False]
        assert [c.text for c in table.rows[0].cells] == ["Name", "Qty"]
        assert [c.text for c in table.rows[1].cells] == ["Apple", "3"]
        assert table.rows[1].cells[0].row_span == 2
        assert table.rows[1].cells[1].row_span == 1
        assert table.rows[1].cells[1].col_span == 1

    def test_to_dict_is_json_shaped(self):
        data = to_ocr_result(sample_document()).to_dict()

        assert data["pages"][0]["blocks"][0]["bbox"]["x"] == 0.1
        assert data["tables"][0]["rows"][0]["cells"][0] == {
            "text": "Name",
            "row_span": 1,
            "col_span": 1,
        }

    def test_empty_document(self):
        result = to_ocr_result(NS(text="", pages=[], entities=[]))
        assert result.to_dict() == {"text": "", "pages": [], "entities": [], "tables": []}


class TestDocumentAiClient:
    """Tests for the processor call."""

    def test_configured(self):
        assert DocumentAiClient("p", "us", "proc").configured is True
        assert DocumentAiClient("", "us", "proc").configured is False

    async def test_not_configured_raises(self):
        with pytest.raises(OcrError, match="not configured"):
            await DocumentAiClient("", "us", "").process(b"x", "application/pdf")

    async def test_process_document(self):
        service = Mock()
        service.processor_path = Mock(return_value="projects/p/locations/eu/processors/proc")
        service.process_document = AsyncMock(return_value=NS(document=sample_document()))

        with patch("chatdocs.ocr.document_ai.documentai") as documentai:
            documentai.DocumentProcessorServiceAsyncClient.return_value = service

            client = DocumentAiClient("p", "eu", "proc")
            result = await client.process(b"%PDF", "application/pdf")

            options = documentai.DocumentProcessorServiceAsyncClient.call_args.kwargs[
                "client_options"
            ]
            assert options.api_endpoint == "eu-documentai.googleapis.com"
            service.processor_path.assert_called_once_with("p", "eu", "proc")
            documentai.RawDocument.assert_called_once_with(
                content=b"%PDF", mime_type="application/pdf"
            )
            service.process_document.assert_awaited_once()

        assert result.text == "Name Qty\nApple 3\n"

    async def test_service_failure_becomes_ocr_error(self):
        service = Mock()
        service.processor_path = Mock(return_value="name")
        service.process_document = AsyncMock(side_effect=RuntimeError("quota"))

        with patch("chatdocs.ocr.document_ai.documentai") as documentai:
            documentai.DocumentProcessorServiceAsyncClient.return_value = service

            with pytest.raises(OcrError, match="quota"):
                await DocumentAiClient("p", "us", "proc").process(b"x", "image/jpeg")
