"""Unit test conftest — no network or OCR binary required."""

from __future__ import annotations

import io

import pytest

_LONG_LINES = [
    "Insured: Harbour Logistics Ltd, registered office in Haifa.",
    "Unique Market Reference: B0999HL2024 placed through the London market.",
    "Period of Insurance: From 01/01/2024 To 31/12/2024 both days inclusive.",
    "Limit of indemnity applies in the aggregate for all claims made in the period.",
]


@pytest.fixture
def sample_docx_bytes() -> bytes:
    """DOCX with two paragraphs and a two-row schedule table."""
    docx = pytest.importorskip("docx")
    doc = docx.Document()
    doc.add_paragraph("Policy schedule")
    doc.add_paragraph("Insured: Harbour Logistics Ltd")
    table = doc.add_table(rows=2, cols=2)
    table.cell(0, 0).text = "UMR"
    table.cell(0, 1).text = "B0999HL2024"
    table.cell(1, 0).text = "Certificate Reference"
    table.cell(1, 1).text = "445566"
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def empty_docx_bytes() -> bytes:
    """Valid DOCX with no text at all."""
    docx = pytest.importorskip("docx")
    doc = docx.Document()
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def long_pdf_bytes() -> bytes:
    """1-page PDF whose text layer is comfortably above the default threshold."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", size=10)
    for line in _LONG_LINES:
        pdf.cell(text=line)
        pdf.ln()
    return bytes(pdf.output())


@pytest.fixture
def short_pdf_bytes() -> bytes:
    """1-page PDF with a single short line of text."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", size=12)
    pdf.cell(text="Page 1 of 1")
    return bytes(pdf.output())


@pytest.fixture
def multi_page_pdf_bytes() -> bytes:
    """3-page PDF for page-limit checks."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.set_font("Helvetica", size=12)
    for i in range(1, 4):
        pdf.add_page()
        pdf.cell(text=f"Content on page {i}.")
    return bytes(pdf.output())


@pytest.fixture
def empty_pdf_bytes() -> bytes:
    """1-page PDF with no text layer, like a scanned page without OCR."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    return bytes(pdf.output())
