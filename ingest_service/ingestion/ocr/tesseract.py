"""Local OCR: rasterise PDF pages with PyMuPDF and read them with Tesseract."""

from __future__ import annotations

import io
import logging
from collections.abc import Iterator
from dataclasses import dataclass

import fitz  # PyMuPDF
import pytesseract
from PIL import Image

logger = logging.getLogger(__name__)

LATIN = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"
HEBREW = "אבגדהוזחטיכךלמםנןסעפףצץקרשת"
DIGITS = "0123456789"
PUNCTUATION = "-./:() "

# psm 6: assume a single uniform block of text
UNIFORM_BLOCK_PSM = 6


@dataclass(frozen=True)
class OcrMode:
    languages: str
    whitelist: str
    psm: int = UNIFORM_BLOCK_PSM

    def tesseract_config(self) -> str:
        return f'--psm {self.psm} -c tessedit_char_whitelist="{self.whitelist}"'


BILINGUAL = OcrMode(languages="eng+heb", whitelist=LATIN + HEBREW + DIGITS + PUNCTUATION)
ENGLISH_ONLY = OcrMode(languages="eng", whitelist=LATIN + DIGITS + PUNCTUATION)


class TesseractEngine:
    def __init__(self, *, tesseract_cmd: str | None = None, zoom: float = 1.5) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self._zoom = zoom

    def recognize_image(self, image: Image.Image, mode: OcrMode = BILINGUAL) -> str:
        text = pytesseract.image_to_string(image, lang=mode.languages, config=mode.tesseract_config())
        return (text or "").strip()

    def recognize_image_bytes(self, data: bytes, mode: OcrMode = BILINGUAL) -> str:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            return self.recognize_image(image, mode)

    def recognize_pdf(self, data: bytes, *, max_pages: int, mode: OcrMode = BILINGUAL) -> str:
        parts: list[str] = []
        for page_no, image in enumerate(self.render_pages(data, max_pages=max_pages), start=1):
            try:
                text = self.recognize_image(image, mode)
            finally:
                image.close()
            logger.debug("OCR page=%d characters=%d", page_no, len(text))
            parts.append(text)
        return "\n".join(parts).strip()

    def render_pages(self, data: bytes, *, max_pages: int) -> Iterator[Image.Image]:
        """Yield page images one at a time; the caller closes each."""
        matrix = fitz.Matrix(self._zoom, self._zoom)
        with fitz.open(stream=data, filetype="pdf") as pdf:
            for page_no in range(min(len(pdf), max(1, max_pages))):
                pix = pdf[page_no].get_pixmap(matrix=matrix)
                yield Image.open(io.BytesIO(pix.tobytes("png")))
