"""
Vision OCR — распознавание текста через Azure AI Vision Read API.

Отправляет изображение или PDF в Read API, опрашивает статус операции,
собирает текст и рисует прямоугольники распознанных строк поверх
изображения с учётом отображаемого размера.
"""

from vision_ocr.config import settings
from vision_ocr.errors import ErrorKind, OCRJobError
from vision_ocr.schemas import JobOutcome, OCRResponse, OverlayRect, PageResult

__all__ = [
    "settings",
    "ErrorKind",
    "OCRJobError",
    "JobOutcome",
    "OCRResponse",
    "OverlayRect",
    "PageResult",
]
