"""
Сервисы распознавания.

Модули:
    - read_client: отправка файла в Read API и опрос статуса
    - result_parser: разбор ответа Read API и сборка текста
    - geometry: масштабирование bounding box под отображаемый размер
    - overlay_renderer: рендеринг прямоугольников поверх изображения
    - overlay_store: хранилище отрендеренных оверлеев
    - job_runner: координация пайплайна submit -> poll -> extract -> render
"""

from vision_ocr.services.geometry import document_rects, line_rect, scale_factors
from vision_ocr.services.job_runner import OCRJobRunner
from vision_ocr.services.read_client import ReadClient
from vision_ocr.services.result_parser import assemble_text, parse_pages

__all__ = [
    "OCRJobRunner",
    "ReadClient",
    "parse_pages",
    "assemble_text",
    "scale_factors",
    "line_rect",
    "document_rects",
]
