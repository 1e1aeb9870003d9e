"""
Разбор итогового ответа Read API.

Поддерживаемые форматы ответа:
    - v3.x: {"analyzeResult": {"readResults": [...]}}
    - v2.x: {"recognitionResults": [...]}

Каждая страница обязана содержать список "lines" из {text, boundingBox}.
"""

import logging
from typing import Optional

from vision_ocr.errors import InvalidResponse
from vision_ocr.schemas import LineResult, PageResult

logger = logging.getLogger(__name__)

NO_TEXT_MESSAGE = "Не удалось прочитать текст."


def parse_pages(payload: dict) -> Optional[list[PageResult]]:
    """
    Приводит ответ Read API к списку PageResult.

    Определение формата — это проверка входных данных: если ни один
    из известных форматов не найден, возвращается None.

    Args:
        payload: JSON ответ операции со статусом "succeeded"

    Returns:
        list[PageResult] или None если формат не распознан

    Raises:
        InvalidResponse: формат распознан, но номера страниц,
            размеры или координаты строк не являются числами
    """
    raw_pages = _find_pages(payload)
    if raw_pages is None:
        logger.warning(f"Формат ответа не распознан: ключи {sorted(payload)}")
        return None

    pages = []
    for idx, raw_page in enumerate(raw_pages, start=1):
        try:
            pages.append(_parse_page(raw_page, idx))
        except (TypeError, ValueError) as e:
            raise InvalidResponse(f"Некорректные данные страницы {idx}: {e}") from e

    logger.info(
        f"Разобрано страниц: {len(pages)}, строк: {sum(len(p.lines) for p in pages)}"
    )
    return pages


def _parse_page(raw_page: dict, idx: int) -> PageResult:
    lines = [
        LineResult(
            text=str(raw_line.get("text", "")),
            bounding_box=[float(v) for v in raw_line.get("boundingBox") or []],
        )
        for raw_line in raw_page["lines"]
        if isinstance(raw_line, dict)
    ]
    width = raw_page.get("width")
    height = raw_page.get("height")

    return PageResult(
        page=int(raw_page.get("page", idx)),
        lines=lines,
        width=float(width) if width is not None else None,
        height=float(height) if height is not None else None,
        unit=raw_page.get("unit"),
    )


def _find_pages(payload: dict) -> Optional[list[dict]]:
    analyze_result = payload.get("analyzeResult")
    if isinstance(analyze_result, dict) and _is_page_list(analyze_result.get("readResults")):
        return analyze_result["readResults"]

    if _is_page_list(payload.get("recognitionResults")):
        return payload["recognitionResults"]

    return None


def _is_page_list(value) -> bool:
    if not isinstance(value, list):
        return False
    return all(
        isinstance(page, dict) and isinstance(page.get("lines"), list)
        for page in value
    )


def assemble_text(pages: Optional[list[PageResult]]) -> str:
    """
    Собирает текст документа.

    Строки страницы соединяются пробелом, страницы — переносом строки.
    Без распознанных страниц возвращает NO_TEXT_MESSAGE.
    """
    if pages is None:
        return NO_TEXT_MESSAGE

    return "\n".join(
        " ".join(line.text for line in page.lines)
        for page in pages
    )
