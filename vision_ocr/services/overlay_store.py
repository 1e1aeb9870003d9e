"""
In-memory хранилище отрендеренных оверлеев.

Хранит PNG страниц с прямоугольниками строк, чтобы панель результатов
могла запросить изображение по doc_id.

Особенности:
    - Хранение в памяти (без персистентности, теряется при перезапуске)
    - Связь с документом через UUID
    - Ограничение по количеству: старые записи вытесняются
"""

import logging
import uuid
from datetime import datetime
from typing import Optional

from vision_ocr.schemas import StoredOverlay

logger = logging.getLogger(__name__)

MAX_DOCUMENTS = 20

# In-memory хранилище: {doc_id: StoredOverlay}
_store: dict[str, StoredOverlay] = {}


def save_overlay(filename: str, pages: list[bytes]) -> str:
    """
    Сохраняет оверлей документа в хранилище.

    Args:
        filename: имя исходного файла
        pages: PNG страниц

    Returns:
        str: UUID документа для последующего запроса изображений
    """
    doc_id = str(uuid.uuid4())

    _store[doc_id] = StoredOverlay(
        doc_id=doc_id,
        created_at=datetime.now(),
        filename=filename,
        pages=pages,
    )

    # Вытесняем самые старые записи (dict сохраняет порядок вставки)
    while len(_store) > MAX_DOCUMENTS:
        oldest = next(iter(_store))
        del _store[oldest]
        logger.debug(f"Оверлей вытеснен: {oldest}")

    logger.info(
        f"Сохранён оверлей: doc_id={doc_id}, "
        f"страниц={len(pages)}, "
        f"всего в хранилище={len(_store)}"
    )

    return doc_id


def get_overlay(doc_id: str) -> Optional[StoredOverlay]:
    """Оверлей документа по UUID или None если не найден."""
    document = _store.get(doc_id)

    if document is None:
        logger.warning(f"Оверлей не найден: {doc_id}")

    return document


def get_overlay_page(doc_id: str, page: int) -> Optional[bytes]:
    """PNG страницы (нумерация с 1) или None."""
    document = get_overlay(doc_id)
    if document is None or not 1 <= page <= len(document.pages):
        return None
    return document.pages[page - 1]


def get_store_stats() -> dict:
    """
    Возвращает статистику хранилища.

    Returns:
        dict: {documents_count, total_bytes, oldest_doc, newest_doc}
    """
    if not _store:
        return {
            "documents_count": 0,
            "total_bytes": 0,
            "oldest_doc": None,
            "newest_doc": None,
        }

    sorted_docs = sorted(_store.values(), key=lambda d: d.created_at)

    return {
        "documents_count": len(_store),
        "total_bytes": sum(len(p) for d in _store.values() for p in d.pages),
        "oldest_doc": {
            "doc_id": sorted_docs[0].doc_id,
            "created_at": sorted_docs[0].created_at.isoformat(),
        },
        "newest_doc": {
            "doc_id": sorted_docs[-1].doc_id,
            "created_at": sorted_docs[-1].created_at.isoformat(),
        },
    }


def clear_store() -> None:
    _store.clear()
