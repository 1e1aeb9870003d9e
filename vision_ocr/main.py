"""
Vision OCR — FastAPI приложение.

Принимает изображение или PDF, распознаёт текст через Azure AI Vision
Read API и отдаёт текст, журнал выполнения и прямоугольники строк.

Эндпоинты:
    GET  /                                   — HTML страница (выбор файла, журнал, результат)
    POST /ui/run                             — запуск из HTML формы
    POST /ocr/execute                        — загрузка файла и распознавание (JSON)
    GET  /documents/{doc_id}/overlay/{page}  — PNG страницы с прямоугольниками строк
    GET  /documents/stats                    — статистика хранилища оверлеев
    GET  /health                             — проверка работоспособности

Запуск:
    uvicorn vision_ocr.main:app --host 0.0.0.0 --port 8000
"""

import json
import logging
from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response

from vision_ocr.config import settings
from vision_ocr.errors import http_status_for
from vision_ocr.schemas import FileInfo, ImageSize, JobOutcome, OCRResponse
from vision_ocr.services.job_runner import READY_MESSAGE, OCRJobRunner
from vision_ocr.services.overlay_store import get_overlay_page, get_store_stats
from vision_ocr.ui import MemoryUISink, render_page

# Настройка логгера
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [Vision-OCR] %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ("application/pdf", "application/octet-stream")


class UnicodeJSONResponse(JSONResponse):
    """JSON ответ с нормальным отображением кириллицы (без \\uXXXX экранирования)."""

    def render(self, content) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
        ).encode("utf-8")


# FastAPI приложение
app = FastAPI(
    title="Vision OCR",
    description="Распознавание текста через Azure AI Vision Read API с оверлеем строк",
    version="1.0.0",
    default_response_class=UnicodeJSONResponse,
)

# Один раннер на процесс: одновременно выполняется одна задача
runner = OCRJobRunner(settings)


@app.get("/health")
async def health_check() -> dict:
    """
    Проверка работоспособности сервиса.

    Returns:
        dict: статус, занятость раннера и безопасная сводка конфигурации
    """
    return {
        "status": "ok" if settings.is_configured else "degraded",
        "service": "vision-ocr",
        "version": "1.0.0",
        "busy": runner.busy,
        "config": settings.summary(),
    }


@app.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    sink = MemoryUISink()
    sink.append_log(READY_MESSAGE)
    return HTMLResponse(render_page(sink))


@app.post("/ui/run", response_class=HTMLResponse)
async def run_from_form(
    file: Optional[UploadFile] = File(default=None, description="Изображение или PDF"),
) -> HTMLResponse:
    """Запуск из HTML формы: панели сбрасываются и заполняются заново."""
    sink = MemoryUISink()

    try:
        file_bytes, filename = await _read_upload(file)
    except HTTPException as e:
        message = e.detail["message"] if isinstance(e.detail, dict) else str(e.detail)
        logger.warning(f"Файл отклонён формой: {message}")
        sink.append_log(READY_MESSAGE)
        sink.append_log(message, "error")
        return HTMLResponse(render_page(sink), status_code=e.status_code)

    await runner.run(file_bytes, filename, sink)

    return HTMLResponse(render_page(sink))


@app.post("/ocr/execute", response_model=OCRResponse)
async def execute_ocr(
    file: Optional[UploadFile] = File(default=None, description="Изображение или PDF"),
    rendered_width: Optional[float] = Form(default=None, gt=0),
    rendered_height: Optional[float] = Form(default=None, gt=0),
):
    """
    Выполняет распознавание текста из изображения или PDF.

    Args:
        file: файл (multipart/form-data)
        rendered_width: отображаемая ширина изображения на клиенте
        rendered_height: отображаемая высота изображения на клиенте

    Returns:
        OCRResponse: текст, прямоугольники строк и журнал выполнения.
            При ошибке — тот же формат с error_kind и HTTP статусом ошибки.

    Raises:
        HTTPException: при ошибках валидации запроса
    """
    rendered = _parse_rendered_size(rendered_width, rendered_height)
    file_bytes, filename = await _read_upload(file)

    logger.info(f"Получен файл: {filename}, {len(file_bytes or b'')} байт")

    sink = MemoryUISink()
    outcome = await runner.run(file_bytes, filename, sink, rendered=rendered)

    file_info = (
        FileInfo(filename=filename, size_bytes=len(file_bytes))
        if file_bytes
        else None
    )
    response = _to_response(outcome, sink, file_info)

    if not outcome.success:
        return UnicodeJSONResponse(
            status_code=http_status_for(outcome.error_kind),
            content=response.model_dump(),
        )

    return response


@app.get("/documents/{doc_id}/overlay/{page}")
async def get_document_overlay(doc_id: str, page: int) -> Response:
    """
    PNG страницы документа с прямоугольниками распознанных строк.

    Raises:
        HTTPException: 404 если документ или страница не найдены
    """
    png = get_overlay_page(doc_id, page)

    if png is None:
        raise HTTPException(
            status_code=404,
            detail=f"Оверлей id={doc_id}, страница {page} не найден. "
            "Возможно, он был вытеснен или сервис был перезапущен.",
        )

    return Response(content=png, media_type="image/png")


@app.get("/documents/stats")
async def get_documents_stats() -> dict:
    """Статистика хранилища оверлеев."""
    return get_store_stats()


def _to_response(
    outcome: JobOutcome,
    sink: MemoryUISink,
    file_info: Optional[FileInfo],
) -> OCRResponse:
    return OCRResponse(
        success=outcome.success,
        doc_id=outcome.doc_id,
        text=outcome.text,
        total_pages=len(outcome.pages),
        attempts=outcome.attempts,
        rects=outcome.rects,
        log=sink.entries,
        file_info=file_info,
        error_kind=outcome.error_kind,
        error=outcome.error,
        status_code=outcome.status_code,
    )


def _parse_rendered_size(
    width: Optional[float],
    height: Optional[float],
) -> Optional[ImageSize]:
    if width is None and height is None:
        return None

    if width is None or height is None:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "invalid_rendered_size",
                "message": "rendered_width и rendered_height задаются вместе",
            },
        )

    return ImageSize(width=width, height=height)


async def _read_upload(file: Optional[UploadFile]) -> tuple[Optional[bytes], str]:
    """
    Читает и валидирует загруженный файл.

    Пустой или отсутствующий файл не ошибка запроса: раннер сообщит
    о нём как о невыбранном файле.

    Проверяет:
        - Тип файла (image/*, application/pdf, application/octet-stream)
        - Размер файла (не больше max_file_size_mb)

    Returns:
        tuple: (содержимое или None, имя файла)

    Raises:
        HTTPException: при ошибках валидации
    """
    if file is None:
        return None, ""

    filename = file.filename or "unknown"

    content_type = file.content_type
    if content_type and not (
        content_type.startswith("image/") or content_type in ALLOWED_CONTENT_TYPES
    ):
        raise HTTPException(
            status_code=400,
            detail={
                "error": "invalid_file_type",
                "message": f"Ожидается изображение или PDF, получен: {content_type}",
            },
        )

    file_bytes = await file.read()

    max_size = settings.max_file_size_mb * 1024 * 1024
    if len(file_bytes) > max_size:
        raise HTTPException(
            status_code=413,
            detail={
                "error": "file_too_large",
                "message": f"Файл слишком большой: {len(file_bytes)} байт, "
                f"максимум: {settings.max_file_size_mb} МБ",
            },
        )

    return file_bytes or None, filename


if __name__ == "__main__":
    import uvicorn

    port = settings.port
    logger.info(f"Запуск Vision OCR на порту {port}")
    logger.info(f"Azure endpoint: {settings.endpoint or '<не задан>'}")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        log_level="info",
    )
