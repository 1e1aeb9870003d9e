"""
Раннер задачи распознавания — координирует весь пайплайн:
    submit -> poll -> extract -> render

Все этапы пишут прогресс в UISink. Ошибки любого этапа перехватываются
на верхнем уровне, попадают в журнал с понятным пользователю сообщением
и возвращаются явно в виде JobOutcome. Повторов нет: любая ошибка
считается окончательной.

Одновременно выполняется только одна задача: повторный запуск во время
выполнения отклоняется с JobInProgress.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

import httpx
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError

from vision_ocr.config import Settings
from vision_ocr.errors import (
    ConfigurationMissing,
    JobInProgress,
    NoFileSelected,
    OCRJobError,
    UnexpectedError,
)
from vision_ocr.schemas import AnalysisJob, ImageSize, JobOutcome, PageResult
from vision_ocr.services.geometry import document_rects
from vision_ocr.services.overlay_renderer import natural_image_size, render_overlay
from vision_ocr.services.overlay_store import save_overlay
from vision_ocr.services.read_client import ReadClient
from vision_ocr.services.result_parser import assemble_text, parse_pages
from vision_ocr.ui import UISink

logger = logging.getLogger(__name__)

READY_MESSAGE = "Готово к новой обработке."

# Ошибки рендеринга оверлея не отменяют распознанный текст
_RENDER_ERRORS = (ValueError, OSError, PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError)


class OCRJobRunner:
    """
    Выполняет задачи распознавания по одной.

    Args:
        settings: настройки сервиса (endpoint, ключ, интервалы)
        transport: транспорт httpx (в тестах — httpx.MockTransport)
        sleep: функция ожидания между опросами (в тестах подменяется)
        render: рендерить ли растровый оверлей в хранилище
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        render: bool = True,
    ):
        self.settings = settings
        self._transport = transport
        self._sleep = sleep
        self._render = render
        self._lock = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    async def run(
        self,
        file_bytes: Optional[bytes],
        filename: str,
        sink: UISink,
        rendered: Optional[ImageSize] = None,
    ) -> JobOutcome:
        """
        Запускает задачу распознавания файла.

        Args:
            file_bytes: содержимое изображения или PDF (None — файл не выбран)
            filename: имя файла для журнала
            sink: поверхность отображения журнала и результата
            rendered: отображаемый размер изображения для масштабирования
                прямоугольников (None — исходный размер)

        Returns:
            JobOutcome: результат или вид ошибки
        """
        if self.busy:
            error = JobInProgress()
            logger.warning(f"Запуск отклонён, задача уже выполняется: {filename}")
            sink.append_log(error.user_message, "error")
            return _failure(error)

        async with self._lock:
            return await self._run(file_bytes, filename, sink, rendered)

    async def _run(
        self,
        file_bytes: Optional[bytes],
        filename: str,
        sink: UISink,
        rendered: Optional[ImageSize],
    ) -> JobOutcome:
        start_time = time.time()
        job: Optional[AnalysisJob] = None

        sink.clear()
        sink.append_log(READY_MESSAGE)

        try:
            if not file_bytes:
                raise NoFileSelected()
            if not self.settings.is_configured:
                raise ConfigurationMissing()

            client = ReadClient.from_settings(
                self.settings,
                transport=self._transport,
                sleep=self._sleep,
            )

            sink.append_log(f"Запуск OCR для файла: {filename}...")
            logger.info(f"Запуск OCR: {filename}, {len(file_bytes)} байт")

            async with client.open() as http:
                sink.append_log("1/4: Отправка файла в Azure (POST /read/analyze)...")
                status_url = await client.submit(http, file_bytes)

                job = AnalysisJob(source_file=file_bytes, filename=filename, status_url=status_url)
                sink.append_log(f"2/4: Файл отправлен. URL опроса: {status_url}")

                def on_attempt(attempt: int, max_attempts: int) -> None:
                    sink.append_log(f"3/4: Попытка {attempt}/{max_attempts}: проверка статуса...")

                payload = await client.poll(http, job, on_attempt=on_attempt)

            sink.append_log("4/4: OCR успешно завершён!", "success")

            parsed = parse_pages(payload)
            text = assemble_text(parsed)
            pages = parsed or []
            rects = document_rects(
                pages,
                rendered=rendered,
                fallback_natural=natural_image_size(file_bytes),
            )
            doc_id, page_count = self._render_overlay(file_bytes, filename, pages, sink)

            sink.show_result(text, rects, doc_id=doc_id, page_count=page_count)

        except OCRJobError as e:
            logger.error(f"Ошибка OCR ({e.kind.value}) для {filename}: {e.message}")
            sink.append_log(e.user_message, "error")
            sink.hide_result()
            return _failure(e, attempts=job.attempts_made if job else 0)

        except Exception as e:
            logger.exception(f"Непредвиденная ошибка OCR для {filename}: {e}")
            error = UnexpectedError()
            sink.append_log(error.user_message, "error")
            sink.hide_result()
            return _failure(error, attempts=job.attempts_made if job else 0)

        processing_time_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"OCR завершён: {filename}, страниц {len(pages)}, "
            f"попыток {job.attempts_made}, {processing_time_ms}ms"
        )

        return JobOutcome(
            success=True,
            text=text,
            pages=pages,
            rects=rects,
            doc_id=doc_id,
            page_count=page_count,
            attempts=job.attempts_made,
        )

    def _render_overlay(
        self,
        file_bytes: bytes,
        filename: str,
        pages: list[PageResult],
        sink: UISink,
    ) -> tuple[Optional[str], int]:
        if not self._render:
            return None, 0

        try:
            images = render_overlay(file_bytes, pages, dpi=self.settings.render_dpi)
        except _RENDER_ERRORS as e:
            logger.warning(f"Не удалось отрендерить оверлей {filename}: {e}")
            sink.append_log(f"Визуальный результат недоступен: {e}", "error")
            return None, 0

        return save_overlay(filename, images), len(images)


def _failure(error: OCRJobError, attempts: int = 0) -> JobOutcome:
    return JobOutcome(
        success=False,
        attempts=attempts,
        error_kind=error.kind.value,
        error=error.user_message,
        status_code=getattr(error, "status_code", None),
    )
