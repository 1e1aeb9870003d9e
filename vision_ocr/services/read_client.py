"""
Клиент Azure AI Vision Read API (v3.2).

Содержит:
    - Отправку файла: POST {endpoint}/vision/v3.2/read/analyze
    - Цикл опроса статуса: GET {Operation-Location}

Read API асинхронный: на отправку отвечает 202 и URL операции,
результат появляется после нескольких опросов этого URL.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import httpx

from vision_ocr.config import Settings
from vision_ocr.errors import NetworkFailure, PollTimeout, ProcessingFailed, SubmissionRejected
from vision_ocr.schemas import AnalysisJob, JobState

logger = logging.getLogger(__name__)

READ_ANALYZE_PATH = "vision/v3.2/read/analyze"
KEY_HEADER = "Ocp-Apim-Subscription-Key"
OPERATION_LOCATION_HEADER = "Operation-Location"

# Callback опроса: (номер_попытки, максимум_попыток)
AttemptCallback = Callable[[int, int], None]


class ReadClient:
    """
    Отправляет файл в Read API и опрашивает статус операции.

    Интервал и число попыток фиксированы настройками: без backoff,
    без jitter, без отмены.

    Args:
        endpoint: базовый URL ресурса Azure
        key: ключ подписки
        poll_interval: пауза перед каждым опросом, секунды
        max_attempts: максимум опросов статуса
        timeout: таймаут одного HTTP запроса, секунды
        language: необязательный язык распознавания
        transport: транспорт httpx (в тестах — httpx.MockTransport)
        sleep: функция ожидания (в тестах подменяется)
    """

    def __init__(
        self,
        endpoint: str,
        key: str,
        *,
        poll_interval: float = 3.0,
        max_attempts: int = 15,
        timeout: float = 30.0,
        language: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.endpoint = endpoint.strip()
        self.key = key.strip()
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.language = language
        self._transport = transport
        self._sleep = sleep

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ReadClient":
        return cls(
            settings.endpoint,
            settings.key,
            poll_interval=settings.poll_interval_seconds,
            max_attempts=settings.max_attempts,
            timeout=settings.request_timeout_seconds,
            language=settings.language,
            **kwargs,
        )

    @property
    def analyze_url(self) -> str:
        # Endpoint из портала Azure заканчивается на "/", но не всегда
        return f"{self.endpoint.rstrip('/')}/{READ_ANALYZE_PATH}"

    def open(self) -> httpx.AsyncClient:
        """Создаёт HTTP клиент для одной задачи."""
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )

    async def submit(self, client: httpx.AsyncClient, file_bytes: bytes) -> str:
        """
        Отправляет файл на распознавание.

        Args:
            client: открытый HTTP клиент
            file_bytes: содержимое изображения или PDF

        Returns:
            str: URL операции для опроса статуса

        Raises:
            SubmissionRejected: статус ответа не 202 или нет Operation-Location
            NetworkFailure: ошибка транспорта
        """
        params = {"language": self.language} if self.language else None

        try:
            response = await client.post(
                self.analyze_url,
                params=params,
                headers={
                    KEY_HEADER: self.key,
                    "Content-Type": "application/octet-stream",
                },
                content=file_bytes,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkFailure(f"Не удалось отправить файл: {e}") from e

        if response.status_code != 202:
            message = _error_message(response)
            logger.warning(f"Read API отклонил файл: {response.status_code} - {message}")
            raise SubmissionRejected(response.status_code, message)

        status_url = response.headers.get(OPERATION_LOCATION_HEADER)
        if not status_url:
            raise SubmissionRejected(
                response.status_code,
                "ответ не содержит заголовок Operation-Location",
            )

        logger.info(f"Файл принят: {len(file_bytes)} байт, операция {status_url}")
        return status_url

    async def poll(
        self,
        client: httpx.AsyncClient,
        job: AnalysisJob,
        on_attempt: Optional[AttemptCallback] = None,
    ) -> dict:
        """
        Опрашивает статус операции до терминального состояния.

        Перед каждой попыткой ждёт poll_interval секунд.
        "succeeded" завершает цикл, "failed" — ошибка,
        остальные статусы считаются выполнением.

        Args:
            client: открытый HTTP клиент
            job: задача (attempts_made и state меняются здесь)
            on_attempt: callback перед каждым запросом статуса

        Returns:
            dict: итоговый ответ Read API со статусом "succeeded"

        Raises:
            ProcessingFailed: Read API вернул статус "failed"
            PollTimeout: попытки исчерпаны
            NetworkFailure: ошибка транспорта или некорректный ответ
        """
        while job.attempts_made < self.max_attempts:
            await self._sleep(self.poll_interval)
            job.attempts_made += 1

            if on_attempt:
                on_attempt(job.attempts_made, self.max_attempts)

            payload = await self._get_status(client, job.status_url)
            status = str(payload.get("status", "")).lower()
            logger.debug(f"Попытка {job.attempts_made}/{self.max_attempts}: status={status}")

            if status == JobState.SUCCEEDED.value:
                job.state = JobState.SUCCEEDED
                return payload
            if status == JobState.FAILED.value:
                job.state = JobState.FAILED
                raise ProcessingFailed()

        job.state = JobState.TIMED_OUT
        raise PollTimeout(self.max_attempts)

    async def _get_status(self, client: httpx.AsyncClient, status_url: str) -> dict:
        try:
            response = await client.get(status_url, headers={KEY_HEADER: self.key})
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkFailure(f"Не удалось получить статус: {e}") from e
        except ValueError as e:
            raise NetworkFailure(f"Некорректный JSON в ответе статуса: {e}") from e

        if not isinstance(payload, dict):
            raise NetworkFailure("Ответ статуса не является JSON объектом")
        return payload


def _error_message(response: httpx.Response) -> str:
    """
    Достаёт сообщение об ошибке из тела ответа.

    Поддерживает {"message": ...} и формат Azure {"error": {"message": ...}},
    иначе возвращает reason phrase статуса.
    """
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase

    if isinstance(body, dict):
        if isinstance(body.get("message"), str):
            return body["message"]
        error = body.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]

    return response.reason_phrase
