"""
Ошибки задачи распознавания.

Каждый этап пайплайна (submit -> poll -> extract) сообщает об ошибке
исключением OCRJobError с видом ErrorKind. Раннер задачи перехватывает их
на верхнем уровне и превращает в JobOutcome.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Вид ошибки задачи распознавания."""

    CONFIGURATION_MISSING = "configuration_missing"
    NO_FILE_SELECTED = "no_file_selected"
    SUBMISSION_REJECTED = "submission_rejected"
    PROCESSING_FAILED = "processing_failed"
    POLL_TIMEOUT = "poll_timeout"
    NETWORK_FAILURE = "network_failure"
    INVALID_RESPONSE = "invalid_response"
    JOB_IN_PROGRESS = "job_in_progress"
    UNEXPECTED_ERROR = "unexpected_error"


# HTTP статус ответа API для каждого вида ошибки
HTTP_STATUS = {
    ErrorKind.CONFIGURATION_MISSING: 503,
    ErrorKind.NO_FILE_SELECTED: 400,
    ErrorKind.SUBMISSION_REJECTED: 502,
    ErrorKind.PROCESSING_FAILED: 502,
    ErrorKind.POLL_TIMEOUT: 504,
    ErrorKind.NETWORK_FAILURE: 502,
    ErrorKind.INVALID_RESPONSE: 502,
    ErrorKind.JOB_IN_PROGRESS: 409,
    ErrorKind.UNEXPECTED_ERROR: 500,
}


class OCRJobError(Exception):
    """Базовая ошибка задачи распознавания."""

    kind: ErrorKind = ErrorKind.NETWORK_FAILURE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        """Сообщение для панели журнала."""
        return f"Ошибка при обработке OCR: {self.message}"


class ConfigurationMissing(OCRJobError):
    kind = ErrorKind.CONFIGURATION_MISSING

    def __init__(self, message: str = "endpoint или ключ Azure не настроены."):
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return f"ОШИБКА: {self.message}"


class NoFileSelected(OCRJobError):
    kind = ErrorKind.NO_FILE_SELECTED

    def __init__(self, message: str = "Пожалуйста, сначала выберите изображение или PDF."):
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return self.message


class SubmissionRejected(OCRJobError):
    """
    Read API не принял файл (ответ отличен от 202
    или нет заголовка Operation-Location).

    Attributes:
        status_code: HTTP статус ответа
    """

    kind = ErrorKind.SUBMISSION_REJECTED

    def __init__(self, status_code: int, message: str):
        super().__init__(f"Ошибка {status_code}: {message}")
        self.status_code = status_code


class ProcessingFailed(OCRJobError):
    kind = ErrorKind.PROCESSING_FAILED

    def __init__(self, message: str = "Обработка OCR завершилась неудачей."):
        super().__init__(message)


class PollTimeout(OCRJobError):
    kind = ErrorKind.POLL_TIMEOUT

    def __init__(self, attempts: int):
        super().__init__(f"Превышено время ожидания ({attempts} попыток).")
        self.attempts = attempts


class NetworkFailure(OCRJobError):
    kind = ErrorKind.NETWORK_FAILURE


class InvalidResponse(OCRJobError):
    """Ответ Read API не соответствует ожидаемому формату."""

    kind = ErrorKind.INVALID_RESPONSE


class UnexpectedError(OCRJobError):
    kind = ErrorKind.UNEXPECTED_ERROR

    def __init__(self, message: str = "Непредвиденная ошибка, подробности в журнале сервиса."):
        super().__init__(message)


class JobInProgress(OCRJobError):
    kind = ErrorKind.JOB_IN_PROGRESS

    def __init__(self, message: str = "Предыдущая задача ещё выполняется, дождитесь её завершения."):
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return self.message


def http_status_for(kind: Optional[str]) -> int:
    """HTTP статус ответа API по значению ErrorKind (None — успех)."""
    if kind is None:
        return 200
    return HTTP_STATUS.get(ErrorKind(kind), 500)
