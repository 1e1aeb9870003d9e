"""
Схемы данных Vision OCR.

Включает:
    - Pydantic модели для API (прямоугольники оверлея, журнал, ответ)
    - Внутренние dataclass'ы задачи распознавания и результатов Read API
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Pydantic модели для API
# =============================================================================


class OverlayRect(BaseModel):
    """
    Прямоугольник строки текста в координатах отображаемого изображения.

    Attributes:
        page: номер страницы (начинается с 1)
        left: X координата левого края (пиксели)
        top: Y координата верхнего края (пиксели)
        width: ширина прямоугольника
        height: высота прямоугольника
        text: текст строки
    """

    page: int = 1
    left: float
    top: float
    width: float
    height: float
    text: str = ""


class LogEntry(BaseModel):
    """
    Запись журнала в панели сообщений.

    Attributes:
        timestamp: время записи в формате HH:MM:SS
        level: info | success | error
        message: текст сообщения для пользователя
    """

    timestamp: str
    level: str = "info"
    message: str


class FileInfo(BaseModel):
    """
    Информация о загруженном файле.

    Attributes:
        filename: имя файла
        size_bytes: размер файла в байтах
    """

    filename: str
    size_bytes: int


class OCRResponse(BaseModel):
    """
    Ответ API с результатами OCR.

    Attributes:
        success: успешность операции
        doc_id: идентификатор оверлея в хранилище
        text: распознанный текст (строки через пробел, страницы через \\n)
        total_pages: количество страниц в результате
        attempts: сколько раз опрашивался статус операции
        rects: прямоугольники строк, масштабированные под rendered размер
        log: журнал выполнения задачи
        file_info: информация о файле
        error_kind: вид ошибки (если success=False)
        error: сообщение об ошибке (если success=False)
        status_code: HTTP статус отказа Read API (для submission_rejected)
    """

    success: bool
    doc_id: Optional[str] = None
    text: str = ""
    total_pages: int = 0
    attempts: int = 0
    rects: list[OverlayRect] = Field(default_factory=list)
    log: list[LogEntry] = Field(default_factory=list)
    file_info: Optional[FileInfo] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None


# =============================================================================
# Внутренние dataclass'ы
# =============================================================================


class JobState(str, Enum):
    """Состояние задачи анализа."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class AnalysisJob:
    """
    Задача распознавания, отправленная в Read API.

    Создаётся после успешной отправки, изменяется только циклом опроса.

    Attributes:
        source_file: содержимое исходного файла
        filename: имя файла для журнала
        status_url: URL из заголовка Operation-Location
        attempts_made: количество выполненных опросов
        state: текущее состояние задачи
    """

    source_file: bytes
    filename: str
    status_url: str
    attempts_made: int = 0
    state: JobState = JobState.PENDING


@dataclass
class ImageSize:
    width: float
    height: float


@dataclass
class LineResult:
    """
    Строка текста из ответа Read API.

    Attributes:
        text: текст строки
        bounding_box: 8 чисел — углы top-left, top-right,
            bottom-right, bottom-left в координатах исходника
    """

    text: str
    bounding_box: list[float]


@dataclass
class PageResult:
    """
    Результат распознавания одной страницы.

    Attributes:
        page: номер страницы (начинается с 1)
        lines: строки в порядке чтения
        width: ширина страницы в единицах unit (если известна)
        height: высота страницы в единицах unit (если известна)
        unit: "pixel" для изображений, "inch" для PDF
    """

    page: int
    lines: list[LineResult] = field(default_factory=list)
    width: Optional[float] = None
    height: Optional[float] = None
    unit: Optional[str] = None

    @property
    def natural_size(self) -> Optional[ImageSize]:
        if self.width and self.height:
            return ImageSize(width=self.width, height=self.height)
        return None


@dataclass
class StoredOverlay:
    """
    Отрендеренный оверлей документа в хранилище.

    Attributes:
        doc_id: уникальный UUID документа
        created_at: время создания записи
        filename: имя исходного файла
        pages: PNG изображения страниц с нанесёнными прямоугольниками
    """

    doc_id: str
    created_at: datetime
    filename: str
    pages: list[bytes] = field(default_factory=list)


@dataclass
class JobOutcome:
    """
    Итог запуска задачи: либо результат, либо вид ошибки.

    Attributes:
        success: задача завершилась успешно
        text: собранный текст документа
        pages: разобранные страницы результата
        rects: прямоугольники строк в координатах rendered
        doc_id: идентификатор оверлея в хранилище (если отрендерен)
        page_count: количество страниц оверлея
        attempts: сколько раз опрашивался статус
        error_kind: вид ошибки (значение ErrorKind)
        error: сообщение об ошибке для пользователя
        status_code: HTTP статус отказа Read API (для submission_rejected)
    """

    success: bool
    text: str = ""
    pages: list[PageResult] = field(default_factory=list)
    rects: list[OverlayRect] = field(default_factory=list)
    doc_id: Optional[str] = None
    page_count: int = 0
    attempts: int = 0
    error_kind: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
