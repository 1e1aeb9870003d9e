import asyncio
import io
import os

# --- Env до импорта кода приложения ---
os.environ.setdefault("AZURE_VISION_ENDPOINT", "https://test-vision.cognitiveservices.azure.com/")
os.environ.setdefault("AZURE_VISION_KEY", "test-key")

import httpx
import pytest
from PIL import Image

from vision_ocr.config import Settings
from vision_ocr.services.overlay_store import clear_store

ENDPOINT = "https://test-vision.cognitiveservices.azure.com/"
OPERATION_URL = ENDPOINT + "vision/v3.2/read/analyzeResults/op-123"


def read_result(pages: list[list[tuple[str, list[float]]]], width=None, height=None) -> dict:
    """Ответ Read API v3.2 со статусом succeeded."""
    read_results = []
    for page_num, lines in enumerate(pages, start=1):
        page = {
            "page": page_num,
            "lines": [{"text": text, "boundingBox": box} for text, box in lines],
        }
        if width and height:
            page.update({"width": width, "height": height, "unit": "pixel"})
        read_results.append(page)
    return {"status": "succeeded", "analyzeResult": {"version": "3.2.0", "readResults": read_results}}


class FakeAzure:
    """
    Поддельный Read API поверх httpx.MockTransport.

    Attributes:
        statuses: статусы, которые по очереди возвращает опрос
        result: тело ответа для статуса "succeeded"
        submit_status: HTTP статус ответа на отправку
        submit_body: JSON тело ответа на отправку (для ошибок)
        operation_location: значение заголовка Operation-Location (None — без заголовка)
    """

    def __init__(
        self,
        statuses=("succeeded",),
        result=None,
        submit_status=202,
        submit_body=None,
        operation_location=OPERATION_URL,
    ):
        self.statuses = list(statuses)
        self.result = result or read_result([[("hello", [0, 0, 10, 0, 10, 5, 0, 5])]])
        self.submit_status = submit_status
        self.submit_body = submit_body
        self.operation_location = operation_location
        self.requests: list[httpx.Request] = []

    @property
    def posts(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def polls(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "POST":
            if self.submit_status != 202:
                if self.submit_body is None:
                    return httpx.Response(self.submit_status)
                return httpx.Response(self.submit_status, json=self.submit_body)
            headers = {}
            if self.operation_location:
                headers["Operation-Location"] = self.operation_location
            return httpx.Response(202, headers=headers)

        idx = min(len(self.polls) - 1, len(self.statuses) - 1)
        status = self.statuses[idx]
        if status == "succeeded":
            return httpx.Response(200, json=self.result)
        return httpx.Response(200, json={"status": status})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class RecordingSleep:
    """Замена asyncio.sleep: запоминает паузы и только отдаёт управление циклу."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        await asyncio.sleep(0)


def png_bytes(width: int, height: int) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), "white").save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(endpoint=ENDPOINT, key="test-key", _env_file=None)


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture(autouse=True)
def empty_overlay_store():
    clear_store()
    yield
    clear_store()
