"""
UI-слой задачи распознавания.

Раннер задачи не знает о поверхности отображения: он пишет в UISink
(журнал, результат, очистка). MemoryUISink накапливает состояние панелей,
render_page превращает его в HTML страницу.
"""

import html
from datetime import datetime
from typing import Optional, Protocol

from vision_ocr.schemas import LogEntry, OverlayRect


class UISink(Protocol):
    """Поверхность отображения: панель журнала + панель результатов."""

    def append_log(self, message: str, level: str = "info") -> None:
        ...

    def show_result(
        self,
        text: str,
        rects: list[OverlayRect],
        doc_id: Optional[str] = None,
        page_count: int = 0,
    ) -> None:
        ...

    def hide_result(self) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryUISink:
    """
    UISink, хранящий состояние панелей в памяти.

    Attributes:
        entries: журнал (только добавление, с отметкой времени)
        text: содержимое текстового поля результата
        rects: прямоугольники строк для оверлея
        doc_id: идентификатор оверлея в хранилище
        page_count: количество страниц оверлея
        result_visible: видна ли панель результатов
    """

    def __init__(self):
        self.entries: list[LogEntry] = []
        self.text = ""
        self.rects: list[OverlayRect] = []
        self.doc_id: Optional[str] = None
        self.page_count = 0
        self.result_visible = False

    def append_log(self, message: str, level: str = "info") -> None:
        self.entries.append(
            LogEntry(
                timestamp=datetime.now().strftime("%H:%M:%S"),
                level=level,
                message=message,
            )
        )

    def show_result(
        self,
        text: str,
        rects: list[OverlayRect],
        doc_id: Optional[str] = None,
        page_count: int = 0,
    ) -> None:
        self.text = text
        self.rects = list(rects)
        self.doc_id = doc_id
        self.page_count = page_count
        self.result_visible = True

    def hide_result(self) -> None:
        self.result_visible = False

    def clear(self) -> None:
        self.entries = []
        self.text = ""
        self.rects = []
        self.doc_id = None
        self.page_count = 0
        self.result_visible = False


_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="ru">
<head>
<meta charset="utf-8">
<title>Vision OCR</title>
<style>
  body {{ font-family: sans-serif; margin: 2em; }}
  #log_panel {{ border: 1px solid #ccc; padding: .5em; height: 12em; overflow-y: auto; }}
  .message.error {{ color: #b00020; }}
  .message.success {{ color: #1b5e20; }}
  #ocr_text {{ width: 100%; height: 10em; }}
  #overlay_container img {{ max-width: 100%; display: block; margin-bottom: 1em; }}
</style>
</head>
<body>
<h2>Распознавание текста (Azure AI Vision)</h2>
<form action="/ui/run" method="post" enctype="multipart/form-data">
  <input type="file" id="file_input" name="file" accept="image/*,application/pdf">
  <button type="submit" id="run_button">Распознать</button>
</form>
<h3>Журнал</h3>
<div id="log_panel">
{log}
</div>
<h3>Текст</h3>
<textarea id="ocr_text" readonly>{text}</textarea>
{result}
</body>
</html>
"""


def render_page(sink: MemoryUISink) -> str:
    """HTML страница с текущим состоянием панелей."""
    log = "\n".join(
        f'<div class="message {html.escape(e.level)}">'
        f"[{html.escape(e.timestamp)}] {html.escape(e.message)}</div>"
        for e in sink.entries
    )

    result = ""
    if sink.result_visible and sink.doc_id:
        images = "\n".join(
            f'<img src="/documents/{sink.doc_id}/overlay/{page}" alt="Страница {page}">'
            for page in range(1, sink.page_count + 1)
        )
        result = (
            '<div id="result_panel">\n'
            "<h3>Визуальный результат (строки в рамках):</h3>\n"
            f'<div id="overlay_container">\n{images}\n</div>\n'
            "</div>"
        )

    return _PAGE_TEMPLATE.format(
        log=log,
        text=html.escape(sink.text if sink.result_visible else ""),
        result=result,
    )
