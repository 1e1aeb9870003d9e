"""
Рендеринг визуального результата: исходное изображение с прямоугольниками
распознанных строк.

Изображения открываются через Pillow, PDF разбивается на страницы
через pdf2image (pdftoppm). Каждая страница сохраняется в PNG.
"""

import io
import logging
from typing import Optional

from pdf2image import convert_from_bytes
from PIL import Image, ImageDraw, UnidentifiedImageError

from vision_ocr.schemas import ImageSize, PageResult
from vision_ocr.services.geometry import page_rects

logger = logging.getLogger(__name__)

BOX_COLOR = (255, 0, 0)
BOX_WIDTH = 2


def is_pdf(file_bytes: bytes) -> bool:
    return file_bytes.startswith(b"%PDF")


def load_page_images(file_bytes: bytes, dpi: int = 100) -> list[tuple[int, Image.Image]]:
    """
    Загружает страницы исходного файла как изображения.

    Args:
        file_bytes: содержимое изображения или PDF
        dpi: разрешение рендеринга PDF

    Returns:
        list[tuple[int, Image.Image]]: (номер_страницы, изображение), нумерация с 1

    Raises:
        ValueError: если файл не является изображением или PDF
    """
    if is_pdf(file_bytes):
        images = convert_from_bytes(file_bytes, dpi=dpi)
        if not images:
            raise ValueError("PDF не содержит страниц")
        logger.info(f"PDF отрендерен: {len(images)} страниц, dpi={dpi}")
        return [(idx, img.convert("RGB")) for idx, img in enumerate(images, start=1)]

    try:
        img = Image.open(io.BytesIO(file_bytes))
        img.load()
    except UnidentifiedImageError as e:
        raise ValueError(f"Файл не является изображением: {e}") from e

    return [(1, img.convert("RGB"))]


def natural_image_size(file_bytes: bytes) -> Optional[ImageSize]:
    """
    Собственный размер изображения в пикселях (без декодирования пикселей).

    Для PDF и нераспознанных файлов возвращает None.
    """
    if is_pdf(file_bytes):
        return None
    try:
        with Image.open(io.BytesIO(file_bytes)) as img:
            width, height = img.size
    except UnidentifiedImageError:
        return None
    return ImageSize(width=width, height=height)


def draw_page(image: Image.Image, page: PageResult) -> bytes:
    """
    Рисует прямоугольники строк страницы поверх изображения.

    Исходный размер берётся из ответа Read API, иначе — размер изображения.
    Отображаемый размер — размер самого изображения.

    Returns:
        bytes: PNG
    """
    rendered = ImageSize(width=image.width, height=image.height)
    natural = page.natural_size or rendered

    canvas = image.copy()
    draw = ImageDraw.Draw(canvas)
    for rect in page_rects(page, natural, rendered):
        draw.rectangle(
            [rect.left, rect.top, rect.left + rect.width, rect.top + rect.height],
            outline=BOX_COLOR,
            width=BOX_WIDTH,
        )

    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")
    return buffer.getvalue()


def render_overlay(file_bytes: bytes, pages: list[PageResult], dpi: int = 100) -> list[bytes]:
    """
    Рендерит оверлей для всех страниц результата.

    Страницы результата сопоставляются со страницами файла по номеру;
    страницы без результата рисуются без прямоугольников.

    Returns:
        list[bytes]: PNG по страницам файла
    """
    by_number = {page.page: page for page in pages}
    rendered_pages = []

    for page_num, image in load_page_images(file_bytes, dpi=dpi):
        page = by_number.get(page_num) or PageResult(page=page_num)
        rendered_pages.append(draw_page(image, page))

    logger.info(
        f"Оверлей готов: страниц {len(rendered_pages)}, "
        f"строк {sum(len(p.lines) for p in pages)}"
    )
    return rendered_pages
