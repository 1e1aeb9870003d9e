"""
Геометрия оверлея: перевод bounding box строк в координаты
отображаемого изображения.

Координаты Read API заданы в пространстве исходника (пиксели для
изображений, дюймы для PDF). Масштаб считается отдельно по каждой оси:
rendered / natural, поэтому поддерживается неравномерное масштабирование.
"""

from typing import Optional

from vision_ocr.schemas import ImageSize, OverlayRect, PageResult


def scale_factors(natural: ImageSize, rendered: ImageSize) -> tuple[float, float]:
    """
    Вычисляет коэффициенты масштаба по осям X и Y.

    Raises:
        ValueError: если natural размер нулевой
    """
    if natural.width <= 0 or natural.height <= 0:
        raise ValueError(f"Некорректный исходный размер: {natural.width}x{natural.height}")

    return rendered.width / natural.width, rendered.height / natural.height


def line_rect(
    bounding_box: list[float],
    scale_x: float,
    scale_y: float,
    text: str = "",
    page: int = 1,
) -> OverlayRect:
    """
    Строит прямоугольник строки по её bounding box.

    Точки box упорядочены: top-left, top-right, bottom-right, bottom-left.
    Ширина и высота берутся по противоположному углу (box[4], box[5]),
    т.е. box считается выровненным по осям.
    """
    if len(bounding_box) < 6:
        raise ValueError(f"bounding box должен содержать 8 чисел, получено {len(bounding_box)}")

    x, y = bounding_box[0], bounding_box[1]
    w = bounding_box[4] - bounding_box[0]
    h = bounding_box[5] - bounding_box[1]

    return OverlayRect(
        page=page,
        left=x * scale_x,
        top=y * scale_y,
        width=w * scale_x,
        height=h * scale_y,
        text=text,
    )


def page_rects(
    page: PageResult,
    natural: ImageSize,
    rendered: ImageSize,
) -> list[OverlayRect]:
    """Прямоугольники всех строк страницы в координатах rendered."""
    scale_x, scale_y = scale_factors(natural, rendered)
    return [
        line_rect(line.bounding_box, scale_x, scale_y, text=line.text, page=page.page)
        for line in page.lines
        if len(line.bounding_box) >= 6
    ]


def document_rects(
    pages: list[PageResult],
    rendered: Optional[ImageSize] = None,
    fallback_natural: Optional[ImageSize] = None,
) -> list[OverlayRect]:
    """
    Прямоугольники строк всех страниц.

    Исходный размер страницы берётся из ответа Read API (width/height),
    при его отсутствии — fallback_natural (размер самого изображения).
    Без rendered размера прямоугольники остаются в исходных координатах.
    Страницы без известного размера пропускаются.
    """
    rects: list[OverlayRect] = []
    for page in pages:
        natural = page.natural_size or fallback_natural
        if natural is None:
            continue
        rects.extend(page_rects(page, natural, rendered or natural))
    return rects
