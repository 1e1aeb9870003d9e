import pytest

from conftest import read_result
from vision_ocr.errors import InvalidResponse
from vision_ocr.services.result_parser import NO_TEXT_MESSAGE, assemble_text, parse_pages

BOX = [0, 0, 10, 0, 10, 5, 0, 5]


def test_lines_joined_by_space_pages_by_newline():
    payload = read_result([
        [("line1a", BOX), ("line1b", BOX)],
        [("line2a", BOX), ("line2b", BOX)],
    ])

    pages = parse_pages(payload)

    assert [p.page for p in pages] == [1, 2]
    assert assemble_text(pages) == "line1a line1b\nline2a line2b"


def test_recognition_results_shape():
    payload = {
        "status": "succeeded",
        "recognitionResults": [
            {"page": 1, "width": 640, "height": 480, "unit": "pixel",
             "lines": [{"text": "Olá", "boundingBox": BOX}, {"text": "mundo", "boundingBox": BOX}]},
        ],
    }

    pages = parse_pages(payload)

    assert assemble_text(pages) == "Olá mundo"
    assert pages[0].natural_size.width == 640
    assert pages[0].unit == "pixel"


def test_read_results_preferred_over_recognition_results():
    payload = read_result([[("v3", BOX)]])
    payload["recognitionResults"] = [{"lines": [{"text": "v2", "boundingBox": BOX}]}]

    assert assemble_text(parse_pages(payload)) == "v3"


def test_unknown_shape_gives_fallback_text():
    payload = {"status": "succeeded", "analyzeResult": {"pages": []}}

    pages = parse_pages(payload)

    assert pages is None
    assert assemble_text(pages) == NO_TEXT_MESSAGE


def test_page_without_lines_list_is_not_recognized():
    payload = {"status": "succeeded", "analyzeResult": {"readResults": [{"page": 1}]}}

    assert parse_pages(payload) is None


def test_page_metadata_and_boxes_are_numbers():
    payload = read_result([[("a", [1, 2, 3, 2, 3, 4, 1, 4])]], width=200, height=100)

    page = parse_pages(payload)[0]

    assert page.lines[0].bounding_box == [1.0, 2.0, 3.0, 2.0, 3.0, 4.0, 1.0, 4.0]
    assert (page.width, page.height) == (200, 100)


@pytest.mark.parametrize("box", [[0, None, 1, 0, 1, 1, 0, 1], [0, "x", 1, 0, 1, 1, 0, 1]])
def test_non_numeric_bounding_box_is_invalid_response(box):
    payload = read_result([[("a", box)]])

    with pytest.raises(InvalidResponse, match="страницы 1"):
        parse_pages(payload)


def test_non_numeric_page_size_is_invalid_response():
    payload = read_result([[("a", BOX)]], width="wide", height=100)

    with pytest.raises(InvalidResponse):
        parse_pages(payload)
