import math

import numpy as np

from cellanalyzer import processor, vision
from cellanalyzer.params import HoughParams


def _disk_image(h=240, w=240, cx=120, cy=120, r=40):
    yy, xx = np.mgrid[0:h, 0:w]
    img = np.full((h, w, 3), 20, dtype=np.uint8)
    img[(xx - cx) ** 2 + (yy - cy) ** 2 <= r * r] = 220
    return img


def test_calculate_scale_default_text():
    assert processor.calculate_scale((0, 0, 100, 0), "100 nm") == 1.0


def test_calculate_scale_no_number_uses_default():
    assert processor.calculate_scale((0, 0, 50, 0), "nm") == 2.0


def test_calculate_scale_decimal():
    assert math.isclose(processor.calculate_scale((0, 0, 100, 0), "2.5um"), 0.025)


def test_detect_scale_text_fixed():
    assert processor.detect_scale_text(np.zeros((5, 5, 3), np.uint8), (0, 0, 1, 0)) == "100 nm"


def test_detect_scale_line_blank():
    assert processor.detect_scale_line(np.zeros((100, 100, 3), np.uint8)) == (0, 0, 0, 0)


def test_detect_scale_line_bar():
    img = np.zeros((120, 240, 3), dtype=np.uint8)
    img[80:84, 30:200] = 255
    x1, y1, x2, y2 = processor.detect_scale_line(img)
    assert abs(x2 - x1) > 50
    assert abs(y2 - y1) <= 2


def test_extract_cells_skips_mostly_hidden():
    img = _disk_image()
    cells = processor.extract_cells(img, [(120, 120, 40), (0, 0, 40)], "a.png")
    assert len(cells) == 1
    assert cells[0].diameter_px == 80
    assert cells[0].image.shape[:2] == (140, 140)
    assert cells[0].image_path == "a.png"


def test_process_images(tmp_path):
    path = tmp_path / "cells.png"
    vision.save_image(path, _disk_image())
    debug = tmp_path / "debug.png"
    proc = processor.ImageProcessor(debug)
    cells = proc.process_images([str(path), str(tmp_path / "missing.png")], HoughParams())
    assert len(cells) == 1
    assert abs(cells[0].diameter_px - 80) <= 6
    assert cells[0].image_path == str(path)
    assert debug.exists()
    assert proc.cells == cells


def test_process_images_empty_list():
    assert processor.ImageProcessor(None).process_images([]) == []