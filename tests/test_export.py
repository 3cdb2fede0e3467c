import csv
from datetime import datetime

import numpy as np
import pytest
from PIL import Image

from cellanalyzer.cell import Cell
from cellanalyzer.entries import CellEntry
from cellanalyzer.export import (
    SaveMode,
    cell_file_name,
    group_by_image,
    save_debug_image,
    save_results,
)
from cellanalyzer.vision import load_image


def _write_image(path, size=64):
    Image.fromarray(np.full((size, size, 3), 200, dtype=np.uint8)).save(path)
    return str(path)


def _cell(path, x=30.0, y=30.0, r=10.0, with_image=True):
    image = np.zeros((20, 20, 3), dtype=np.uint8) if with_image else None
    return Cell(circle=(x, y, r), image=image, diameter_px=2 * r, image_path=path)


def _read_csv(path):
    with open(path, encoding="utf-8", newline="") as fh:
        return list(csv.reader(fh))


def test_cell_file_name_formats():
    assert cell_file_name(1, 150.7) == "cell_001_150nm.png"
    assert cell_file_name(12, 99.99, "img") == "img_cell_0012_99nm.png"


def test_cell_file_name_truncates_diameter():
    assert cell_file_name(5, 7.9) == cell_file_name(5, 7.0)
    assert cell_file_name(5, 7.9, "a") != cell_file_name(5, 7.9)


def test_group_by_image_sorted_and_parsed():
    a, b = _cell("b.png"), _cell("a.png")
    entries = [
        CellEntry(a, "12.5"),
        CellEntry(b, ""),
        CellEntry(_cell("b.png"), "3"),
    ]
    groups = group_by_image(entries)
    assert list(groups) == ["a.png", "b.png"]
    assert [nm for _, nm in groups["b.png"]] == [12.5, 3.0]
    assert groups["a.png"][0][0] is b
    assert groups["a.png"][0][1] == 0.0


def test_save_debug_image_missing_source(tmp_path):
    assert save_debug_image(tmp_path / "nope.png", [], tmp_path / "out.png") is False
    assert not (tmp_path / "out.png").exists()


def test_save_debug_image_draws_red_box(tmp_path):
    src = _write_image(tmp_path / "src.png")
    out = tmp_path / "debug.png"
    assert save_debug_image(src, [(_cell(src), 0.0)], out) is True
    result = load_image(out)
    assert tuple(result[20, 30]) == (0, 0, 255)
    assert tuple(result[30, 30]) == (200, 200, 200)


def test_save_debug_image_skips_cells_outside(tmp_path):
    src = _write_image(tmp_path / "src.png")
    out = tmp_path / "debug.png"
    assert save_debug_image(src, [(_cell(src, x=5.0), 0.0)], out) is True
    result = load_image(out)
    assert np.all(result == 200)


def test_save_results_separate(tmp_path):
    src = _write_image(tmp_path / "first.sample.png")
    entries = [
        CellEntry(_cell(src), "100"),
        CellEntry(_cell(src, with_image=False), "50"),
        CellEntry(_cell(src), ""),
    ]
    stamp = datetime(2024, 1, 2, 3, 4, 5)
    out = save_results(entries, tmp_path, SaveMode.SEPARATE, stamp)
    assert out == tmp_path / "results" / "2024-01-02_03-04-05"
    image_dir = out / "first"
    rows = _read_csv(image_dir / "results.csv")
    assert rows[0] == ["filename", "diameter_nm"]
    assert [row[0] for row in rows[1:]] == [cell_file_name(1, 100.0), cell_file_name(3, 0.0)]
    assert [row[1] for row in rows[1:]] == ["100.00", "0.00"]
    assert (image_dir / "debug.png").exists()
    assert (image_dir / cell_file_name(1, 100.0)).exists()
    assert not (image_dir / cell_file_name(2, 50.0)).exists()


def test_save_results_single_uses_global_index(tmp_path):
    src_a = _write_image(tmp_path / "alpha.png")
    src_b = _write_image(tmp_path / "beta.png")
    entries = [
        CellEntry(_cell(src_b), "20"),
        CellEntry(_cell(src_a), "10"),
    ]
    out = save_results(entries, tmp_path, SaveMode.SINGLE, datetime(2023, 5, 6, 7, 8, 9))
    rows = _read_csv(out / "all_results.csv")
    assert rows[0] == ["source_image", "cell_filename", "diameter_nm"]
    assert rows[1] == ["alpha", cell_file_name(1, 10.0, "alpha"), "10.00"]
    assert rows[2] == ["beta", cell_file_name(2, 20.0, "beta"), "20.00"]
    assert (out / "debug_alpha.png").exists()
    assert (out / "debug_beta.png").exists()
    assert (out / cell_file_name(2, 20.0, "beta")).exists()


def test_save_results_rejects_unknown_mode(tmp_path):
    with pytest.raises(ValueError):
        save_results([], tmp_path, "sideways", datetime(2023, 1, 1))


def test_save_results_empty_creates_only_directory(tmp_path):
    out = save_results([], tmp_path, SaveMode.SEPARATE, datetime(2022, 2, 2, 2, 2, 2))
    assert out.is_dir()
    assert list(out.iterdir()) == []