import pytest

from cellanalyzer.cell import Cell
from cellanalyzer.entries import format_nm
from cellanalyzer.settings import SettingsManager
from cellanalyzer.verification import (
    CELL_WIDGET_WIDTH,
    GRID_SPACING,
    VerificationSession,
    ViewMode,
    average_scale,
)


def make_cells(*diameters, path="a.png"):
    return [Cell(diameter_px=float(d), image_path=path) for d in diameters]


def test_average_scale_equal_ratios():
    assert average_scale([(100.0, 50), (200.0, 100)]) == pytest.approx(100.0 / 50)


def test_average_scale_skips_zero_pixels():
    assert average_scale([(100.0, 50), (999.0, 0)]) == pytest.approx(100.0 / 50)


def test_average_scale_empty_is_none():
    assert average_scale([]) is None
    assert average_scale([(5.0, 0)]) is None


def test_recalculate_fills_empty_entries(tmp_path):
    settings = SettingsManager(tmp_path)
    session = VerificationSession(make_cells(50, 100), settings)
    session.entries[0].diameter_nm_text = "100"
    scale = session.recalculate()
    assert scale == pytest.approx(100 / 50)
    assert session.entries[0].diameter_nm_text == "100"
    assert session.entries[1].diameter_nm_text == format_nm(100 * scale)
    assert session.coefficient_text == f"{scale:.4f}"
    assert SettingsManager(tmp_path).nm_per_pixel == pytest.approx(scale)


def test_recalculate_without_input_changes_nothing(tmp_path):
    settings = SettingsManager(tmp_path)
    session = VerificationSession(make_cells(50, 100), settings)
    assert session.recalculate() is None
    assert [e.diameter_nm_text for e in session.entries] == ["", ""]
    assert session.coefficient_text == ""


def test_initial_coefficient_from_settings(tmp_path):
    settings = SettingsManager(tmp_path)
    settings.nm_per_pixel = 1.5
    session = VerificationSession(make_cells(50), settings)
    assert session.coefficient_text == f"{1.5:.4f}"


def test_session_copies_cells():
    cells = make_cells(50)
    session = VerificationSession(cells)
    session.cells[0].diameter_px = 10.0
    assert cells[0].diameter_px == 50.0


def test_remove_drops_cell_and_resets_entries():
    session = VerificationSession(make_cells(50, 60, 70))
    session.entries[2].diameter_nm_text = "5"
    removed = session.remove(1)
    assert removed.diameter_px == 60.0
    assert [e.diameter_px for e in session.entries] == [50, 70]
    assert not session.any_filled


def test_remove_invalid_index():
    session = VerificationSession(make_cells(50))
    with pytest.raises(IndexError):
        session.remove(1)
    with pytest.raises(IndexError):
        session.remove(-1)


def test_clear_diameters_grid_sets_zero():
    session = VerificationSession(make_cells(50, 60))
    session.entries[0].diameter_nm_text = "12"
    session.coefficient_text = "x"
    session.clear_diameters()
    assert [e.diameter_nm_text for e in session.entries] == [format_nm(0.0)] * 2
    assert session.coefficient_text == ""


def test_clear_diameters_list_empties():
    session = VerificationSession(make_cells(50, 60))
    session.view_mode = ViewMode.LIST
    session.entries[0].diameter_nm_text = "12"
    session.clear_diameters()
    assert [e.diameter_nm_text for e in session.entries] == ["", ""]


def test_view_mode_change_resets_entries():
    session = VerificationSession(make_cells(50))
    session.entries[0].diameter_nm_text = "12"
    session.view_mode = ViewMode.LIST
    assert session.view_mode is ViewMode.LIST
    assert session.entries[0].diameter_nm_text == ""


def test_grid_positions_wrap_by_width():
    session = VerificationSession(make_cells(50, 60, 70))
    width = 30 + 2 * (CELL_WIDGET_WIDTH + GRID_SPACING)
    assert session.grid_positions(width) == [(0, 0), (0, 1), (1, 0)]


def test_grid_positions_at_least_one_column():
    session = VerificationSession(make_cells(50, 60))
    assert session.grid_positions(0) == [(0, 0), (1, 0)]