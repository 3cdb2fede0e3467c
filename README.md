# cellanalyzer

Find round cells in microscope images, measure their diameters in pixels,
convert them to nanometres from a few diameters you already know, and save
the cut-out cells with a CSV table.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## How detection works

`cellanalyzer.processor.ImageProcessor.process_images` handles each image in turn:

1. The image is converted to grey and smoothed with a 5×5 median filter.
2. Circles are found with a gradient Hough transform, using the settings in `HoughParams`.
3. A circle is dropped when its visible share is below 0.6. The share is the part of its bounding square inside the frame, divided by the circle's area.
4. Each remaining cell is cut out with a 30-pixel margin. Its diameter in pixels is recorded as twice the rounded radius.
5. A copy of the image with every kept cell boxed in red is written to the debug image. The default is `debug_cells_highlighted.png`, and each image overwrites it.
6. The image is searched for a near-horizontal line longer than 50 px, which is taken as the scale bar. If one is found, `diameter_nm` is set for the cells collected so far, from the bar's length and its label.

The defaults of the circle detector are:

| parameter    | default |
|--------------|---------|
| `dp`         | 1.0     |
| `min_dist`   | 30.0    |
| `param1`     | 90.0    |
| `param2`     | 50.0    |
| `min_radius` | 30      |
| `max_radius` | 150     |

`param1` is the upper Canny threshold. `param2` is the accumulator threshold for centres.

## Command line

```
cellanalyzer IMAGE [IMAGE ...] [options]
```

The command detects cells in the given images and prints one line per cell: number, diameter in pixels and diameter in nm (`-` if none). If it finds no cells, it says so and exits.

Options:

- `--dp`, `--min-dist`, `--param1`, `--param2`, `--min-radius`, `--max-radius` override the saved detector parameters. The resulting parameters are saved back to the settings.
- `--known INDEX=NM` gives the known diameter of the cell with that 1-based number. The option can be repeated. When any are given, the mean nm-per-pixel ratio of these cells fills in all the other cells. The ratio is printed as `nm/pixel` and stored in the settings.
- `--mode separate|single` sets how results are saved. `separate` writes one folder per source image and is the default. `single` writes everything to one folder.
- `--output-dir DIR` is where the `results` folder is created. The default is the working directory.
- `--no-save` skips writing results.
- `--config-dir DIR` is the settings directory.
- `--debug-image PATH` sets where the boxed debug image is written.
- `--log-file PATH` sets the log file. The default is `cell_analyzer_debug.log`.

The command returns 0 on success and 1 if an unexpected error occurred. The error is written to the log.

## Library use

```python
from cellanalyzer.params import HoughParams
from cellanalyzer.processor import ImageProcessor
from cellanalyzer.verification import VerificationSession
from cellanalyzer.export import SaveMode, save_results

processor = ImageProcessor("debug_cells_highlighted.png")
cells = processor.process_images(["sample_01.png", "sample_02.png"],
                                 HoughParams(min_radius=20, max_radius=120))

session = VerificationSession(cells)
session.entries[0].set_diameter_nm(850.0)
session.recalculate()          # fills the other entries, returns nm/pixel
save_results(session.entries, "out", SaveMode.SINGLE)
```

### Modules

- `cellanalyzer.cell`: `Cell`, a detected circle with its cropped image and diameters.
- `cellanalyzer.geometry`: `is_circle_inside_image`, `visible_circle_ratio`, and `to_pil_image`, which converts grey, BGR or BGRA arrays.
- `cellanalyzer.vision`: the image operations. These are `load_image`, `save_image`, `to_gray`, `median_blur`, `canny`, `hough_circles`, `hough_lines_p`, `draw_rectangle` and `put_text`, all working on BGR `uint8` arrays.
- `cellanalyzer.processor`: `ImageProcessor`, `extract_cells`, `detect_scale_line`, `calculate_scale` and `detect_scale_text`.
- `cellanalyzer.params`: `HoughParams`, with `to_dict` and `from_dict`. Also `PresetStore`, which keeps named parameter sets in a JSON file. That file defaults to `presets.json` in the user configuration directory.
- `cellanalyzer.settings`: `SettingsManager`. It keeps the detector parameters, the preview size and the nm-per-pixel factor in `settings.json` and saves on every change. The file lives in `default_config_dir()` unless another directory is given.
- `cellanalyzer.tuning`: `ParameterTuner`. It tries parameters on one image. `render_preview` boxes the detected circles and writes how many were found. The class can also apply and save presets.
- `cellanalyzer.preview`: `PreviewGrid`, an ordered set of image paths with grid positions, and `columns_for_width`.
- `cellanalyzer.entries`: `CellEntry`, a cell with the diameter text entered for it, and `format_nm`.
- `cellanalyzer.verification`: `VerificationSession`, `ViewMode` and `average_scale`. Changing the view mode or removing a cell discards the diameters entered so far. `clear_diameters` sets the fields to `0.00` in the grid view and empties them in the list view.
- `cellanalyzer.export`: `save_results`, `save_debug_image`, `group_by_image`, `cell_file_name` and `SaveMode`.
- `cellanalyzer.logger`: `Logger`. It appends timestamped lines to a file and stderr.

### Saved results

Results go to `<base>/results/<YYYY-MM-DD_HH-MM-SS>/`. A cell with no diameter entered is saved as 0 nm.

- **separate**: one folder per source image, named after the image's file name up to its first dot. Each folder holds:
  - `debug.png`
  - `cell_001_<nm>nm.png`, one per cell
  - `results.csv`, with columns `filename,diameter_nm`
- **single**: everything goes directly into the timestamped folder:
  - `debug_<name>.png`, one per source image
  - `<name>_cell_0001_<nm>nm.png`, one per cell
  - `all_results.csv`, with columns `source_image,cell_filename,diameter_nm`

In the debug images, only cells fully inside the frame are boxed. Each box is labelled with its diameter when that diameter is above zero.

## What it does not do

- There is no graphical interface. Previews, parameter tuning and verification are library objects that hold state; they do not draw a window. The command line is the only front end.
- The scale bar's label is not read from the image. `detect_scale_text` always returns `"100 nm"`, so automatic nanometre values assume a 100 nm bar.