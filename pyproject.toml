[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cellanalyzer"
version = "0.1.0"
description = "Detect round cells in microscope images, measure their diameters and export the results"
requires-python = ">=3.10"
keywords = [
    "microscopy",
    "cells",
    "hough-transform",
    "circle-detection",
    "image-analysis",
    "diameter",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Recognition",
]
dependencies = [
    "numpy",
    "scipy",
    "pillow",
    "platformdirs",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
cellanalyzer = "cellanalyzer.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["cellanalyzer"]

[tool.hatch.build.targets.sdist]
include = [
    "cellanalyzer",
    "tests",
    "README.md",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
