"""Detection, measurement, verification and export of cells in microscope images."""

__version__ = "0.1.0"