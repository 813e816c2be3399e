"""gridcalc -- evaluate comma-separated grids of numbers and formulas."""

__version__ = "0.1.0"
