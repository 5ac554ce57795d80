"""Spreadsheet / CSV import wizard.

Upload a tabular file, pick the header row, map source columns onto the
expected fields (with per-field transformations) and validate the result
before exporting cleaned rows.
"""

__version__ = "0.1.0"
