from .reader import FileParseError, UnreadableFileError, UnsupportedFormatError, read_tabular_file

__all__ = [
    "FileParseError",
    "UnreadableFileError",
    "UnsupportedFormatError",
    "read_tabular_file",
]
