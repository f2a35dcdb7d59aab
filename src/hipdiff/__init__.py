__version__ = "0.1.0"

from .chunk import (  # noqa: E402
    BoundsError,
    CountMismatchError,
    LoadError,
    StructuralError,
    TruncatedReadError,
)
from .diff import DiffEntry, DiffOptions, DiffReport, diff  # noqa: E402
from .hip import Archive, load_archive, load_archive_file  # noqa: E402
