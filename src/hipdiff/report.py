import sys
from typing import Iterator, List, Tuple

from . import const as C
from .diff import (
    ADDITION,
    ASSET_BUCKETS,
    BUCKETS,
    DELETION,
    LAYER_BUCKETS,
    MODIFICATION,
    DiffEntry,
    DiffReport,
)

RED = "\x1b[31m"
GRN = "\x1b[32m"
YEL = "\x1b[33m"
RESET = "\x1b[0m"

_COLORS = {ADDITION: GRN, DELETION: RED, MODIFICATION: YEL}

_TITLES = {
    "assets_added": "Added assets",
    "assets_deleted": "Deleted assets",
    "assets_modified": "Modified assets",
    "layers_added": "Added layers",
    "layers_deleted": "Deleted layers",
    "layers_modified": "Modified layers",
}
_COUNTED = frozenset(ASSET_BUCKETS + LAYER_BUCKETS)


def _line(left: str, right: str, width: int) -> str:
    return ("%-*s%-*s" % (width, left, width, right)).rstrip()


def _walk(entries, level: int) -> Iterator[Tuple[DiffEntry, int]]:
    for e in entries:
        yield e, level
        yield from _walk(e.details, level + 1)


def render_report(
    report: DiffReport,
    original_name: str,
    modified_name: str,
    *,
    column_width: int = C.DEFAULT_COLUMN_WIDTH,
    color: bool = False,
) -> List[str]:
    try:
        width = int(column_width)
    except (TypeError, ValueError):
        width = C.DEFAULT_COLUMN_WIDTH
    if width <= 0:
        width = C.DEFAULT_COLUMN_WIDTH
    width = max(width, len(original_name) + 1, len(modified_name) + 1)

    lines = [_line(original_name, modified_name, width), "=" * (width * 2)]
    for name in BUCKETS:
        entries = report.bucket(name)
        if not entries:
            continue
        title = _TITLES.get(name, name)
        if name in _COUNTED:
            title = "%s (%d)" % (title, len(entries))
        lines.append(_line(title, title, width))
        for e, level in _walk(entries, 1):
            ind = "  " * level
            s = _line(ind + e.left if e.left else "", ind + e.right if e.right else "", width)
            if color:
                s = _COLORS.get(e.kind, "") + s + RESET
            lines.append(s)
    lines.append("")
    lines.append(
        "%d addition(s), %d deletion(s), %d modification(s)"
        % (report.additions, report.deletions, report.modifications)
    )
    return lines


def print_report(
    report: DiffReport,
    original_name: str,
    modified_name: str,
    *,
    column_width: int = C.DEFAULT_COLUMN_WIDTH,
    color: bool = False,
    out=None,
) -> None:
    if out is None:
        out = sys.stdout
    for s in render_report(
        report,
        original_name,
        modified_name,
        column_width=column_width,
        color=color,
    ):
        out.write(s + "\n")
