import os
import sys

from . import const as C
from .chunk import LoadError
from .common import eprint, hint_help as _hint_help
from .diff import DiffOptions, diff
from .hip import load_archive_file
from .report import print_report

_FLAGS = {
    "-a": "assets_only",
    "-d": "detailed",
    "-c": "ignore_data_if_checksum_matches",
    "-o": "diff_offsets",
    "-p": "diff_pluses",
}


def _load(path):
    try:
        arc = load_archive_file(path)
    except OSError as e:
        eprint(f"error: could not open file '{path}': {e}")
        return None
    except LoadError as e:
        eprint(f"error: could not read file '{path}': {e}")
        return None
    for w in arc.warnings:
        eprint(f"warning: {path}: {w}")
    return arc


def _use_color(no_color: bool) -> bool:
    if no_color or os.environ.get("NO_COLOR"):
        return False
    try:
        return sys.stdout.isatty()
    except Exception:
        return False


def main(argv=None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    opts = {}
    width = C.DEFAULT_COLUMN_WIDTH
    no_color = False
    paths = []
    it = iter(argv)
    for a in it:
        low = a.lower()
        if low in _FLAGS:
            opts[_FLAGS[low]] = True
        elif low == "-w":
            try:
                width = int(next(it))
            except StopIteration:
                eprint("error: -w requires a value")
                return 2
            except ValueError:
                width = C.DEFAULT_COLUMN_WIDTH
            if width <= 0:
                width = C.DEFAULT_COLUMN_WIDTH
        elif low == "--no-color":
            no_color = True
        elif a.startswith("-"):
            eprint(f"error: unknown option '{a}'")
            return 2
        elif len(paths) < 2:
            paths.append(a)
        else:
            eprint(f"error: too many arguments: '{a}'")
            return 2

    if not paths:
        eprint("error: original HIP file argument missing")
        _hint_help()
        return 2
    if len(paths) == 1:
        eprint("error: modified HIP file argument missing")
        _hint_help()
        return 2

    opath, mpath = paths
    ohip = _load(opath)
    if ohip is None:
        return 1
    mhip = _load(mpath)
    if mhip is None:
        return 1

    report = diff(ohip, mhip, DiffOptions(**opts))
    print_report(
        report,
        opath,
        mpath,
        column_width=width,
        color=_use_color(no_color),
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
