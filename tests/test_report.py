import io

from hipgen import A, build_hip

from hipdiff.diff import diff
from hipdiff.hip import load_archive
from hipdiff.report import GRN, RED, RESET, YEL, print_report, render_report


def _report(opts=None):
    o = load_archive(build_hip([A(1, "foo", b"foo-data"), A(2, "bar", b"bar-data")], flags=1))
    m = load_archive(build_hip([A(2, "bar", b"bar-DATA"), A(3, "baz", b"baz-data")], flags=2))
    return diff(o, m, opts)


def test_render_two_columns():
    """Entries go in the left or right column with a record count per title."""
    lines = render_report(_report(), "a.hip", "b.hip", column_width=20)
    assert lines[0] == "a.hip" + " " * 15 + "b.hip"
    assert lines[1] == "=" * 40
    assert lines[2] == "PFLG" + " " * 16 + "PFLG"
    assert lines[3] == "  flags: 0x1" + " " * 8 + "  flags: 0x2"
    assert lines[4] == "Added assets (1)" + " " * 4 + "Added assets (1)"
    assert lines[5] == " " * 20 + "  baz"
    assert lines[6] == "Deleted assets (1)  Deleted assets (1)"
    assert lines[7] == "  foo"
    assert lines[8] == "Modified assets (1)" + " Modified assets (1)"
    assert lines[9] == "  bar" + " " * 15 + "  bar"
    assert lines[-2] == ""
    assert lines[-1] == "1 addition(s), 1 deletion(s), 2 modification(s)"


def test_render_widens_for_long_names():
    lines = render_report(_report(), "x" * 30, "b.hip", column_width=10)
    assert lines[1] == "=" * 62


def test_render_nested_details_indent():
    lines = render_report(_report({"detailed": True}), "a", "b", column_width=30)
    i = lines.index("Modified assets (1)" + " " * 11 + "Modified assets (1)")
    assert lines[i + 1].startswith("  AHDR (bar)")
    assert lines[i + 2].startswith("    data changed")


def test_render_empty_report():
    o = load_archive(build_hip([A(1, "foo", b"x")]))
    lines = render_report(diff(o, o), "a", "b")
    assert lines[2:] == ["", "0 addition(s), 0 deletion(s), 0 modification(s)"]


def test_render_color():
    """Colored lines are wrapped in the code for their change kind."""
    lines = render_report(_report(), "a", "b", column_width=20, color=True)
    assert lines[3].startswith(YEL) and lines[3].endswith(RESET)
    assert lines[5] == GRN + " " * 20 + "  baz" + RESET
    assert lines[7] == RED + "  foo" + RESET
    assert not lines[4].startswith("\x1b")


def test_print_report_writes_lines():
    buf = io.StringIO()
    print_report(_report(), "a", "b", out=buf)
    out = buf.getvalue()
    assert out.endswith("1 addition(s), 1 deletion(s), 2 modification(s)\n")
    assert "\x1b[" not in out
