import pytest
from hipgen import A, build_hip

from hipdiff.hip import load_archive
from hipdiff.match import Pair, match_archives, match_assets, match_layers, match_membership


def _arc(ids, layers=None):
    return load_archive(build_hip([A(i, "a%d" % i, b"d%d" % i) for i in ids], layers))


def test_match_assets_by_id():
    """Assets are paired by id, ordered by id, whatever their table order."""
    o = _arc([3, 1, 2])
    m = _arc([2, 4, 3])
    got = match_assets(o, m)
    assert list(got) == [1, 2, 3, 4]
    assert got[1] == Pair(1, None)
    assert got[2] == Pair(2, 0)
    assert got[3] == Pair(0, 2)
    assert got[4] == Pair(None, 1)


def test_match_layers_by_type_and_order():
    """The k-th layer of a type pairs with the k-th of that type on the other side."""
    o = _arc([1, 2, 3], [(5, [1]), (0, [2]), (5, [3])])
    m = _arc([1, 2, 3], [(0, [2, 3]), (5, [1])])
    got = match_layers(o, m)
    assert list(got) == [0, 5]
    assert got[0] == (Pair(1, 0),)
    assert got[5] == (Pair(0, 1), Pair(2, None))


def test_match_layers_surplus_on_modified_side():
    o = _arc([1], [(2, [1])])
    m = _arc([1, 2], [(2, [1]), (2, [2])])
    assert match_layers(o, m)[2] == (Pair(0, 0), Pair(None, 1))


def test_match_membership():
    """Membership records the layer index holding each asset on each side."""
    o = _arc([1, 2], [(0, [1]), (1, [2])])
    m = _arc([2, 3], [(0, [2, 3])])
    got = match_membership(o, m)
    assert got == {1: Pair(0, None), 2: Pair(1, 0), 3: Pair(None, 0)}


def test_match_archives_assets_only():
    """Layer matching is skipped when only assets are compared."""
    o = _arc([1])
    m = _arc([1])
    got = match_archives(o, m, with_layers=False)
    assert dict(got.assets) == {1: Pair(0, 0)}
    assert dict(got.layers) == {}
    assert dict(got.membership) == {}


def test_match_archives_is_read_only():
    got = match_archives(_arc([1]), _arc([1]))
    with pytest.raises(TypeError):
        got.assets[2] = Pair()


def test_asset_id_zero_is_matched():
    """Id 0 pairs like any other id; absence is None, never 0."""
    only_left = match_assets(_arc([0, 1]), _arc([1, 2]))
    assert only_left[0] == Pair(0, None)
    assert only_left[2] == Pair(None, 1)

    both = match_assets(_arc([5, 0]), _arc([0]))
    assert both[0] == Pair(1, 0)
    assert both[5] == Pair(0, None)

    members = match_membership(_arc([0], [(3, [0])]), _arc([0], [(0, []), (3, [0])]))
    assert members[0] == Pair(0, 1)
