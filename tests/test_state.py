import pytest

from strata.transaction import Active, Inactive, savepoint_name
from strata.transaction.state import INACTIVE, deeper, shallower


def test_levels():
    assert Inactive().level == 0
    assert Active(3).level == 3


def test_active_needs_positive_level():
    with pytest.raises(ValueError):
        Active(0)


def test_transitions():
    assert deeper(INACTIVE) == Active(1)
    assert deeper(Active(1)) == Active(2)
    assert shallower(Active(2)) == Active(1)
    assert shallower(Active(1)) is INACTIVE


@pytest.mark.parametrize("level", [1, 2, 10])
def test_savepoint_name(level):
    assert savepoint_name(level) == f"LEVEL{level}"


def test_no_savepoint_below_level_one():
    with pytest.raises(ValueError):
        savepoint_name(0)
