import pytest

from ptm.task import ChildProgressTask, TaskSpec, check_units


def test_defaults():
    spec = TaskSpec()
    assert (spec.child_units, spec.parent_units) == (1, 1)


def test_limits():
    TaskSpec(1, 0)
    with pytest.raises(ValueError):
        TaskSpec(0, 1)
    with pytest.raises(ValueError):
        TaskSpec(1, -1)


def test_spec_is_a_child_task():
    assert isinstance(TaskSpec(2, 1), ChildProgressTask)
    assert not isinstance("download", ChildProgressTask)


def test_dict_roundtrip():
    spec = TaskSpec(5, 2)
    assert TaskSpec.from_dict(spec.to_dict()) == spec


def test_check_units():
    check_units(1, 0)
    with pytest.raises(ValueError, match="child_units"):
        check_units(0, 0)
