import pytest

from ptm.progress import (
    NodeProperty,
    ProgressNode,
    fraction_completed,
    progress_bar,
    render_tree,
)


def make_tree():
    root = ProgressNode(5)
    a = ProgressNode(3, parent=root, parent_weight=2)
    b = ProgressNode(1, parent=root, parent_weight=3)
    return root, a, b


def test_fraction_of_empty_total_is_complete():
    assert fraction_completed(0, 0) == 1.0
    assert fraction_completed(1, 4) == 0.25


def test_leaf_overshoot_is_preserved():
    node = ProgressNode(4)
    node.set_completed(6)
    assert node.completed_unit_count == 6
    assert node.fraction_completed == 1.5


def test_negative_count_gives_negative_fraction():
    node = ProgressNode(4)
    node.completed_unit_count = -2
    assert node.fraction_completed == -0.5


def test_child_links_back_to_parent():
    root, a, b = make_tree()
    assert a.parent is root
    assert a.parent_weight == 2
    assert root.parent is None
    assert root.children == [a, b]


def test_root_fraction_is_weighted_and_continuous():
    root, a, _ = make_tree()
    a.set_completed(1)
    assert root.fraction_completed == pytest.approx(2 * (1 / 3) / 5)
    assert root.completed_unit_count == 0


def test_root_count_steps_when_child_finishes():
    root, a, b = make_tree()
    a.set_completed(3)
    assert root.completed_unit_count == 2
    b.set_completed(1)
    assert root.completed_unit_count == 5
    assert root.fraction_completed == 1.0


def test_resize_keeps_weight():
    root, a, b = make_tree()
    a.set_completed(3)
    b.set_completed(1)
    b.set_total(4)
    assert b.parent_weight == 3
    assert b.fraction_completed == 0.25
    assert root.total_unit_count == 5
    assert root.completed_unit_count == 2
    assert root.fraction_completed == pytest.approx(0.55)


def test_aggregate_counts_are_read_only():
    root, _, _ = make_tree()
    with pytest.raises(ValueError):
        root.set_completed(1)
    with pytest.raises(ValueError):
        root.set_total(10)


def test_tree_depth_is_limited():
    root, a, _ = make_tree()
    with pytest.raises(ValueError):
        ProgressNode(1, parent=a, parent_weight=1)


def test_mutation_recomputes_parent_once():
    root, a, _ = make_tree()
    events = []
    root.add_observer(lambda node, prop, value: events.append((prop, value)))
    a.set_completed(1)
    assert events == [(NodeProperty.FRACTION_COMPLETED, pytest.approx(2 / 15))]


def test_observer_sees_count_changes_only_when_they_happen():
    node = ProgressNode(2)
    events = []
    observer = lambda n, prop, value: events.append(prop)
    node.add_observer(observer)
    node.set_completed(0)
    node.set_total(2)
    assert events == [NodeProperty.FRACTION_COMPLETED, NodeProperty.FRACTION_COMPLETED]
    node.remove_observer(observer)
    node.set_completed(1)
    assert len(events) == 2


def test_progress_bar_clamps():
    assert progress_bar(0.5, 10) == "[#####-----]"
    assert progress_bar(1.5, 4) == "[####]"
    assert progress_bar(-1, 4) == "[----]"


def test_render_tree():
    root, a, b = make_tree()
    a.set_completed(3)
    text = render_tree(root, {"A": a, "B": b})
    assert text.splitlines() == [
        "Overall: 40% [########------------] (2/5)",
        "  A: 100% [####################] (3/3)",
        "  B: 0% [--------------------] (0/1)",
    ]


def test_failing_observer_does_not_skip_parent():
    root, a, _ = make_tree()

    def broken(node, prop, value):
        raise RuntimeError("boom")

    a.add_observer(broken)
    root.add_observer(broken)
    a.set_completed(3)
    assert a.completed_unit_count == 3
    assert root.completed_unit_count == 2
    assert root.fraction_completed == pytest.approx(0.4)
    a.set_total(6)
    assert root.completed_unit_count == 0


def test_sealed_root_refuses_children():
    root, a, b = make_tree()
    root.seal()
    with pytest.raises(ValueError):
        ProgressNode(1, parent=root, parent_weight=7)
    assert root.children == [a, b]
