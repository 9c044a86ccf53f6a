from fake_session import node, storefront

from screen_pilot.agent.snapshot_builder import SnapshotBuilder
from screen_pilot.agent.state_diff import compute_snapshot_diff, diff_snapshots


def test_first_snapshot_is_initial_state():
    items = SnapshotBuilder().build(node("P", "hello"))

    assert compute_snapshot_diff([], items) == ("Initial state", 1.0)


def test_same_page_reports_no_change():
    tree, _ = storefront()
    builder = SnapshotBuilder()
    first = builder.build(tree)
    second = builder.build(tree)

    diff = diff_snapshots(first, second)

    assert not diff.changed
    assert diff.score == 0.0


def test_new_dialog_is_a_large_change():
    builder = SnapshotBuilder()
    before = builder.build(node("MAIN", "", node("P", "Cart is empty"), box=(0, 0, 500, 500)))
    after = builder.build(
        node(
            "MAIN",
            "",
            node("P", "Cart is empty"),
            node(
                "DIV",
                "",
                node("H2", "Confirm purchase"),
                node("BUTTON", "Yes"),
                node("BUTTON", "No"),
                box=(100, 100, 300, 200),
            ),
            box=(0, 0, 500, 500),
        )
    )

    diff = diff_snapshots(before, after)

    assert diff.changed
    assert diff.summary == "New section or dialog likely appeared"


def test_text_edit_is_a_change():
    builder = SnapshotBuilder()
    before = builder.build(node("P", "Total: 0"))
    after = builder.build(node("P", "Total: 1"))

    diff = diff_snapshots(before, after)

    assert diff.changed
    assert diff.score > 0
