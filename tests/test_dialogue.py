from __future__ import annotations

import pytest

from faulttrainer.dialogue.runner import DialogueRunner
from faulttrainer.dialogue.tree import Choice, DialogueNode, DialogueTree


def _tree() -> DialogueTree:
    return DialogueTree.build(
        [
            DialogueNode(
                id="root",
                speaker="Customer",
                text="It stopped working.",
                choices=(
                    Choice("When?", "An hour ago.", "details", 2),
                    Choice("Anything else?", "The hallway too.", "details", 3),
                ),
            ),
            DialogueNode(
                id="details",
                speaker="Customer",
                text="Is it serious?",
                choices=(
                    Choice("Checked the panel?", "Not really.", "end", 3),
                    Choice("Say that again?", "Sure.", "root", 0),
                ),
            ),
            DialogueNode(id="end", speaker="Customer", text="Thanks."),
        ]
    )


def test_max_score_counts_best_choice_per_node():
    runner = DialogueRunner()
    runner.initialize(_tree())
    # 3 at the root (not 2 + 3) plus 3 at "details".
    assert runner.max_score == 6


def test_best_path_reaches_max_score():
    runner = DialogueRunner()
    runner.initialize(_tree())

    assert runner.select_choice(1) == "The hallway too."
    assert runner.current_id == "details"
    assert runner.select_choice(0) == "Not really."
    assert runner.current_id == "end"
    assert runner.score == runner.max_score
    assert runner.diagnostic_ratio() == 1.0

    assert runner.advance_to_next() is False
    assert runner.is_complete
    assert runner.current_node() is None
    assert runner.visited == ["root", "details", "end"]


def test_cycles_never_exceed_max_score():
    runner = DialogueRunner()
    runner.initialize(_tree())

    for _ in range(5):
        runner.select_choice(1)  # root -> details
        runner.select_choice(1)  # details -> root
        assert runner.score <= runner.max_score
    assert runner.score == 3
    assert not runner.is_complete


def test_invalid_choice_leaves_runner_untouched():
    runner = DialogueRunner()
    runner.initialize(_tree())

    assert runner.select_choice(5) is None
    assert runner.select_choice(-1) is None
    assert runner.current_id == "root"
    assert runner.score == 0
    assert runner.selected_choices == []


def test_choice_sink_receives_awarded_points():
    received: list[tuple[str, int]] = []
    runner = DialogueRunner(on_choice=lambda choice, points: received.append((choice.text, points)))
    runner.initialize(_tree())

    runner.select_choice(0)
    runner.select_choice(1)
    runner.select_choice(1)
    assert received == [("When?", 2), ("Say that again?", 0), ("Anything else?", 0)]


def test_choice_to_missing_node_completes_dialogue():
    tree = DialogueTree.build(
        [DialogueNode(id="only", speaker="Customer", text="Hi", choices=(Choice("Bye", "Bye!", "gone", 1),))]
    )
    runner = DialogueRunner()
    runner.initialize(tree)

    assert runner.select_choice(0) == "Bye!"
    assert runner.is_complete
    assert runner.select_choice(0) is None
    assert runner.choice_texts() == []


def test_empty_tree_completes_immediately():
    runner = DialogueRunner()
    runner.initialize(DialogueTree.build([]))
    assert runner.current_node() is None
    assert runner.max_score == 0
    assert runner.diagnostic_ratio() == 0.0


def test_uninitialized_runner_is_inert():
    runner = DialogueRunner()
    assert runner.current_node() is None
    assert runner.select_choice(0) is None
    assert runner.advance_to_next() is False
    assert runner.choice_texts() == []
    assert runner.score == 0


def test_negative_points_are_rejected():
    with pytest.raises(ValueError):
        Choice("Rude", "Hey!", None, -1)


def test_build_skips_nodes_without_id():
    tree = DialogueTree.build(
        [
            DialogueNode(id="a", speaker="Customer", text="A"),
            DialogueNode(id="", speaker="Customer", text="?"),
        ]
    )
    assert len(tree) == 1
    assert tree.root_id == "a"
    assert tree.has("a") and not tree.has("")
