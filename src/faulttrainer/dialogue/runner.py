"""Walk a :class:`~faulttrainer.dialogue.tree.DialogueTree` and keep score.

Each choice carries diagnostic points for asking a useful question.  The
maximum score is the sum, over every node reachable from the root, of that
node's best choice.  Points at a node are only awarded the first time a
choice is taken there, so revisiting a node through a cycle can never push
the score past that maximum.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from .tree import Choice, DialogueNode, DialogueTree

__all__ = ["ChoiceSink", "DialogueRunner"]

logger = logging.getLogger(__name__)

ChoiceSink = Callable[[Choice, int], None]


class DialogueRunner:
    def __init__(self, on_choice: ChoiceSink | None = None) -> None:
        self._on_choice = on_choice
        self._tree: DialogueTree | None = None
        self._current_id: str | None = None
        self._score = 0
        self._max_score = 0
        self._complete = False
        self._visited: list[str] = []
        self._selected: list[Choice] = []
        self._scored: set[str] = set()

    def initialize(self, tree: DialogueTree) -> None:
        self._tree = tree
        self._score = 0
        self._visited = []
        self._selected = []
        self._scored = set()
        self._complete = False
        self._max_score = _max_score(tree)
        self._current_id = tree.root_id
        if self._current_id:
            self._visited.append(self._current_id)
        logger.debug("Dialogue runner initialised", extra={"max_score": self._max_score})

    # ------------------------------------------------------------ properties
    @property
    def score(self) -> int:
        return self._score

    @property
    def max_score(self) -> int:
        return self._max_score

    @property
    def is_complete(self) -> bool:
        return self._complete

    @property
    def current_id(self) -> str | None:
        return self._current_id

    @property
    def visited(self) -> list[str]:
        return list(self._visited)

    @property
    def selected_choices(self) -> list[Choice]:
        return list(self._selected)

    def current_node(self) -> DialogueNode | None:
        if self._complete or self._tree is None:
            return None
        return self._tree.get(self._current_id)

    def choice_texts(self) -> list[str]:
        node = self.current_node()
        return [choice.text for choice in node.choices] if node else []

    # --------------------------------------------------------------- actions
    def select_choice(self, index: int) -> str | None:
        """Take choice ``index`` at the current node and return the reply.

        Returns ``None`` when the runner is complete or the index is out of
        range; the runner is left untouched in that case.
        """

        node = self.current_node()
        if node is None:
            return None
        if not 0 <= index < len(node.choices):
            logger.warning("Invalid dialogue choice index %s at '%s'", index, node.id)
            return None

        choice = node.choices[index]
        self._selected.append(choice)
        awarded = 0
        if node.id not in self._scored:
            self._scored.add(node.id)
            awarded = choice.diagnostic_points
            self._score += awarded
        logger.info(
            "Dialogue choice selected",
            extra={"node": node.id, "choice": choice.text, "points": awarded, "score": self._score},
        )
        if self._on_choice is not None:
            self._on_choice(choice, awarded)

        self._move_to(choice.next_id or node.next_id)
        return choice.response

    def advance_to_next(self) -> bool:
        node = self.current_node()
        if node is None:
            return False
        return self._move_to(node.next_id)

    def diagnostic_ratio(self) -> float:
        if self._max_score <= 0:
            return 0.0
        return max(0.0, min(1.0, self._score / self._max_score))

    def _move_to(self, next_id: str | None) -> bool:
        if self._tree is not None and next_id and self._tree.has(next_id):
            self._current_id = next_id
            self._visited.append(next_id)
            return True
        self._complete = True
        logger.info("Dialogue complete", extra={"score": self._score, "max_score": self._max_score})
        return False


def _max_score(tree: DialogueTree) -> int:
    total = 0
    counted: set[str] = set()
    pending = [tree.root_id] if tree.root_id else []
    while pending:
        node_id = pending.pop()
        if node_id in counted:
            continue
        counted.add(node_id)
        node = tree.get(node_id)
        if node is None:
            continue
        if node.choices:
            total += max(choice.diagnostic_points for choice in node.choices)
        for choice in node.choices:
            if choice.next_id:
                pending.append(choice.next_id)
        if node.next_id:
            pending.append(node.next_id)
    return total
