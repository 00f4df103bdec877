from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

__all__ = ["Choice", "DialogueNode", "DialogueTree"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Choice:
    text: str
    response: str
    next_id: str | None = None
    diagnostic_points: int = 0

    def __post_init__(self) -> None:
        if self.diagnostic_points < 0:
            raise ValueError("diagnostic_points must be non-negative")


@dataclass(frozen=True)
class DialogueNode:
    id: str
    speaker: str
    text: str
    choices: tuple[Choice, ...] = ()
    next_id: str | None = None


class DialogueTree:
    """Dialogue nodes indexed by id.  The first node supplied is the root."""

    def __init__(self) -> None:
        self._nodes: dict[str, DialogueNode] = {}
        self._root_id: str | None = None

    @classmethod
    def build(cls, nodes: Iterable[DialogueNode]) -> DialogueTree:
        tree = cls()
        ordered = list(nodes)
        for node in ordered:
            if not node.id:
                logger.warning("Skipping dialogue node with an empty id")
                continue
            tree._nodes[node.id] = node
        if ordered:
            tree._root_id = ordered[0].id or None
        logger.debug("Built dialogue tree", extra={"nodes": len(tree._nodes), "root": tree._root_id})
        return tree

    @property
    def root_id(self) -> str | None:
        return self._root_id

    def get(self, node_id: str | None) -> DialogueNode | None:
        if not node_id:
            return None
        return self._nodes.get(node_id)

    def has(self, node_id: str | None) -> bool:
        return bool(node_id) and node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[DialogueNode]:
        return iter(list(self._nodes.values()))
