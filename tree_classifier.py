"""
tree_classifier.py
Decides, for message-to-message references, whether the reference follows the lexical
nesting of the schema (and can be flattened into the referencing root) or has to stay
opaque because it is repeated, points outside the nesting chain, or closes a cycle.
"""
from enum import Enum
from typing import Dict, List, Sequence

from model import DefinitionGraph, Field, name_segments


class EdgeKind(Enum):
    INLINE = "inline"
    OPAQUE_SINGLE = "opaque-single"
    OPAQUE_REPEATED = "opaque-repeated"
    TERMINAL = "terminal"


def is_tree_edge(path: Sequence[str]) -> bool:
    """
    True if every name in `path` is lexically declared inside the name before it and
    no name appears twice. A single name is trivially a tree.
    """
    if len(set(path)) != len(path):
        return False
    for outer, inner in zip(path, path[1:]):
        outer_parts = name_segments(outer)
        inner_parts = name_segments(inner)
        if len(inner_parts) <= len(outer_parts):
            return False
        if inner_parts[:len(outer_parts)] != outer_parts:
            return False
    return True


class TreeClassifier:
    """
    Classification over one DefinitionGraph. Circularity results are cached, so an
    instance must not outlive the generation pass it was created for.
    """
    def __init__(self, graph: DefinitionGraph):
        self.graph = graph
        self._circular: Dict[str, bool] = {}

    def is_circular(self, type_name: str) -> bool:
        """
        True if `type_name` is the join-point of a reference cycle: some walk over
        message-typed fields leads back to it along a path that is not a pure lexical
        nesting chain. Other members of the same cycle are not flagged by this walk.
        """
        if type_name not in self._circular:
            self._circular[type_name] = self._walk(type_name, [type_name])
        return self._circular[type_name]

    def _walk(self, origin: str, path: List[str]) -> bool:
        for field in self.graph.fields_of(path[-1]):
            if not field.type.is_message:
                continue
            target = field.type.name
            if target in path:
                if target == origin and (len(path) == 1 or not is_tree_edge(path[::-1])):
                    return True
                continue
            path.append(target)
            try:
                if self._walk(origin, path):
                    return True
            finally:
                path.pop()
        return False

    def circular_types(self) -> List[str]:
        return [name for name in self.graph if self.is_circular(name)]

    def is_inlineable(self, base: str, field: Field) -> bool:
        """A singular message field can be flattened into `base` if it is a non-circular tree edge."""
        if not field.type.is_message or field.is_repeated:
            return False
        target = field.type.name
        return not self.is_circular(target) and is_tree_edge([base, target])

    def classify(self, base: str, field: Field) -> EdgeKind:
        if not field.type.is_message:
            return EdgeKind.TERMINAL
        if field.is_repeated:
            return EdgeKind.OPAQUE_REPEATED
        if self.is_inlineable(base, field):
            return EdgeKind.INLINE
        return EdgeKind.OPAQUE_SINGLE
