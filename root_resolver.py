"""
root_resolver.py
Reduces a DefinitionGraph to the message types that need a binding module of their own:
types that are not only reached as a lexically nested child of another type, plus every
circular join-point.
"""
from typing import List, Optional, Tuple

from model import DefinitionGraph, ModuleKind
from tree_classifier import TreeClassifier, is_tree_edge


def compute_roots(graph: DefinitionGraph, classifier: Optional[TreeClassifier] = None) -> List[str]:
    """Root type names in definition order."""
    return [name for name, _ in roots_with_kinds(graph, classifier)]


def roots_with_kinds(graph: DefinitionGraph, classifier: Optional[TreeClassifier] = None) -> List[Tuple[str, ModuleKind]]:
    """
    Like `compute_roots`, but also tells whether each root is a plain root or only
    kept because it is a circular join-point.
    """
    classifier = classifier or TreeClassifier(graph)
    candidates = set(graph.names())
    for msg in graph.messages():
        if not msg.fields:
            # Empty messages never need accessors of their own
            candidates.discard(msg.name)
            continue
        for field in msg.fields:
            if field.type.is_message and is_tree_edge([msg.name, field.type.name]):
                candidates.discard(field.type.name)

    roots = []
    for name in graph:
        if name in candidates:
            roots.append((name, ModuleKind.ROOT))
        elif classifier.is_circular(name):
            roots.append((name, ModuleKind.CYCLE_JOIN))
    return roots
