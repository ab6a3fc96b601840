"""
Accessor generator.
Flattens the fields of a root message type into field chains and emits, per chain, the
`<path>_get`, `<path>_set` and (for repeated fields) `<path>_add` functions of the
binding module. Generated setters never mutate: they rebuild only the records along the
chain with `dataclasses.replace` and create missing intermediate records on the way.
"""
from typing import Callable, List, Optional, Sequence

from model import DefinitionGraph, Field, FieldChain, ModuleKind
from tree_classifier import EdgeKind, TreeClassifier
from generators.generator_utils import attribute_name, indent, record_class_name, unique_names, variable_name
from generators.type_guards import guard_for

# Names the generated function bodies refer to; locals must not shadow them
RESERVED_LOCALS = frozenset([
    "value", "replace", "InvalidArgument", "isinstance",
    "list", "tuple", "int", "bool", "float", "str", "bytes",
])

# Opaque message references need a module of their own for the referenced type
OPAQUE_MODULE_KINDS = {
    EdgeKind.OPAQUE_SINGLE: ModuleKind.OPAQUE,
    EdgeKind.OPAQUE_REPEATED: ModuleKind.REPEATED_TARGET,
}


class ChainDirectives:
    """Generated functions for one field chain."""
    def __init__(self, chain: FieldChain, edge: EdgeKind, functions: List[str], lines: List[str], record_names: List[str]):
        self.chain = chain
        self.edge = edge
        self.functions = functions
        self.lines = lines
        self.record_names = record_names

    @property
    def has_add(self) -> bool:
        return self.chain.terminal.is_repeated

    def __repr__(self):
        return f"ChainDirectives({self.chain.path_name!r}, edge={self.edge.value!r}, functions={self.functions!r})"


class AccessorGenerator:
    def __init__(self, graph: DefinitionGraph, classifier: TreeClassifier,
                 request_module: Optional[Callable[[str, ModuleKind], object]] = None):
        self.graph = graph
        self.classifier = classifier
        self.request_module = request_module

    def flatten(self, base: str) -> List[tuple]:
        """(FieldChain, EdgeKind) pairs for every terminal chain of `base`, in field order."""
        result = []
        self._walk(base, self.graph.fields_of(base), [], result)
        return result

    def generate(self, base: str) -> List[ChainDirectives]:
        return [self.render(chain, edge) for chain, edge in self.flatten(base)]

    def _walk(self, base: str, fields: Sequence[Field], parents: List[Field], result: list):
        visited = [base] + [p.type.name for p in parents]
        for field in fields:
            edge = self.classifier.classify(base, field)
            if edge is EdgeKind.INLINE and field.type.name in visited:
                edge = EdgeKind.OPAQUE_SINGLE
            if edge is EdgeKind.INLINE:
                self._walk(base, self.graph.fields_of(field.type.name), [field] + parents, result)
                continue
            if edge in OPAQUE_MODULE_KINDS:
                target = field.type.name
                # Circular types already get a module as a root
                if self.request_module is not None and not self.classifier.is_circular(target):
                    self.request_module(target, OPAQUE_MODULE_KINDS[edge])
            result.append((FieldChain(base, [field] + parents), edge))

    # --- Rendering ---
    def render(self, chain: FieldChain, edge: EdgeKind) -> ChainDirectives:
        names = _ChainNames(chain)
        lines = [names.comment]
        lines += self._render_get(chain, names)
        lines.append("")
        lines.append("")
        lines.append(names.comment)
        lines += self._render_set(chain, names)
        functions = [f"{chain.path_name}_get", f"{chain.path_name}_set"]
        if chain.terminal.is_repeated:
            lines.append("")
            lines.append("")
            lines.append(names.comment)
            lines += self._render_add(chain, names)
            functions.append(f"{chain.path_name}_add")
        records = [record_class_name(t) for t in chain.node_types()]
        if chain.terminal.type.is_message:
            records.append(record_class_name(chain.terminal.type.name))
        return ChainDirectives(chain, edge, functions, lines, records)

    def _render_get(self, chain: FieldChain, names: "_ChainNames") -> List[str]:
        terminal = chain.terminal
        absent = "[]" if terminal.is_repeated else "None"
        body = []
        for i, attr in enumerate(names.attrs):
            parent, node = names.nodes[i], names.nodes[i + 1]
            body.append(f"{node} = {parent}.{attr}")
            body.append(f"if {node} is None:")
            body.append(f"    return {absent}")
        holder = names.nodes[-1]
        if terminal.is_repeated:
            body.append(f"{names.terminal} = {holder}.{names.terminal_attr}")
            body.append(f"return [] if {names.terminal} is None else {names.terminal}")
        else:
            body.append(f"return {holder}.{names.terminal_attr}")
        return [f"def {chain.path_name}_get({names.root}):"] + indent(body)

    def _render_set(self, chain: FieldChain, names: "_ChainNames") -> List[str]:
        guard = guard_for(chain.terminal.type, chain.terminal.occurrence)
        body = [
            f"if value is not None and not ({guard.render('value')}):",
            f"    return InvalidArgument(\"{chain.path_name}_set\", value)",
        ]
        body += self._descend_lazily(chain, names)
        body += self._rebuild(names, "value")
        return [f"def {chain.path_name}_set({names.root}, value):"] + indent(body)

    def _render_add(self, chain: FieldChain, names: "_ChainNames") -> List[str]:
        element = chain.terminal.stripped()
        guard = guard_for(element.type, element.occurrence)
        body = [
            f"if not ({guard.render('value')}):",
            f"    return InvalidArgument(\"{chain.path_name}_add\", value)",
        ]
        body += self._descend_lazily(chain, names)
        current = names.terminal
        body.append(f"{current} = {names.nodes[-1]}.{names.terminal_attr}")
        body.append(f"{current} = [value] if {current} is None else [value] + list({current})")
        body += self._rebuild(names, current)
        return [f"def {chain.path_name}_add({names.root}, value):"] + indent(body)

    @staticmethod
    def _descend_lazily(chain: FieldChain, names: "_ChainNames") -> List[str]:
        lines = []
        for i, attr in enumerate(names.attrs):
            parent, node = names.nodes[i], names.nodes[i + 1]
            lines.append(f"{node} = {parent}.{attr}")
            lines.append(f"if {node} is None:")
            lines.append(f"    {node} = {names.classes[i]}()")
        return lines

    @staticmethod
    def _rebuild(names: "_ChainNames", terminal_expr: str) -> List[str]:
        lines = []
        child_attr, child_expr = names.terminal_attr, terminal_expr
        for i in range(len(names.nodes) - 1, 0, -1):
            node = names.nodes[i]
            lines.append(f"{node} = replace({node}, {child_attr}={child_expr})")
            child_attr, child_expr = names.attrs[i - 1], node
        lines.append(f"return replace({names.nodes[0]}, {child_attr}={child_expr})")
        return lines


class _ChainNames:
    """Local variable, attribute and class names used in one chain's functions."""
    def __init__(self, chain: FieldChain):
        ancestors = chain.ancestors
        self.attrs = [attribute_name(f.name) for f in ancestors]
        self.classes = [record_class_name(f.type.name) for f in ancestors]
        self.terminal_attr = attribute_name(chain.terminal.name)
        taken = set(RESERVED_LOCALS) | set(self.classes)
        if chain.terminal.type.is_message:
            taken.add(record_class_name(chain.terminal.type.name))
        self.root = unique_names([variable_name(chain.root)], taken)[0]
        taken.add(self.root)
        locals_ = unique_names(self.attrs + [self.terminal_attr], taken)
        self.nodes = [self.root] + locals_[:-1]
        self.terminal = locals_[-1]
        self.comment = f"# {chain.owner} {{ {chain.terminal.declaration()} }}"
