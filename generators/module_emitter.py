"""
Module emitter.
Turns a message type and its accessor directives into a binding module (constructor,
encode/decode entry points, chain accessors). Emission is tracked per generation pass so
that a type requested several times, or reached again through a cycle, is emitted once.
"""
import datetime
from typing import Dict, List, Optional, Union

from model import DefinitionGraph, ModuleKind, ModuleRecord
from tree_classifier import TreeClassifier
from generators.accessor_generator import AccessorGenerator, ChainDirectives
from generators.generator_utils import (
    GENERATOR_NAME, GENERATOR_VERSION, INDENT, module_identity, record_class_name, unique_names, variable_name,
)

HEADER_LINE = "# Automatically generated, do not edit"
GENERATED_BY_PREFIX = f"# Generated by {GENERATOR_NAME} version "


class GeneratedUnit:
    def __init__(self, identity: str, type_name: str, kind: ModuleKind, source: str, chains: List[ChainDirectives] = None):
        self.identity = identity
        self.type_name = type_name
        self.kind = kind
        self.source = source
        self.chains = chains or []

    @property
    def exports(self) -> List[str]:
        names = ["new", "encode", "decode"]
        for directives in self.chains:
            names.extend(directives.functions)
        return names

    def semantic_source(self) -> str:
        """Source without the generated-on line, for comparing two passes."""
        return "\n".join(line for line in self.source.splitlines() if not line.startswith(GENERATED_BY_PREFIX))

    def __repr__(self):
        return f"GeneratedUnit(identity={self.identity!r}, kind={self.kind.value!r}, chains={len(self.chains)})"


# Kinds assigned by the root resolver; they win over kinds from on-demand requests
RESOLVED_KINDS = frozenset([ModuleKind.ROOT, ModuleKind.CYCLE_JOIN])


class EmissionLedger:
    """ModuleRecords of one generation pass, keyed by message type, in request order."""
    def __init__(self):
        self.records: Dict[str, ModuleRecord] = {}

    def record_for(self, type_name: str, kind: ModuleKind) -> ModuleRecord:
        record = self.records.get(type_name)
        if record is None:
            record = ModuleRecord(module_identity(type_name), type_name, kind)
            self.records[type_name] = record
        elif kind in RESOLVED_KINDS and record.kind not in RESOLVED_KINDS:
            record.kind = kind
        return record

    def is_emitted(self, type_name: str) -> bool:
        record = self.records.get(type_name)
        return record is not None and record.emitted

    def emitted_identities(self) -> List[str]:
        return [r.identity for r in self.records.values() if r.emitted]


class ModuleEmitter:
    def __init__(
        self,
        graph: DefinitionGraph,
        records_module: str,
        classifier: Optional[TreeClassifier] = None,
        records_package: str = "pb",
        generated_on: Optional[Union[datetime.datetime, str]] = None,
        ledger: Optional[EmissionLedger] = None,
        verbose: bool = False,
    ):
        self.graph = graph
        self.records_module = records_module
        self.classifier = classifier or TreeClassifier(graph)
        self.records_package = records_package
        self.generated_on = generated_on
        self.ledger = ledger or EmissionLedger()
        self.verbose = verbose
        self._units: Dict[str, Optional[GeneratedUnit]] = {}

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(f"[DEBUG] {message}")

    @property
    def units(self) -> List[GeneratedUnit]:
        return [unit for unit in self._units.values() if unit is not None]

    def emit(self, type_name: str, kind: ModuleKind = ModuleKind.ROOT) -> Optional[GeneratedUnit]:
        """
        Generate the binding module for `type_name`. Returns None if the type is unknown
        or its module was already emitted in this pass.
        """
        if type_name not in self.graph:
            self.debug_print(f"Skipping module for unknown type '{type_name}'")
            return None
        record = self.ledger.record_for(type_name, kind)
        if record.emitted:
            unit = self._units.get(type_name)
            if unit is not None:
                unit.kind = record.kind
            self.debug_print(f"Module '{record.identity}' already emitted")
            return None
        record.emitted = True
        # Reserve the slot so that modules requested while flattening come after this one
        self._units[type_name] = None

        generator = AccessorGenerator(self.graph, self.classifier, request_module=self.emit)
        chains = generator.generate(type_name)
        self.debug_print(f"Emitting module '{record.identity}' ({record.kind.value}) with {len(chains)} chains")
        unit = GeneratedUnit(record.identity, type_name, record.kind, self.render(type_name, chains), chains)
        self._units[type_name] = unit
        return unit

    # --- Rendering ---
    def _timestamp(self) -> str:
        stamp = self.generated_on
        if stamp is None:
            stamp = datetime.datetime.now()
        if isinstance(stamp, datetime.datetime):
            return stamp.strftime("%Y-%m-%d %H:%M:%S")
        return str(stamp)

    def _records_import(self, names: List[str]) -> str:
        module = f"{self.records_package}.{self.records_module}" if self.records_package else self.records_module
        return f"from {module} import {', '.join(names)}"

    def render(self, type_name: str, chains: List[ChainDirectives]) -> str:
        record = record_class_name(type_name)
        var = unique_names([variable_name(type_name)], {"opts", "data", "encode_msg", "decode_msg", record})[0]
        records = {record}
        for directives in chains:
            records.update(directives.record_names)
        exports = ["new", "encode", "decode"]
        for directives in chains:
            exports.extend(directives.functions)

        lines = [
            HEADER_LINE,
            f"{GENERATED_BY_PREFIX}{GENERATOR_VERSION} on {self._timestamp()}",
            f'"""Bindings for {type_name} records."""',
            "",
        ]
        if chains:
            lines.append("from dataclasses import replace")
            lines.append("")
            lines.append("from bind_runtime import InvalidArgument")
        lines.append(self._records_import(sorted(records) + ["decode_msg", "encode_msg"]))
        lines.append("")
        lines.append("__all__ = [")
        lines.extend(f'{INDENT}"{name}",' for name in exports)
        lines.append("]")
        lines += [
            "",
            "",
            f"# Create new {var}.",
            "def new():",
            f"{INDENT}return {record}()",
            "",
            "",
            "# Record -> bytes.",
            f"def encode({var}, opts=None):",
            f"{INDENT}if opts is None:",
            f'{INDENT}{INDENT}opts = ["verify"]',
            f"{INDENT}return encode_msg({var}, opts)",
            "",
            "",
            "# Bytes -> record.",
            "def decode(data):",
            f'{INDENT}return decode_msg(data, "{type_name}")',
        ]
        for directives in chains:
            lines.append("")
            lines.append("")
            lines.extend(directives.lines)
        return "\n".join(lines) + "\n"
