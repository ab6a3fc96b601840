# proto_file_loader.py
# Builds a DefinitionGraph from .proto files, resolving imports against include paths.
import os
from typing import Dict, List, Optional, Sequence

from lark import Token, Tree
from lark.exceptions import UnexpectedInput

from lark_parser import parse_proto
from model import DefinitionGraph, Field, FieldType, MessageDef, Occurrence, SCALAR_NAMES
from namespace_resolver import resolve_reference_hierarchically


class SchemaCompileError(Exception):
    pass


class _RawField:
    def __init__(self, name: str, type_name: str, label: Optional[str], number: int, line: int):
        self.name = name
        self.type_name = type_name
        self.label = label
        self.number = number
        self.line = line


class _RawMessage:
    def __init__(self, name: str, file: str, line: int):
        self.name = name
        self.file = file
        self.line = line
        self.fields: List[_RawField] = []


def _full_ident(node: Tree) -> str:
    return ".".join(str(tok) for tok in node.children)


def _type_ref(node: Tree) -> str:
    inner = node.children[0]
    if inner.data == "absolute_ref":
        return "." + _full_ident(inner.children[0])
    return _full_ident(inner)


def _unquote(token: Token) -> str:
    return str(token)[1:-1]


def _tokens(node: Tree, token_type: str) -> List[Token]:
    return [c for c in node.children if isinstance(c, Token) and c.type == token_type]


def _line(node: Tree) -> int:
    return getattr(node.meta, "line", -1) if hasattr(node, "meta") else -1


class ProtoFileLoader:
    """
    Loads a .proto file (and everything it imports) into a DefinitionGraph.
    Raises SchemaCompileError for syntax errors, missing imports, duplicate definitions
    and unresolved type names.
    """

    def __init__(self, include_paths: Optional[Sequence[str]] = None, verbose: bool = False):
        """
        Args:
            include_paths: Directories searched for imported files, after the importing file's directory
            verbose: Whether to print debug information (default: False)
        """
        self.include_paths = list(include_paths or [])
        self.verbose = verbose
        self._reset()

    def _reset(self):
        self._messages: Dict[str, _RawMessage] = {}
        self._enums: Dict[str, List[str]] = {}
        self._packages: List[str] = []
        self._loaded: set = set()

    def debug_print(self, message: str) -> None:
        if self.verbose:
            print(f"[DEBUG] {message}")

    def load_file(self, path: str) -> DefinitionGraph:
        self._reset()
        if not os.path.isfile(path):
            raise SchemaCompileError(f"Input file '{path}' does not exist.")
        package = self._load_path(os.path.abspath(path))
        return self._build_graph(package)

    def load_text(self, text: str, source_name: str = "<string>", base_dir: Optional[str] = None) -> DefinitionGraph:
        self._reset()
        package = self._load(text, source_name, base_dir or os.getcwd())
        return self._build_graph(package)

    # --- Loading ---
    def _load_path(self, path: str) -> Optional[str]:
        self._loaded.add(path)
        self.debug_print(f"Loading schema file '{path}'")
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as exc:
            raise SchemaCompileError(f"Cannot read '{path}': {exc}") from exc
        return self._load(text, path, os.path.dirname(path))

    def _load(self, text: str, file: str, base_dir: str) -> Optional[str]:
        try:
            tree = parse_proto(text)
        except UnexpectedInput as exc:
            raise SchemaCompileError(f"{file}:{exc.line}:{exc.column}: syntax error") from exc

        package = None
        for node in tree.children:
            if not isinstance(node, Tree):
                continue
            if node.data == "package":
                package = _full_ident(node.children[0])
                if package not in self._packages:
                    self._packages.append(package)
            elif node.data == "import_stmt":
                self._import(_unquote(_tokens(node, "STRING")[0]), file, base_dir)
            elif node.data == "message":
                self._walk_message(node, "", file)
            elif node.data == "enum_def":
                self._walk_enum(node, "", file)
            else:
                self.debug_print(f"Ignoring top-level '{node.data}' in {file}")
        return package

    def _import(self, name: str, importer: str, base_dir: str):
        for directory in [base_dir] + self.include_paths:
            candidate = os.path.abspath(os.path.join(directory, name))
            if os.path.isfile(candidate):
                if candidate in self._loaded:
                    self.debug_print(f"Import '{name}' already loaded")
                    return
                self._load_path(candidate)
                return
        raise SchemaCompileError(f"{importer}: import '{name}' not found in {[base_dir] + self.include_paths}")

    def _declare(self, name: str, file: str, line: int):
        if name in self._messages or name in self._enums:
            raise SchemaCompileError(f"{file}:{line}: '{name}' is already defined")

    def _walk_message(self, node: Tree, scope: str, file: str):
        local = str(_tokens(node, "NAME")[0])
        name = f"{scope}.{local}" if scope else local
        self._declare(name, file, _line(node))
        msg = _RawMessage(name, file, _line(node))
        self._messages[name] = msg

        for child in node.children:
            if not isinstance(child, Tree):
                continue
            if child.data == "field":
                msg.fields.append(self._raw_field(child, msg))
            elif child.data == "message":
                self._walk_message(child, name, file)
            elif child.data == "enum_def":
                self._walk_enum(child, name, file)

    def _raw_field(self, node: Tree, msg: _RawMessage) -> _RawField:
        labels = _tokens(node, "LABEL")
        type_node = next(c for c in node.children if isinstance(c, Tree) and c.data == "type_ref")
        field = _RawField(
            name=str(_tokens(node, "NAME")[0]),
            type_name=_type_ref(type_node),
            label=str(labels[0]) if labels else None,
            number=int(_tokens(node, "INT")[0]),
            line=_line(node),
        )
        for existing in msg.fields:
            if existing.name == field.name:
                raise SchemaCompileError(f"{msg.file}:{field.line}: duplicate field '{field.name}' in '{msg.name}'")
            if existing.number == field.number:
                raise SchemaCompileError(f"{msg.file}:{field.line}: field number {field.number} reused in '{msg.name}'")
        return field

    def _walk_enum(self, node: Tree, scope: str, file: str):
        local = str(_tokens(node, "NAME")[0])
        name = f"{scope}.{local}" if scope else local
        self._declare(name, file, _line(node))
        self._enums[name] = [
            str(_tokens(child, "NAME")[0])
            for child in node.children
            if isinstance(child, Tree) and child.data == "enum_value"
        ]

    # --- Resolution ---
    def _resolve(self, raw: _RawField, msg: _RawMessage) -> FieldType:
        if raw.type_name in SCALAR_NAMES:
            return FieldType.scalar(SCALAR_NAMES[raw.type_name])
        known = set(self._messages) | set(self._enums)
        resolved = resolve_reference_hierarchically(raw.type_name, msg.name, known, self._packages)
        if resolved is None:
            raise SchemaCompileError(
                f"{msg.file}:{raw.line}: unknown type '{raw.type_name}' for field '{raw.name}' in '{msg.name}'"
            )
        self.debug_print(f"Resolved '{raw.type_name}' in '{msg.name}' to '{resolved}'")
        if resolved in self._enums:
            return FieldType.enum(resolved)
        return FieldType.message(resolved)

    def _build_graph(self, package: Optional[str]) -> DefinitionGraph:
        messages = []
        for msg in self._messages.values():
            fields = []
            for raw in msg.fields:
                occurrence = Occurrence(raw.label) if raw.label else Occurrence.OPTIONAL
                fields.append(Field(raw.name, self._resolve(raw, msg), occurrence, raw.number))
            messages.append(MessageDef(msg.name, fields))
        return DefinitionGraph(messages, enums=self._enums, package=package)


def load_proto_file(path: str, include_paths: Optional[Sequence[str]] = None, verbose: bool = False) -> DefinitionGraph:
    return ProtoFileLoader(include_paths, verbose).load_file(path)
