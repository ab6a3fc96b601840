"""
model.py
Definition graph consumed by the binding generator. Message types are keyed by their
dot-qualified name, fields are resolved to scalar, enum or message types, and nothing
here is mutated once the schema front-end has built it.
"""
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple


class ScalarType(Enum):
    INT32 = "int32"
    INT64 = "int64"
    UINT32 = "uint32"
    UINT64 = "uint64"
    SINT32 = "sint32"
    SINT64 = "sint64"
    FIXED32 = "fixed32"
    FIXED64 = "fixed64"
    SFIXED32 = "sfixed32"
    SFIXED64 = "sfixed64"
    BOOL = "bool"
    FLOAT = "float"
    DOUBLE = "double"
    STRING = "string"
    BYTES = "bytes"


INTEGER_TYPES = frozenset([
    ScalarType.INT32, ScalarType.INT64, ScalarType.UINT32, ScalarType.UINT64,
    ScalarType.SINT32, ScalarType.SINT64, ScalarType.FIXED32, ScalarType.FIXED64,
    ScalarType.SFIXED32, ScalarType.SFIXED64,
])

UNSIGNED_TYPES = frozenset([ScalarType.UINT32, ScalarType.UINT64])

SCALAR_NAMES = {t.value: t for t in ScalarType}


class Occurrence(Enum):
    REQUIRED = "required"
    OPTIONAL = "optional"
    REPEATED = "repeated"


class TypeKind(Enum):
    SCALAR = "scalar"
    ENUM = "enum"
    MESSAGE = "message"


def name_segments(name: str) -> List[str]:
    """Split a qualified name into its lexical nesting segments."""
    return [part for part in name.split(".") if part]


class FieldType:
    """
    Tagged variant for the type of a field. Exactly one of `scalar_type` or `name` is set,
    depending on `kind`. Use the `scalar`, `enum` and `message` constructors.
    """
    __slots__ = ("kind", "scalar_type", "name")

    def __init__(self, kind: TypeKind, scalar_type: Optional[ScalarType] = None, name: Optional[str] = None):
        self.kind = kind
        self.scalar_type = scalar_type
        self.name = name

    @classmethod
    def scalar(cls, scalar_type: ScalarType) -> "FieldType":
        return cls(TypeKind.SCALAR, scalar_type=scalar_type)

    @classmethod
    def enum(cls, name: str) -> "FieldType":
        return cls(TypeKind.ENUM, name=name)

    @classmethod
    def message(cls, name: str) -> "FieldType":
        return cls(TypeKind.MESSAGE, name=name)

    @property
    def is_message(self) -> bool:
        return self.kind is TypeKind.MESSAGE

    @property
    def type_name(self) -> str:
        """Name as it appears in a field declaration (`int32`, `Company.Job`, ...)."""
        if self.kind is TypeKind.SCALAR:
            return self.scalar_type.value
        return self.name

    def _key(self):
        return (self.kind, self.scalar_type, self.name)

    def __eq__(self, other):
        if not isinstance(other, FieldType):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        if self.kind is TypeKind.SCALAR:
            return f"FieldType.scalar({self.scalar_type.value!r})"
        return f"FieldType.{self.kind.value}({self.name!r})"


class Field:
    __slots__ = ("name", "type", "occurrence", "number")

    def __init__(self, name: str, type: FieldType, occurrence: Occurrence = Occurrence.OPTIONAL, number: int = 0):
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "type", type)
        object.__setattr__(self, "occurrence", occurrence)
        object.__setattr__(self, "number", number)

    def __setattr__(self, key, value):
        raise AttributeError(f"Field is immutable (tried to set {key!r})")

    @property
    def is_repeated(self) -> bool:
        return self.occurrence is Occurrence.REPEATED

    def stripped(self) -> "Field":
        """Same field without its repeated qualifier, describing a single element."""
        return Field(self.name, self.type, Occurrence.OPTIONAL, self.number)

    def declaration(self) -> str:
        """Render the field the way it is written in the schema source."""
        return f"{self.occurrence.value} {self.type.type_name} {self.name} = {self.number};"

    def _key(self):
        return (self.name, self.type, self.occurrence, self.number)

    def __eq__(self, other):
        if not isinstance(other, Field):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return f"Field({self.declaration()!r})"


class MessageDef:
    def __init__(self, name: str, fields: Iterable[Field] = ()):
        self.name = name
        self.fields: Tuple[Field, ...] = tuple(fields)

    def __repr__(self):
        return f"MessageDef(name={self.name!r}, fields={list(self.fields)!r})"


class DefinitionGraph:
    """
    Ordered mapping from qualified message name to its MessageDef. Iteration follows
    definition order, which the generator relies on for reproducible output.
    """
    def __init__(self, messages: Iterable[MessageDef] = (), enums: Optional[Dict[str, List[str]]] = None, package: Optional[str] = None):
        self._messages: Dict[str, MessageDef] = {}
        for msg in messages:
            if msg.name in self._messages:
                raise ValueError(f"Duplicate message definition '{msg.name}'")
            self._messages[msg.name] = msg
        self.enums: Dict[str, List[str]] = dict(enums or {})
        self.package = package

    def __contains__(self, name) -> bool:
        return name in self._messages

    def __getitem__(self, name: str) -> MessageDef:
        return self._messages[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def get(self, name: str) -> Optional[MessageDef]:
        return self._messages.get(name)

    def names(self) -> List[str]:
        return list(self._messages)

    def messages(self) -> List[MessageDef]:
        return list(self._messages.values())

    def fields_of(self, name: str) -> Tuple[Field, ...]:
        """Fields of a message type; unknown names have none."""
        msg = self._messages.get(name)
        return msg.fields if msg is not None else ()

    @classmethod
    def from_dict(cls, definitions: Dict[str, List[Field]], **kwargs) -> "DefinitionGraph":
        return cls([MessageDef(name, fields) for name, fields in definitions.items()], **kwargs)


class FieldChain:
    """
    One access path from a root type to a terminal field, stored innermost-first:
    `fields[0]` is the terminal field and `fields[-1]` the field declared on the root.
    """
    def __init__(self, root: str, fields: Iterable[Field]):
        self.root = root
        self.fields: Tuple[Field, ...] = tuple(fields)
        if not self.fields:
            raise ValueError("A field chain needs at least one field")

    @property
    def terminal(self) -> Field:
        return self.fields[0]

    @property
    def ancestors(self) -> Tuple[Field, ...]:
        """Inlined message fields between the root and the terminal, root-to-leaf."""
        return tuple(reversed(self.fields[1:]))

    @property
    def path(self) -> Tuple[Field, ...]:
        return tuple(reversed(self.fields))

    @property
    def path_name(self) -> str:
        return "_".join(f.name for f in self.path)

    @property
    def owner(self) -> str:
        """Message type that declares the terminal field."""
        if len(self.fields) == 1:
            return self.root
        return self.fields[1].type.name

    def node_types(self) -> List[str]:
        """Message types visited along the chain, root first, terminal excluded."""
        return [self.root] + [f.type.name for f in self.ancestors]

    def __len__(self):
        return len(self.fields)

    def __eq__(self, other):
        if not isinstance(other, FieldChain):
            return NotImplemented
        return self.root == other.root and self.fields == other.fields

    def __hash__(self):
        return hash((self.root, self.fields))

    def __repr__(self):
        return f"FieldChain(root={self.root!r}, path={self.path_name!r})"


class ModuleKind(Enum):
    ROOT = "root"
    OPAQUE = "opaque"
    REPEATED_TARGET = "repeated-target"
    CYCLE_JOIN = "cycle-join"


class ModuleRecord:
    def __init__(self, identity: str, type_name: str, kind: ModuleKind):
        self.identity = identity
        self.type_name = type_name
        self.kind = kind
        self.emitted = False

    def __repr__(self):
        return f"ModuleRecord(identity={self.identity!r}, kind={self.kind.value!r}, emitted={self.emitted})"
