"""
Record module generator.
Emits the `<schema>_pb` module the binding modules import: one frozen dataclass per
message type (every field defaults to unset, i.e. None) and the `encode_msg`/`decode_msg`
entry points, which hand the actual wire work to the registered codec runtime.
"""
import datetime
from typing import List, Optional, Sequence, Union

from model import DefinitionGraph, Field, INTEGER_TYPES, MessageDef, ScalarType, TypeKind
from generators.generator_utils import (
    GENERATOR_VERSION, INDENT, attribute_name, record_class_name,
)
from generators.module_emitter import GENERATED_BY_PREFIX, HEADER_LINE

PY_SCALAR_TYPE = {
    ScalarType.BOOL: "bool",
    ScalarType.FLOAT: "float",
    ScalarType.DOUBLE: "float",
    ScalarType.STRING: "str",
    ScalarType.BYTES: "bytes",
}


def get_python_type(field: Field) -> str:
    """Annotation for a record attribute."""
    field_type = field.type
    if field_type.kind is TypeKind.MESSAGE:
        py_type = record_class_name(field_type.name)
    elif field_type.kind is TypeKind.ENUM:
        py_type = "str"
    elif field_type.scalar_type in INTEGER_TYPES:
        py_type = "int"
    else:
        py_type = PY_SCALAR_TYPE[field_type.scalar_type]
    if field.is_repeated:
        py_type = f"List[{py_type}]"
    return f"Optional[{py_type}]"


def generate_records_code(
    graph: DefinitionGraph,
    schema_name: str,
    codec_options: Sequence[str] = (),
    generated_on: Optional[Union[datetime.datetime, str]] = None,
) -> str:
    if generated_on is None:
        generated_on = datetime.datetime.now()
    if isinstance(generated_on, datetime.datetime):
        generated_on = generated_on.strftime("%Y-%m-%d %H:%M:%S")

    lines = [
        HEADER_LINE,
        f"{GENERATED_BY_PREFIX}{GENERATOR_VERSION} on {generated_on}",
        f'"""Records for {schema_name}."""',
        "",
        "from __future__ import annotations",
        "",
        "from dataclasses import dataclass, field as _field",
        "from typing import List, Optional",
        "",
        "from bind_runtime import codec_runtime",
        "",
        f"CODEC_OPTIONS = {list(codec_options)!r}",
    ]
    for msg in graph.messages():
        lines.append("")
        lines.append("")
        lines.extend(_emit_record(msg))

    lines += ["", "", "RECORDS = {"]
    lines.extend(f'{INDENT}"{msg.name}": {record_class_name(msg.name)},' for msg in graph.messages())
    lines.append("}")
    lines += [
        "",
        "",
        "def encode_msg(msg, opts=None):",
        f"{INDENT}return codec_runtime().encode_msg(msg, CODEC_OPTIONS + list(opts or []))",
        "",
        "",
        "def decode_msg(data, msg_name, opts=None):",
        f"{INDENT}return codec_runtime().decode_msg(data, RECORDS[msg_name], CODEC_OPTIONS + list(opts or []))",
    ]
    return "\n".join(lines) + "\n"


def _emit_record(msg: MessageDef) -> List[str]:
    lines = [
        "@dataclass(frozen=True)",
        f"class {record_class_name(msg.name)}:",
    ]
    if not msg.fields:
        lines.append(f"{INDENT}pass")
        return lines
    for field in msg.fields:
        metadata = (
            f'{{"name": "{field.name}", "number": {field.number}, '
            f'"type": "{field.type.type_name}", "kind": "{field.type.kind.value}", '
            f'"occurrence": "{field.occurrence.value}"}}'
        )
        lines.append(
            f"{INDENT}{attribute_name(field.name)}: {get_python_type(field)} = _field(default=None, metadata={metadata})"
        )
    return lines
