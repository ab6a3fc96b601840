"""
Shared utilities for the record and binding generators.
Handles module/class/attribute naming and indentation of emitted source.
"""
import keyword
from typing import Iterable, List

from model import name_segments

GENERATOR_NAME = "protobind"
GENERATOR_VERSION = "0.1.5"

# Subdirectories (and packages) for record modules and binding modules
RECORDS_SUBDIR = "pb"
RECORDS_SUFFIX = "_pb"
BINDINGS_SUBDIR = "pb_bind"

INDENT = "    "


# --- Name Resolution ---
def module_identity(name: str) -> str:
    """
    Module name for a message type: dot segments joined with underscores, lowercased.
    `Company.Job` becomes `company_job`, so nested types sharing a leaf name under
    different parents do not collide.
    """
    return "_".join(name_segments(name)).lower()


def records_module_name(schema_name: str) -> str:
    return module_identity(schema_name + RECORDS_SUFFIX)


def record_class_name(name: str) -> str:
    """Class name of the record for a message type (`Company.Job` -> `Company_Job`)."""
    return "_".join(name_segments(name))


def attribute_name(field_name: str) -> str:
    """Record attribute for a field; Python keywords get a trailing underscore."""
    if keyword.iskeyword(field_name):
        return field_name + "_"
    return field_name


def variable_name(name: str) -> str:
    """Local variable for the last segment of a qualified name (`Company.Job` -> `job`)."""
    last = name_segments(name)[-1]
    chars = []
    for i, ch in enumerate(last):
        if ch.isupper() and i > 0 and not last[i - 1].isupper():
            chars.append("_")
        chars.append(ch.lower())
    return attribute_name("".join(chars))


def unique_names(wanted: Iterable[str], reserved: Iterable[str] = ()) -> List[str]:
    """Make each wanted name distinct from the reserved ones and from each other."""
    taken = set(reserved)
    result = []
    for name in wanted:
        candidate = name
        n = 1
        while candidate in taken:
            n += 1
            candidate = f"{name}{n}"
        taken.add(candidate)
        result.append(candidate)
    return result


# --- Source Assembly ---
def indent(lines: Iterable[str], level: int = 1) -> List[str]:
    prefix = INDENT * level
    return [prefix + line if line else line for line in lines]
