"""
namespace_resolver.py
Resolution of type names used in field declarations, following protobuf scoping: the
name is looked up in the declaring message's scope first, then in each enclosing scope.
"""
from typing import Collection, Iterable, Optional


def strip_package(ref_name: str, packages: Iterable[str]) -> str:
    """Drop a leading package qualifier; qualified names in the graph carry none."""
    for package in sorted(packages, key=len, reverse=True):
        if package and ref_name.startswith(package + "."):
            return ref_name[len(package) + 1:]
    return ref_name


def resolve_reference_hierarchically(ref_name: str, scope: str, known: Collection[str], packages: Iterable[str] = ()) -> Optional[str]:
    """
    Resolve a (possibly partially qualified) type name.
    - ref_name: name as written in the field declaration (e.g. 'Job', 'Company.Job', '.Company.Job')
    - scope: qualified name of the message declaring the field (e.g. 'Company')
    - known: qualified names of all messages and enums
    - packages: package names declared by the loaded files
    Returns the qualified name if found, else None.
    """
    packages = list(packages)
    # 1. Absolute reference
    if ref_name.startswith("."):
        name = strip_package(ref_name[1:], packages)
        return name if name in known else None
    # 2. Search up the scope hierarchy
    scope_parts = scope.split(".") if scope else []
    for i in range(len(scope_parts), -1, -1):
        candidate = ".".join(scope_parts[:i] + [ref_name])
        if candidate in known:
            return candidate
    # 3. Package-qualified reference
    stripped = strip_package(ref_name, packages)
    if stripped != ref_name and stripped in known:
        return stripped
    return None
