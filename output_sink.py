"""
output_sink.py
Destinations for generated modules. A sink accepts each module once per generation pass;
what happens to files left over from earlier runs is up to the caller.
"""
import os
from typing import Dict, Tuple


class DestinationUnavailable(Exception):
    pass


class DirectorySink:
    """
    Writes modules below an existing base directory, one package subdirectory per kind
    of module (`pb/` for records, `pb_bind/` for bindings).
    """

    def __init__(self, base_dir: str):
        self.base_dir = base_dir
        self.written: Dict[Tuple[str, str], str] = {}

    def directory(self, subdir: str) -> str:
        if not os.path.isdir(self.base_dir):
            raise DestinationUnavailable(f"Output directory '{self.base_dir}' does not exist")
        path = os.path.join(self.base_dir, subdir)
        try:
            os.makedirs(path, exist_ok=True)
            init_file = os.path.join(path, "__init__.py")
            if not os.path.exists(init_file):
                with open(init_file, "w", encoding="utf-8"):
                    pass
        except OSError as exc:
            raise DestinationUnavailable(f"Cannot create '{path}': {exc}") from exc
        return path

    def write(self, subdir: str, module_name: str, source: str) -> str:
        key = (subdir, module_name)
        if key in self.written:
            raise DestinationUnavailable(f"Module '{subdir}.{module_name}' was already written in this pass")
        path = os.path.join(self.directory(subdir), f"{module_name}.py")
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(source)
        except OSError as exc:
            raise DestinationUnavailable(f"Cannot write '{path}': {exc}") from exc
        self.written[key] = path
        return path


class MemorySink:
    """Keeps generated sources in a dict keyed by (subdir, module name)."""

    def __init__(self):
        self.written: Dict[Tuple[str, str], str] = {}

    def write(self, subdir: str, module_name: str, source: str) -> str:
        key = (subdir, module_name)
        if key in self.written:
            raise DestinationUnavailable(f"Module '{subdir}.{module_name}' was already written in this pass")
        self.written[key] = source
        return f"{subdir}/{module_name}.py"
