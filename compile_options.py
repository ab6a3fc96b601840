"""
compile_options.py
Options for one compile: forwarded to the schema front-end (include paths) and to the
generators (output location, codec options, record package). Environment variables
override values given on the command line.
"""
import datetime
import os
from typing import List, Mapping, Optional, Sequence, Union

ENV_INPUT_FILE = "PB_BIND_INPUT_FILE"
ENV_OUTPUT_DIR = "PB_BIND_OUTPUT_DIR"
ENV_INCLUDE_PATH = "PB_BIND_INCLUDE_PATH"
ENV_VERBOSE = "PB_BIND_VERBOSE"

TRUE_VALUES = ("1", "true", "yes", "on")


class CompileOptions:
    def __init__(
        self,
        include_paths: Optional[Sequence[str]] = None,
        output_dir: Optional[str] = None,
        codec_options: Optional[Sequence[str]] = None,
        records_package: str = "pb",
        verbose: bool = False,
        generated_on: Optional[Union[datetime.datetime, str]] = None,
    ):
        """
        Args:
            include_paths: Directories searched for imported schema files
            output_dir: Base directory for generated packages (default: the schema's directory)
            codec_options: Flags passed through to the codec runtime on every encode/decode
            records_package: Package the binding modules import record classes from
            verbose: Whether to print debug information (default: False)
            generated_on: Timestamp written into generated headers (default: now)
        """
        self.include_paths: List[str] = list(include_paths or [])
        self.output_dir = output_dir
        self.codec_options: List[str] = list(codec_options or [])
        self.records_package = records_package
        self.verbose = verbose
        self.generated_on = generated_on

    def output_dir_for(self, schema_path: str) -> str:
        if self.output_dir:
            return self.output_dir
        return os.path.dirname(os.path.abspath(schema_path))

    def __repr__(self):
        return (
            f"CompileOptions(include_paths={self.include_paths!r}, output_dir={self.output_dir!r}, "
            f"codec_options={self.codec_options!r}, records_package={self.records_package!r}, verbose={self.verbose!r})"
        )


def apply_environment(options: CompileOptions, environ: Optional[Mapping[str, str]] = None) -> CompileOptions:
    """Override options from PB_BIND_* environment variables."""
    environ = os.environ if environ is None else environ
    if environ.get(ENV_OUTPUT_DIR):
        options.output_dir = environ[ENV_OUTPUT_DIR]
    if environ.get(ENV_INCLUDE_PATH):
        options.include_paths = [p for p in environ[ENV_INCLUDE_PATH].split(os.pathsep) if p]
    if ENV_VERBOSE in environ:
        options.verbose = environ[ENV_VERBOSE].strip().lower() in TRUE_VALUES
    return options
