#!/usr/bin/env python3
"""
proto_bind

Generates Python binding modules for the message types of a .proto schema. Every root
message type gets a module with `new`, `encode`, `decode` and flattened accessors: nested
messages declared inside a root are reached through path-qualified `<path>_get`,
`<path>_set` and `<path>_add` functions that create missing intermediate records on write.

Usage:
    python proto_bind.py --input <schema.proto> [--output <dir>] [--include <dir>]...
                         [--codec-opt <flag>]... [--records-package <name>] [--verbose]

Arguments:
    --input, -i           : Path to the .proto schema
    --output, -o          : Existing directory receiving the pb/ and pb_bind/ packages
                            (default: the schema's directory)
    --include, -I         : Directory searched for imported schemas (repeatable)
    --codec-opt           : Flag passed through to the codec runtime (repeatable)
    --records-package     : Package binding modules import records from (default: pb)
    --verbose, -v         : Print debug information

Environment:
    PB_BIND_INPUT_FILE, PB_BIND_OUTPUT_DIR, PB_BIND_INCLUDE_PATH (os.pathsep separated)
    and PB_BIND_VERBOSE override the corresponding arguments.

Example:
    python proto_bind.py --input addressbook.proto --output ./generated -I ./protos
"""

import argparse
import datetime
import os
import sys
from typing import List, Optional

from compile_options import CompileOptions, ENV_INPUT_FILE, apply_environment
from model import DefinitionGraph
from output_sink import DestinationUnavailable, DirectorySink
from proto_file_loader import ProtoFileLoader, SchemaCompileError
from root_resolver import roots_with_kinds
from tree_classifier import TreeClassifier
from generators.generator_utils import (
    BINDINGS_SUBDIR, RECORDS_SUBDIR, module_identity, record_class_name, records_module_name,
)
from generators.module_emitter import GeneratedUnit, ModuleEmitter
from generators.records_generator import generate_records_code


class RecordModule:
    def __init__(self, identity: str, schema_name: str, source: str):
        self.identity = identity
        self.schema_name = schema_name
        self.source = source

    def __repr__(self):
        return f"RecordModule(identity={self.identity!r})"


class CompileResult:
    def __init__(self, graph: DefinitionGraph, records: RecordModule, units: List[GeneratedUnit], paths: Optional[List[str]] = None):
        self.graph = graph
        self.records = records
        self.units = units
        self.paths = paths or []

    @property
    def identities(self) -> List[str]:
        return [unit.identity for unit in self.units]

    def unit(self, identity: str) -> Optional[GeneratedUnit]:
        for unit in self.units:
            if unit.identity == identity:
                return unit
        return None


class BindingGenerator:
    """One generation pass over a DefinitionGraph. Create a new instance per pass."""

    def __init__(self, graph: DefinitionGraph, schema_name: str, options: Optional[CompileOptions] = None):
        self.graph = graph
        self.schema_name = schema_name
        self.options = options or CompileOptions()

    def debug_print(self, message: str) -> None:
        if self.options.verbose:
            print(f"[DEBUG] {message}")

    def check_name_clashes(self) -> None:
        """
        Message types whose record classes or module identities coincide cannot share one
        output directory (`A_B` and `A.B` both become class `A_B` and module `a_b`).

        Raises:
            SchemaCompileError: Two message types map to the same generated name
        """
        for describe, naming in (('record class', record_class_name), ('binding module', module_identity)):
            seen = {}
            for name in self.graph:
                generated = naming(name)
                if generated in seen:
                    raise SchemaCompileError(
                        f"Message types '{seen[generated]}' and '{name}' both map to {describe} '{generated}'"
                    )
                seen[generated] = name

    def generate(self):
        """Returns the record module and the binding modules, roots first in definition order."""
        self.check_name_clashes()
        generated_on = self.options.generated_on or datetime.datetime.now()
        records_name = records_module_name(self.schema_name)
        classifier = TreeClassifier(self.graph)
        emitter = ModuleEmitter(
            self.graph,
            records_name,
            classifier=classifier,
            records_package=self.options.records_package,
            generated_on=generated_on,
            verbose=self.options.verbose,
        )
        for name, kind in roots_with_kinds(self.graph, classifier):
            self.debug_print(f"Root '{name}' ({kind.value})")
            emitter.emit(name, kind)
        records = RecordModule(
            records_name,
            self.schema_name,
            generate_records_code(self.graph, self.schema_name, self.options.codec_options, generated_on),
        )
        return records, emitter.units


def write_units(sink, records: RecordModule, units: List[GeneratedUnit]) -> List[str]:
    paths = [sink.write(RECORDS_SUBDIR, records.identity, records.source)]
    for unit in units:
        paths.append(sink.write(BINDINGS_SUBDIR, unit.identity, unit.source))
    return paths


def compile_source(text: str, options: Optional[CompileOptions] = None, schema_name: str = "schema",
                   sink=None, base_dir: Optional[str] = None) -> CompileResult:
    """Compile schema text. Nothing is written unless a sink is given."""
    options = options or CompileOptions()
    loader = ProtoFileLoader(options.include_paths, options.verbose)
    graph = loader.load_text(text, f"{schema_name}.proto", base_dir)
    records, units = BindingGenerator(graph, schema_name, options).generate()
    paths = write_units(sink, records, units) if sink is not None else []
    return CompileResult(graph, records, units, paths)


def compile_file(schema_path: str, options: Optional[CompileOptions] = None, sink=None) -> CompileResult:
    """
    Compile a .proto file and write the record module and binding modules below the
    output directory (or into `sink`).

    Raises:
        SchemaCompileError: The schema could not be loaded
        DestinationUnavailable: The output directory is missing or rejected a write
    """
    options = options or CompileOptions()
    loader = ProtoFileLoader(options.include_paths, options.verbose)
    graph = loader.load_file(schema_path)
    schema_name = os.path.splitext(os.path.basename(schema_path))[0]
    records, units = BindingGenerator(graph, schema_name, options).generate()
    if sink is None:
        sink = DirectorySink(options.output_dir_for(schema_path))
    paths = write_units(sink, records, units)
    return CompileResult(graph, records, units, paths)


class BindingCompiler:
    """
    Runs a compile for the command line, reporting errors instead of raising them.
    """

    def __init__(self, input_file: str, options: CompileOptions):
        self.input_file = input_file
        self.options = options
        self.result: Optional[CompileResult] = None

    def run(self) -> bool:
        try:
            self.result = compile_file(self.input_file, self.options)
        except SchemaCompileError as exc:
            print(f"Error: {exc}")
            return False
        except DestinationUnavailable as exc:
            print(f"Error: {exc}")
            return False
        for path in self.result.paths:
            print(f"Wrote {path}")
        return True


def parse_arguments(argv=None):
    """
    Parse command line arguments.

    Returns:
        argparse.Namespace: Parsed command line arguments
    """
    parser = argparse.ArgumentParser(
        description="Generate Python accessor bindings for .proto message types",
        formatter_class=argparse.RawTextHelpFormatter
    )
    parser.add_argument('--input', '-i', required=True, help='Path to the .proto schema')
    parser.add_argument('--output', '-o', help='Existing directory for generated packages (default: schema directory)')
    parser.add_argument('--include', '-I', action='append', default=[], help='Directory searched for imports (repeatable)')
    parser.add_argument('--codec-opt', action='append', default=[], help='Flag passed through to the codec runtime (repeatable)')
    parser.add_argument('--records-package', default='pb', help='Package binding modules import records from')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable verbose output for debugging')
    return parser.parse_args(argv)


def main(argv=None):
    """
    Main entry point of the script.
    """
    args = parse_arguments(argv)
    options = CompileOptions(
        include_paths=args.include,
        output_dir=args.output,
        codec_options=args.codec_opt,
        records_package=args.records_package,
        verbose=args.verbose,
    )
    # Override with environment variables if set
    apply_environment(options)
    input_file = os.environ.get(ENV_INPUT_FILE, args.input)

    compiler = BindingCompiler(input_file, options)
    if compiler.run():
        print(f"Generated {len(compiler.result.units)} binding modules.")
    else:
        print("Binding generation completed with errors.")
        sys.exit(1)


if __name__ == '__main__':
    main()
