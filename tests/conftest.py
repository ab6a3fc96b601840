import sys
import os
import importlib
from tempfile import TemporaryDirectory
import pytest
# Ensure the project root is on sys.path for all tests
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import bind_runtime

GENERATED_PACKAGES = ("pb", "pb_bind")


def _forget_generated_modules():
    for name in list(sys.modules):
        if name in GENERATED_PACKAGES or name.startswith(tuple(p + "." for p in GENERATED_PACKAGES)):
            del sys.modules[name]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with TemporaryDirectory() as dir_path:
        yield dir_path


@pytest.fixture
def import_generated(temp_dir):
    """Import generated packages written below temp_dir; they are unloaded afterwards."""
    _forget_generated_modules()
    sys.path.insert(0, temp_dir)
    importlib.invalidate_caches()

    def load(module_name):
        return importlib.import_module(module_name)

    yield load
    sys.path.remove(temp_dir)
    _forget_generated_modules()


class RecordingCodec:
    """Codec stand-in that records what the generated modules hand to it."""

    def __init__(self):
        self.encoded = []
        self.decoded = []

    def encode_msg(self, msg, opts):
        self.encoded.append((msg, opts))
        return b"encoded"

    def decode_msg(self, data, record_class, opts):
        self.decoded.append((data, record_class, opts))
        return record_class()


@pytest.fixture
def codec():
    recording = RecordingCodec()
    previous = bind_runtime.register_codec(recording)
    yield recording
    bind_runtime.register_codec(previous)
