"""
bind_runtime.py
Support code imported by generated binding and record modules: the InvalidArgument
result returned by accessors, and the hook through which a wire codec is plugged in.
"""
from typing import Any, Optional


class InvalidArgument:
    """
    Returned (not raised) by a generated `_set`/`_add` function when the value does not
    pass the field's guard. The root passed to the accessor is left as it was.
    """
    __slots__ = ("accessor", "value")

    def __init__(self, accessor: str, value: Any):
        self.accessor = accessor
        self.value = value

    def __bool__(self):
        return False

    def __eq__(self, other):
        if not isinstance(other, InvalidArgument):
            return NotImplemented
        return self.accessor == other.accessor and self.value == other.value

    def __hash__(self):
        return hash((self.accessor, repr(self.value)))

    def __repr__(self):
        return f"InvalidArgument(accessor={self.accessor!r}, value={self.value!r})"


def is_invalid(result: Any) -> bool:
    return isinstance(result, InvalidArgument)


class CodecUnavailable(Exception):
    pass


_codec = None


def register_codec(codec: Any) -> Optional[Any]:
    """
    Install the object that performs wire encoding for generated record modules. It must
    provide `encode_msg(record, opts)` and `decode_msg(data, record_class, opts)`.
    Returns the previously registered codec, if any.
    """
    global _codec
    previous = _codec
    _codec = codec
    return previous


def codec_runtime() -> Any:
    if _codec is None:
        raise CodecUnavailable("No codec runtime registered; call bind_runtime.register_codec() first")
    return _codec
