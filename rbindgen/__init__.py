from .bindgen import (HEADER_COMMENT, BindgenOptions, Bindings, ParsedHeaders,
                      generate, parse_headers)
from .errors import BindgenError, HeaderParseError, UnknownTypeError

__all__ = [
    'BindgenError',
    'BindgenOptions',
    'Bindings',
    'HEADER_COMMENT',
    'HeaderParseError',
    'ParsedHeaders',
    'UnknownTypeError',
    'generate',
    'parse_headers',
]
