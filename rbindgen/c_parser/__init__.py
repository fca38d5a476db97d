from .c_parser import CParser, parse, split_inputs
from .type_registry import BUILTIN_NAMES, TypeRegistry

__all__ = [
    'BUILTIN_NAMES',
    'CParser',
    'TypeRegistry',
    'parse',
    'split_inputs',
]
