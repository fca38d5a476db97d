from .ctype import (ArrayType, BoolType, CType, FloatType, FuncSig,
                    FunctionType, IntType, NamedType, Param, PointerType,
                    UnknownType, VoidType, signature_dependencies,
                    strip_aliases, type_dependencies)
from .global_info import (CompInfo, EnumInfo, EnumItemInfo, FieldInfo,
                          FunctionInfo, Global, TypeAliasInfo, VarInfo)
from .kinds import DataType, FKind, IKind, Layout, SourceLoc, parse_ikind

__all__ = [
    'ArrayType',
    'BoolType',
    'CType',
    'CompInfo',
    'DataType',
    'EnumInfo',
    'EnumItemInfo',
    'FKind',
    'FieldInfo',
    'FloatType',
    'FuncSig',
    'FunctionInfo',
    'FunctionType',
    'Global',
    'IKind',
    'IntType',
    'Layout',
    'NamedType',
    'Param',
    'PointerType',
    'SourceLoc',
    'TypeAliasInfo',
    'UnknownType',
    'VarInfo',
    'VoidType',
    'parse_ikind',
    'signature_dependencies',
    'strip_aliases',
    'type_dependencies',
]
