from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator, Union

from .kinds import FKind, IKind, Layout

if TYPE_CHECKING:
    from .global_info import Global


@dataclass(frozen=True)
class VoidType:
    pass


@dataclass(frozen=True)
class BoolType:
    pass


@dataclass(frozen=True)
class IntType:
    kind: IKind


@dataclass(frozen=True)
class FloatType:
    kind: FKind


@dataclass(frozen=True)
class PointerType:
    pointee: CType
    is_const: bool = False


@dataclass(frozen=True)
class ArrayType:
    element: CType
    length: int | None
    # elements are const-qualified
    is_const: bool = False


@dataclass(frozen=True)
class Param:
    name: str
    type: CType


@dataclass(frozen=True)
class FuncSig:
    ret: CType
    params: tuple[Param, ...] = ()
    is_variadic: bool = False
    abi: str = "C"


@dataclass(frozen=True)
class FunctionType:
    sig: FuncSig


@dataclass(frozen=True)
class NamedType:
    # Globals compare by identity key, so two NamedTypes of the same
    # declaration are equal even when reached through different cursors.
    target: Global


@dataclass(frozen=True)
class UnknownType:
    spelling: str
    layout: Layout | None = None


CType = Union[
    VoidType,
    BoolType,
    IntType,
    FloatType,
    PointerType,
    ArrayType,
    FunctionType,
    NamedType,
    UnknownType,
]


def type_dependencies(ty: CType, by_value: bool = True) -> Iterator[tuple[Global, bool]]:
    """Yield the Globals ``ty`` refers to with whether it embeds them by value."""
    match ty:
        case NamedType(target=target):
            yield target, by_value
        case PointerType(pointee=pointee):
            yield from type_dependencies(pointee, False)
        case ArrayType(element=element):
            yield from type_dependencies(element, by_value)
        case FunctionType(sig=sig):
            yield from signature_dependencies(sig)
        case _:
            return


def signature_dependencies(sig: FuncSig) -> Iterator[tuple[Global, bool]]:
    yield from type_dependencies(sig.ret, False)
    for param in sig.params:
        yield from type_dependencies(param.type, False)


def strip_aliases(ty: CType) -> CType:
    """Follow typedef chains down to the first non-alias type."""
    from .global_info import TypeAliasInfo

    seen = set()
    while isinstance(ty, NamedType) and isinstance(ty.target, TypeAliasInfo):
        if ty.target.key in seen:
            break
        seen.add(ty.target.key)
        ty = ty.target.aliased
    return ty
