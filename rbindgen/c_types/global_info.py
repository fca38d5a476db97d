from __future__ import annotations

from dataclasses import dataclass

from .ctype import CType, FuncSig, signature_dependencies, type_dependencies
from .kinds import DataType, IKind, Layout, SourceLoc


class Global:
    """One canonical node per distinct C declaration identity.

    ``key`` is the front end's identity for the declaration (its USR); two
    Globals are equal exactly when their keys are.
    """

    data_type: DataType

    def __init__(self, key: str, name: str, location: SourceLoc):
        self.key = key
        self.name = name
        self.location = location
        self.is_anonymous = False
        # Anonymous declarations are named after their nearest enclosing named
        # declaration plus a counter scoped to it, unless a typedef names them.
        self.anon_scope: str | None = None
        self.anon_index: int | None = None
        self.typedef_name: str | None = None

    @property
    def c_name(self) -> str:
        """Best human-readable C name, used in diagnostics."""
        if not self.is_anonymous:
            return self.name
        if self.typedef_name:
            return self.typedef_name
        return f"{self.anon_scope}_{self.anon_index}"

    def dependencies(self) -> list[tuple[Global, bool]]:
        return []

    def __hash__(self):
        return hash(self.key)

    def __eq__(self, other):
        return isinstance(other, Global) and self.key == other.key

    def __repr__(self):
        return f"{type(self).__name__}({self.c_name})"


@dataclass(frozen=True)
class FieldInfo:
    name: str
    type: CType
    bit_width: int | None
    bit_offset: int
    layout: Layout | None = None

    @property
    def offset(self) -> int:
        return self.bit_offset // 8

    @property
    def is_bitfield(self) -> bool:
        return self.bit_width is not None


class CompInfo(Global):
    """A struct or union; a forward declaration until :meth:`fill` is called."""

    def __init__(self, key: str, name: str, location: SourceLoc, is_union: bool, is_anonymous: bool = False):
        super().__init__(key, name, location)
        self.is_union = is_union
        self.is_anonymous = is_anonymous
        self.data_type = DataType.UNION if is_union else DataType.STRUCT
        self._fields: tuple[FieldInfo, ...] | None = None
        self.layout: Layout | None = None
        self.is_packed = False

    @property
    def is_complete(self) -> bool:
        return self._fields is not None

    @property
    def fields(self) -> tuple[FieldInfo, ...]:
        return self._fields if self._fields is not None else ()

    @property
    def has_bitfields(self) -> bool:
        return any(field.is_bitfield for field in self.fields)

    def fill(self, fields, layout: Layout | None, is_packed: bool = False) -> None:
        """Complete the declaration. Raises RuntimeError if already filled."""
        if self._fields is not None:
            raise RuntimeError(f"{self!r} is already complete")
        self._fields = tuple(fields)
        self.layout = layout
        self.is_packed = is_packed

    def dependencies(self) -> list[tuple[Global, bool]]:
        deps = []
        for field in self.fields:
            deps.extend(type_dependencies(field.type))
        return deps


@dataclass(frozen=True)
class EnumItemInfo:
    name: str
    value: int


class EnumInfo(Global):
    data_type = DataType.ENUM

    def __init__(self, key: str, name: str, location: SourceLoc, is_anonymous: bool = False):
        super().__init__(key, name, location)
        self.is_anonymous = is_anonymous
        self._items: tuple[EnumItemInfo, ...] | None = None
        self.inferred_kind: IKind = IKind.UINT
        self.kind: IKind = IKind.UINT

    @property
    def is_complete(self) -> bool:
        return self._items is not None

    @property
    def items(self) -> tuple[EnumItemInfo, ...]:
        return self._items if self._items is not None else ()

    def fill(self, items, inferred_kind: IKind, kind: IKind | None = None) -> None:
        """Complete the enum; ``kind`` overrides the inferred representation."""
        if self._items is not None:
            raise RuntimeError(f"{self!r} is already complete")
        self._items = tuple(items)
        self.inferred_kind = inferred_kind
        self.kind = kind if kind is not None else inferred_kind


class TypeAliasInfo(Global):
    data_type = DataType.TYPE_ALIAS

    def __init__(self, key: str, name: str, location: SourceLoc):
        super().__init__(key, name, location)
        self._aliased: CType | None = None

    @property
    def is_complete(self) -> bool:
        return self._aliased is not None

    @property
    def aliased(self) -> CType:
        if self._aliased is None:
            raise RuntimeError(f"{self!r} is still being resolved")
        return self._aliased

    def fill(self, aliased: CType) -> None:
        if self._aliased is not None:
            raise RuntimeError(f"{self!r} is already complete")
        self._aliased = aliased

    def dependencies(self) -> list[tuple[Global, bool]]:
        if self._aliased is None:
            return []
        return list(type_dependencies(self._aliased))


class VarInfo(Global):
    data_type = DataType.VARIABLE

    def __init__(self, key: str, name: str, location: SourceLoc, ty: CType, is_const: bool = False):
        super().__init__(key, name, location)
        self.type = ty
        self.is_const = is_const

    def dependencies(self) -> list[tuple[Global, bool]]:
        return list(type_dependencies(self.type))


class FunctionInfo(Global):
    data_type = DataType.FUNCTION

    def __init__(self, key: str, name: str, location: SourceLoc, sig: FuncSig, link_name: str | None = None):
        super().__init__(key, name, location)
        self.sig = sig
        self.link_name = link_name if link_name else name

    @property
    def is_variadic(self) -> bool:
        return self.sig.is_variadic

    def dependencies(self) -> list[tuple[Global, bool]]:
        return list(signature_dependencies(self.sig))
