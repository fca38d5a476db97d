import os
import re

from clang import cindex
from clang.cindex import Cursor, CursorKind, TypeKind

from rbindgen import logging as rbindgen_logging
from rbindgen.c_types import (ArrayType, BoolType, CompInfo, CType, EnumInfo,
                              EnumItemInfo, FieldInfo, FKind, FloatType,
                              FuncSig, FunctionInfo, FunctionType, Global,
                              IKind, IntType, Layout, NamedType, Param,
                              PointerType, SourceLoc, TypeAliasInfo,
                              UnknownType, VarInfo, VoidType)
from rbindgen.errors import UnknownTypeError

logger = rbindgen_logging.get_logger(__name__)

# Declarations the compiler provides without any header.
BUILTIN_NAMES = frozenset({
    "__va_list_tag",
    "__va_list",
    "__builtin_va_list",
})

_INT_KINDS = {
    TypeKind.CHAR_S: IKind.CHAR,
    TypeKind.CHAR_U: IKind.CHAR,
    TypeKind.SCHAR: IKind.SCHAR,
    TypeKind.UCHAR: IKind.UCHAR,
    TypeKind.SHORT: IKind.SHORT,
    TypeKind.USHORT: IKind.USHORT,
    TypeKind.INT: IKind.INT,
    TypeKind.UINT: IKind.UINT,
    TypeKind.LONG: IKind.LONG,
    TypeKind.ULONG: IKind.ULONG,
    TypeKind.LONGLONG: IKind.LONGLONG,
    TypeKind.ULONGLONG: IKind.ULONGLONG,
}

_FLOAT_KINDS = {
    TypeKind.FLOAT: FKind.FLOAT,
    TypeKind.DOUBLE: FKind.DOUBLE,
}

_UNSIZED_ARRAY_KINDS = (
    TypeKind.INCOMPLETEARRAY,
    TypeKind.VARIABLEARRAY,
    TypeKind.DEPENDENTSIZEDARRAY,
)

# CXCallingConv values mapped to Rust ABI strings.
_CALLING_CONVENTIONS = {
    0: "C",
    1: "C",
    2: "stdcall",
    3: "fastcall",
    4: "thiscall",
    6: "aapcs",
    7: "C",
    10: "win64",
    11: "sysv64",
}

_ANONYMOUS_SPELLING = re.compile(r"\((unnamed|anonymous)\b.*\bat\b")
# USR of an unnamed tag that a typedef names, e.g. c:@SA@pair_t
_TYPEDEF_NAMED_USR = re.compile(r"@[SUE]A@[^@]+$")


def is_anonymous_cursor(cursor: Cursor) -> bool:
    spelling = cursor.spelling or ""
    if not spelling or _ANONYMOUS_SPELLING.search(spelling):
        return True
    # newer libclang spells such tags with the typedef name
    if cursor.kind in (CursorKind.STRUCT_DECL, CursorKind.UNION_DECL, CursorKind.ENUM_DECL):
        return bool(_TYPEDEF_NAMED_USR.search(cursor.get_usr() or ""))
    return False


def source_loc(cursor: Cursor) -> SourceLoc:
    location = cursor.location
    if location is None or location.file is None:
        return SourceLoc(None)
    return SourceLoc(location.file.name, location.line, location.column)


def layout_of(ty: cindex.Type) -> Layout | None:
    size = ty.get_size()
    align = ty.get_align()
    # libclang reports incomplete/dependent types with negative error codes
    if size < 0 or align < 0:
        return None
    return Layout(size, align)


def direct_tag_declaration(ty: cindex.Type) -> Cursor | None:
    """The record/enum declaration ``ty`` names directly, ignoring elaboration."""
    while ty.kind == TypeKind.ELABORATED:
        ty = ty.get_named_type()
    if ty.kind in (TypeKind.RECORD, TypeKind.ENUM):
        return ty.get_declaration()
    return None


def _file_scope_name(location: SourceLoc) -> str:
    if location.file is None:
        return "builtin"
    stem = os.path.splitext(os.path.basename(location.file))[0]
    stem = re.sub(r"[^0-9A-Za-z_]", "_", stem)
    if not stem or stem[0].isdigit():
        stem = f"file_{stem}"
    return stem


class TypeRegistry:
    """Turns libclang declarations into the canonical, cycle-safe Global graph.

    Every struct/union/enum/typedef is registered as a placeholder keyed by
    its USR before its body is resolved, so a field that points back at a
    node still being filled receives a reference to that placeholder instead
    of recursing.
    """

    def __init__(
        self,
        logger=None,
        *,
        fail_on_unknown_type: bool = False,
        override_enum_ty: IKind | None = None,
    ):
        self.logger = logger if logger is not None else rbindgen_logging.NullLogger()
        self.fail_on_unknown_type = fail_on_unknown_type
        self.override_enum_ty = override_enum_ty

        self._globals: dict[str, Global] = {}
        self._filling: set[str] = set()
        # enclosing declarations, innermost last; None for anonymous ones
        # (name, key) of each enclosing declaration; name is None while unnamed
        self._scopes: list[tuple[str | None, str]] = []
        self._anon_counters: dict[str, int] = {}
        self._locations: list[SourceLoc] = []

    def globals(self) -> list[Global]:
        """All registered nodes in registration order."""
        return list(self._globals.values())

    def get(self, key: str) -> Global | None:
        return self._globals.get(key)

    def __len__(self):
        return len(self._globals)

    def register(self, cursor: Cursor) -> Global:
        """Register a top-level declaration; idempotent per declaration identity.

        Raises ValueError for cursors that are not declarations of interest.
        """
        kind = cursor.kind
        if kind in (CursorKind.STRUCT_DECL, CursorKind.UNION_DECL):
            return self._register_comp(cursor)
        if kind == CursorKind.ENUM_DECL:
            return self._register_enum(cursor)
        if kind == CursorKind.TYPEDEF_DECL:
            return self._register_typedef(cursor)
        if kind == CursorKind.FUNCTION_DECL:
            return self._register_function(cursor)
        if kind == CursorKind.VAR_DECL:
            return self._register_var(cursor)
        raise ValueError(f"Cannot register cursor of kind {kind} ({cursor.spelling})")

    def resolve_type(self, ty: cindex.Type, decl: Cursor | None = None) -> CType:
        """Map a libclang type onto the canonical model.

        ``decl`` is the declaration the type was spelled in; it supplies
        parameter names for function types.
        """
        kind = ty.kind
        if kind == TypeKind.VOID:
            return VoidType()
        if kind == TypeKind.BOOL:
            return BoolType()
        if kind in _INT_KINDS:
            return IntType(_INT_KINDS[kind])
        if kind in _FLOAT_KINDS:
            return FloatType(_FLOAT_KINDS[kind])
        if kind == TypeKind.POINTER:
            pointee = ty.get_pointee()
            return PointerType(self.resolve_type(pointee, decl), pointee.is_const_qualified())
        if kind == TypeKind.CONSTANTARRAY:
            element = ty.element_type
            return ArrayType(self.resolve_type(element, decl), ty.element_count, element.is_const_qualified())
        if kind in _UNSIZED_ARRAY_KINDS:
            element = ty.element_type
            return ArrayType(self.resolve_type(element, decl), None, element.is_const_qualified())
        if kind in (TypeKind.FUNCTIONPROTO, TypeKind.FUNCTIONNOPROTO):
            return FunctionType(self._resolve_signature(ty, decl))
        if kind == TypeKind.TYPEDEF:
            return NamedType(self._register_typedef(ty.get_declaration()))
        if kind == TypeKind.RECORD:
            return NamedType(self._register_comp(ty.get_declaration()))
        if kind == TypeKind.ENUM:
            return NamedType(self._register_enum(ty.get_declaration()))
        if kind == TypeKind.ELABORATED:
            return self.resolve_type(ty.get_named_type(), decl)

        # Remaining sugar (attributes, unexposed wrappers) resolves through
        # the canonical type.
        canonical = ty.get_canonical()
        if canonical.kind != kind:
            return self.resolve_type(canonical, decl)
        return self._unknown(ty)

    ######## Unknown types ########
    def _unknown(self, ty: cindex.Type) -> UnknownType:
        spelling = ty.spelling
        where = str(self._locations[-1]) if self._locations else None
        if self.fail_on_unknown_type:
            raise UnknownTypeError(spelling, where)
        self.logger.warn(
            f"Unknown type '{spelling}'{f' at {where}' if where else ''}; using an opaque placeholder"
        )
        return UnknownType(spelling, layout_of(ty))

    ######## Identity & naming ########
    @staticmethod
    def _decl_key(cursor: Cursor) -> str:
        usr = cursor.get_usr()
        if usr:
            return usr
        return f"{cursor.kind.name}:{source_loc(cursor)}:{cursor.spelling}"

    def _name_anonymous(self, node: Global, typedef_name: str | None) -> None:
        if typedef_name:
            node.typedef_name = typedef_name
            return
        # counters belong to the enclosing declaration, not to its spelling
        scope, counter = next(((name, key) for name, key in reversed(self._scopes) if name), (None, None))
        if scope is None:
            scope = _file_scope_name(node.location)
            counter = f"file:{node.location.file}"
        index = self._anon_counters.get(counter, 0) + 1
        self._anon_counters[counter] = index
        node.anon_scope = scope
        node.anon_index = index

    @staticmethod
    def _scope_name(node: Global) -> str | None:
        if not node.is_anonymous:
            return node.name
        return node.typedef_name

    def _enter(self, scope: str | None, key: str, location: SourceLoc) -> None:
        self._scopes.append((scope, key))
        self._locations.append(location)

    def _leave(self) -> None:
        self._scopes.pop()
        self._locations.pop()

    def _register_tag(self, cursor: Cursor, typedef_name: str | None = None) -> Global:
        if cursor.kind == CursorKind.ENUM_DECL:
            return self._register_enum(cursor, typedef_name)
        return self._register_comp(cursor, typedef_name)

    ######## Aggregates ########
    def _register_comp(self, cursor: Cursor, typedef_name: str | None = None) -> CompInfo:
        key = self._decl_key(cursor)
        comp = self._globals.get(key)
        definition = cursor.get_definition()
        if comp is None:
            anonymous = is_anonymous_cursor(cursor)
            comp = CompInfo(
                key,
                "" if anonymous else cursor.spelling,
                source_loc(definition if definition is not None else cursor),
                is_union=cursor.kind == CursorKind.UNION_DECL,
                is_anonymous=anonymous,
            )
            if anonymous:
                self._name_anonymous(comp, typedef_name)
            self._globals[key] = comp
            logger.debug("Registered %r", comp)
        elif comp.is_anonymous and typedef_name and not comp.typedef_name:
            comp.typedef_name = typedef_name

        if comp.is_complete or key in self._filling or definition is None:
            return comp

        comp.location = source_loc(definition)
        self._filling.add(key)
        self._enter(self._scope_name(comp), key, comp.location)
        try:
            fields = self._collect_fields(definition)
            layout = layout_of(definition.type)
            comp.fill(fields, layout, _is_packed(fields, layout))
        finally:
            self._leave()
            self._filling.discard(key)
        return comp

    def _collect_fields(self, definition: Cursor) -> list[FieldInfo]:
        fields = []
        for field in definition.type.get_fields():
            width = field.get_bitfield_width() if field.is_bitfield() else None
            if width == 0:
                # zero-width bit-fields only influence the offsets we already have
                continue
            name = "" if is_anonymous_cursor(field) else field.spelling
            bit_offset = field.get_field_offsetof()
            fields.append(FieldInfo(
                name,
                self.resolve_type(field.type, field),
                width,
                bit_offset if bit_offset >= 0 else 0,
                layout_of(field.type),
            ))
        return fields

    ######## Enums ########
    def _register_enum(self, cursor: Cursor, typedef_name: str | None = None) -> EnumInfo:
        key = self._decl_key(cursor)
        node = self._globals.get(key)
        definition = cursor.get_definition()
        if node is None:
            anonymous = is_anonymous_cursor(cursor)
            node = EnumInfo(
                key,
                "" if anonymous else cursor.spelling,
                source_loc(definition if definition is not None else cursor),
                is_anonymous=anonymous,
            )
            if anonymous:
                self._name_anonymous(node, typedef_name)
            self._globals[key] = node
            logger.debug("Registered %r", node)
        elif node.is_anonymous and typedef_name and not node.typedef_name:
            node.typedef_name = typedef_name

        if node.is_complete or definition is None:
            return node

        node.location = source_loc(definition)
        items = [
            EnumItemInfo(child.spelling, child.enum_value)
            for child in definition.get_children()
            if child.kind == CursorKind.ENUM_CONSTANT_DECL
        ]
        inferred = _INT_KINDS.get(definition.enum_type.get_canonical().kind)
        if inferred is None:
            self.logger.warn(
                f"Enum {node.c_name} has non-integer underlying type "
                f"'{definition.enum_type.spelling}'; assuming unsigned int"
            )
            inferred = IKind.UINT
        node.fill(items, inferred, self.override_enum_ty)
        return node

    ######## Typedefs ########
    def _register_typedef(self, cursor: Cursor) -> TypeAliasInfo:
        key = self._decl_key(cursor)
        alias = self._globals.get(key)
        if alias is not None:
            return alias

        alias = TypeAliasInfo(key, cursor.spelling, source_loc(cursor))
        self._globals[key] = alias
        underlying = cursor.underlying_typedef_type
        tag = direct_tag_declaration(underlying)

        self._enter(alias.name, alias.key, alias.location)
        try:
            if tag is not None and is_anonymous_cursor(tag):
                aliased = NamedType(self._register_tag(tag, typedef_name=alias.name))
            else:
                aliased = self.resolve_type(underlying, cursor)
        finally:
            self._leave()
        alias.fill(aliased)
        return alias

    ######## Functions & variables ########
    def _resolve_signature(self, fn_type: cindex.Type, decl: Cursor | None) -> FuncSig:
        ret = self.resolve_type(fn_type.get_result())
        if fn_type.kind != TypeKind.FUNCTIONPROTO:
            return FuncSig(ret, (), False, self._abi(fn_type))

        names = _param_names(decl)
        arg_types = list(fn_type.argument_types())
        if len(names) != len(arg_types):
            names = [""] * len(arg_types)
        params = tuple(
            Param(name, self.resolve_type(arg_type))
            for name, arg_type in zip(names, arg_types)
        )
        return FuncSig(ret, params, fn_type.is_function_variadic(), self._abi(fn_type))

    def _abi(self, fn_type: cindex.Type) -> str:
        calling_conv = cindex.conf.lib.clang_getFunctionTypeCallingConv(fn_type)
        abi = _CALLING_CONVENTIONS.get(calling_conv)
        if abi is None:
            where = str(self._locations[-1]) if self._locations else "<unknown>"
            self.logger.warn(f"Unsupported calling convention {calling_conv} at {where}; using \"C\"")
            abi = "C"
        return abi

    def _register_function(self, cursor: Cursor) -> FunctionInfo:
        key = self._decl_key(cursor)
        func = self._globals.get(key)
        if func is not None:
            return func

        location = source_loc(cursor)
        self._enter(cursor.spelling, key, location)
        try:
            sig = self._resolve_signature(cursor.type, cursor)
        finally:
            self._leave()
        func = FunctionInfo(key, cursor.spelling, location, sig, link_name=cursor.spelling)
        self._globals[key] = func
        logger.debug("Registered %r", func)
        return func

    def _register_var(self, cursor: Cursor) -> VarInfo:
        key = self._decl_key(cursor)
        var = self._globals.get(key)
        if var is not None:
            return var

        location = source_loc(cursor)
        self._enter(cursor.spelling, key, location)
        try:
            resolved = self.resolve_type(cursor.type, cursor)
        finally:
            self._leave()
        var = VarInfo(key, cursor.spelling, location, resolved, _is_const_type(cursor.type))
        self._globals[key] = var
        logger.debug("Registered %r", var)
        return var


def _param_names(decl: Cursor | None) -> list[str]:
    if decl is None:
        return []
    if decl.kind == CursorKind.FUNCTION_DECL:
        return [arg.spelling for arg in decl.get_arguments()]
    return [child.spelling for child in decl.get_children() if child.kind == CursorKind.PARM_DECL]


def _is_const_type(ty: cindex.Type) -> bool:
    if ty.is_const_qualified():
        return True
    if ty.kind in (TypeKind.CONSTANTARRAY, *_UNSIZED_ARRAY_KINDS):
        return _is_const_type(ty.element_type)
    return False


def _is_packed(fields: list[FieldInfo], layout: Layout | None) -> bool:
    aligned = [f for f in fields if not f.is_bitfield and f.layout is not None and f.layout.align > 1]
    if any(f.offset % f.layout.align for f in aligned):
        return True
    if layout is not None and aligned:
        return layout.align < max(f.layout.align for f in aligned)
    return False
