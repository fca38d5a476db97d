from rbindgen.c_types import (ArrayType, BoolType, CType, EnumInfo, FKind,
                              FloatType, FuncSig, FunctionType, IKind, IntType,
                              NamedType, PointerType, UnknownType, VoidType,
                              strip_aliases)

RAW = "::std::os::raw"
C_VOID = f"{RAW}::c_void"

_INT_NAMES = {
    IKind.CHAR: "c_char",
    IKind.SCHAR: "c_schar",
    IKind.UCHAR: "c_uchar",
    IKind.SHORT: "c_short",
    IKind.USHORT: "c_ushort",
    IKind.INT: "c_int",
    IKind.UINT: "c_uint",
    IKind.LONG: "c_long",
    IKind.ULONG: "c_ulong",
    IKind.LONGLONG: "c_longlong",
    IKind.ULONGLONG: "c_ulonglong",
}

_FLOAT_NAMES = {
    FKind.FLOAT: "c_float",
    FKind.DOUBLE: "c_double",
}


def int_type(kind: IKind) -> str:
    return f"{RAW}::{_INT_NAMES[kind]}"


def float_type(kind: FKind) -> str:
    return f"{RAW}::{_FLOAT_NAMES[kind]}"


def is_void(ty: CType) -> bool:
    return isinstance(strip_aliases(ty), VoidType)


def is_function(ty: CType) -> bool:
    return isinstance(strip_aliases(ty), FunctionType)


def integer_kind(ty: CType) -> IKind | None:
    """The integer kind behind ``ty``, looking through typedefs and enums."""
    ty = strip_aliases(ty)
    if isinstance(ty, IntType):
        return ty.kind
    if isinstance(ty, NamedType) and isinstance(ty.target, EnumInfo):
        return ty.target.kind
    return None


class TypeMapper:
    """Spells canonical C types as Rust FFI types."""

    def __init__(self, resolver):
        self.resolver = resolver

    def field_type(self, ty: CType) -> str:
        match ty:
            case VoidType():
                return C_VOID
            case BoolType():
                return "bool"
            case IntType(kind=kind):
                return int_type(kind)
            case FloatType(kind=kind):
                return float_type(kind)
            case PointerType():
                return self.pointer_type(ty)
            case ArrayType(element=element, length=length):
                return f"[{self.field_type(element)}; {length if length is not None else 0}]"
            case FunctionType(sig=sig):
                return self.fn_type(sig)
            case NamedType(target=target):
                return self.resolver.resolve(target)
            case UnknownType(layout=layout):
                if layout is not None and layout.size > 0:
                    return f"[u8; {layout.size}]"
                return C_VOID
        raise TypeError(f"Cannot map {ty!r} to a Rust type")

    def pointer_type(self, ty: PointerType) -> str:
        pointee = ty.pointee
        if isinstance(pointee, FunctionType):
            return f"Option<{self.fn_type(pointee.sig)}>"
        if is_function(pointee):
            # pointer to a typedef of a function type
            return f"Option<{self.field_type(pointee)}>"
        return f"*{'const' if ty.is_const else 'mut'} {self.field_type(pointee)}"

    def param_type(self, ty: CType) -> str:
        # arrays and functions decay to pointers when passed, typedefs included
        decayed = strip_aliases(ty)
        if isinstance(decayed, ArrayType):
            return self.pointer_type(PointerType(decayed.element, decayed.is_const))
        if is_function(ty):
            return self.pointer_type(PointerType(ty))
        return self.field_type(ty)

    def return_type(self, ty: CType) -> str | None:
        if is_void(ty):
            return None
        return self.field_type(ty)

    def fn_type(self, sig: FuncSig) -> str:
        names = self.resolver.param_names(sig)
        args = [f"{name}: {self.param_type(p.type)}" for name, p in zip(names, sig.params)]
        if sig.is_variadic:
            args.append("...")
        ret = self.return_type(sig.ret)
        arrow = f" -> {ret}" if ret else ""
        return f'unsafe extern "{sig.abi}" fn({", ".join(args)}){arrow}'
