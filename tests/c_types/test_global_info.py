import pytest

from rbindgen.c_types import (ArrayType, CompInfo, DataType, EnumInfo,
                              EnumItemInfo, FieldInfo, FuncSig, FunctionInfo, FunctionType,
                              IKind, IntType, Layout, NamedType, Param,
                              PointerType, SourceLoc, TypeAliasInfo, VarInfo,
                              VoidType, strip_aliases)

LOC = SourceLoc("test.h", 1, 1)


def _struct(name, key=None):
    return CompInfo(key or f"c:@S@{name}", name, LOC, is_union=False)


def test_globals_compare_by_key():
    first = _struct("point")
    second = CompInfo("c:@S@point", "point", SourceLoc("other.h", 9, 1), is_union=False)
    assert first == second
    assert hash(first) == hash(second)
    assert NamedType(first) == NamedType(second)
    assert first != _struct("line")


def test_comp_is_filled_once():
    comp = _struct("point")
    assert not comp.is_complete
    assert comp.fields == ()

    fields = [FieldInfo("x", IntType(IKind.INT), None, 0, Layout(4, 4))]
    comp.fill(fields, Layout(4, 4))
    assert comp.is_complete
    assert comp.fields[0].name == "x"
    assert comp.data_type == DataType.STRUCT

    with pytest.raises(RuntimeError):
        comp.fill(fields, Layout(4, 4))


def test_union_data_type():
    assert CompInfo("c:@U@u", "u", LOC, is_union=True).data_type == DataType.UNION


def test_field_offsets_and_bitfields():
    plain = FieldInfo("x", IntType(IKind.INT), None, 64)
    bits = FieldInfo("flag", IntType(IKind.UINT), 3, 5)
    assert plain.offset == 8
    assert not plain.is_bitfield
    assert bits.is_bitfield
    assert bits.offset == 0


def test_dependencies_distinguish_pointers_from_values():
    inner = _struct("inner")
    other = _struct("other")
    outer = _struct("outer")
    outer.fill([
        FieldInfo("value", NamedType(inner), None, 0),
        FieldInfo("link", PointerType(NamedType(other)), None, 64),
        FieldInfo("many", ArrayType(NamedType(inner), 2), None, 128),
    ], None)
    assert outer.dependencies() == [(inner, True), (other, False), (inner, True)]


def test_function_dependencies_never_by_value():
    point = _struct("point")
    sig = FuncSig(NamedType(point), (Param("p", NamedType(point)),))
    func = FunctionInfo("c:@F@f", "f", LOC, sig)
    assert func.dependencies() == [(point, False), (point, False)]
    assert func.link_name == "f"
    assert func.data_type == DataType.FUNCTION


def test_enum_fill_and_override():
    enum = EnumInfo("c:@E@color", "color", LOC)
    enum.fill([EnumItemInfo("RED", 0)], IKind.UINT, IKind.UCHAR)
    assert enum.inferred_kind is IKind.UINT
    assert enum.kind is IKind.UCHAR
    with pytest.raises(RuntimeError):
        enum.fill([], IKind.INT)


def test_alias_is_unresolved_until_filled():
    alias = TypeAliasInfo("c:@T@fn_t", "fn_t", LOC)
    with pytest.raises(RuntimeError):
        alias.aliased
    assert alias.dependencies() == []
    alias.fill(FunctionType(FuncSig(VoidType())))
    assert alias.is_complete


def test_strip_aliases_follows_chains():
    base = TypeAliasInfo("c:@T@a", "a", LOC)
    base.fill(IntType(IKind.INT))
    outer = TypeAliasInfo("c:@T@b", "b", LOC)
    outer.fill(NamedType(base))
    assert strip_aliases(NamedType(outer)) == IntType(IKind.INT)


def test_anonymous_c_name():
    comp = CompInfo("c:anon", "", LOC, is_union=False, is_anonymous=True)
    comp.anon_scope = "outer"
    comp.anon_index = 2
    assert comp.c_name == "outer_2"
    comp.typedef_name = "pair_t"
    assert comp.c_name == "pair_t"
    assert repr(comp) == "CompInfo(pair_t)"


def test_var_info():
    var = VarInfo("c:@counter", "counter", LOC, IntType(IKind.INT), is_const=True)
    assert var.is_const
    assert var.data_type == DataType.VARIABLE
    assert var.dependencies() == []
