from rbindgen.c_types import (CompInfo, EnumInfo, EnumItemInfo, FieldInfo,
                              FuncSig, FunctionInfo, IKind, IntType, NamedType,
                              Param, SourceLoc, TypeAliasInfo, VarInfo)
from rbindgen.logging import CollectingLogger
from rbindgen.resolver import NameResolver, sanitize, unique

LOC = SourceLoc('test.h', 1, 1)
INT = IntType(IKind.INT)


def _anon_struct(key, scope, index, is_union=False):
    comp = CompInfo(key, '', LOC, is_union=is_union, is_anonymous=True)
    comp.anon_scope = scope
    comp.anon_index = index
    return comp


def test_sanitize_and_unique():
    assert sanitize('type') == 'type_'
    assert sanitize('_') == '__'
    assert sanitize('value') == 'value'
    taken = {'a'}
    assert unique('a', taken) == 'a_1'
    assert unique('a', taken) == 'a_2'
    assert unique('b', taken) == 'b'


def test_tag_prefixes_and_plain_names():
    point = CompInfo('c:@S@point', 'point', LOC, is_union=False)
    value = CompInfo('c:@U@value', 'value', LOC, is_union=True)
    color = EnumInfo('c:@E@color', 'color', LOC)
    alias = TypeAliasInfo('c:@T@point_t', 'point_t', LOC)
    alias.fill(NamedType(point))
    func = FunctionInfo('c:@F@area', 'area', LOC, FuncSig(INT))
    resolver = NameResolver([point, value, color, alias, func])
    assert resolver.resolve(point) == 'Struct_point'
    assert resolver.resolve(value) == 'Union_value'
    assert resolver.resolve(color) == 'Enum_color'
    assert resolver.resolve(alias) == 'point_t'
    assert resolver.resolve(func) == 'area'


def test_anonymous_names_use_scope_and_counter():
    first = _anon_struct('k1', 'outer', 1)
    second = _anon_struct('k2', 'outer', 2, is_union=True)
    resolver = NameResolver([first, second])
    assert resolver.resolve(first) == 'Struct_outer_1'
    assert resolver.resolve(second) == 'Union_outer_2'


def test_typedef_named_anonymous_struct_takes_typedef_name():
    comp = CompInfo('c:@SA@pair_t', '', LOC, is_union=False, is_anonymous=True)
    comp.typedef_name = 'pair_t'
    alias = TypeAliasInfo('c:@T@pair_t', 'pair_t', LOC)
    alias.fill(NamedType(comp))
    resolver = NameResolver([comp, alias])
    assert resolver.resolve(comp) == 'pair_t'
    assert resolver.is_redundant(alias)
    assert resolver.resolve(alias) == 'pair_t'


def test_collision_suffixes_synthesized_names_and_warns():
    # a typedef already claims the name the anonymous struct would get
    alias = TypeAliasInfo('c:@T@Struct_outer_1', 'Struct_outer_1', LOC)
    alias.fill(INT)
    anon = _anon_struct('k1', 'outer', 1)
    logger = CollectingLogger()
    resolver = NameResolver([anon, alias], logger)
    assert resolver.resolve(alias) == 'Struct_outer_1'
    assert resolver.resolve(anon) == 'Struct_outer_1_1'
    assert len(logger.warnings) == 1


def test_types_and_values_have_separate_namespaces():
    alias = TypeAliasInfo('c:@T@status', 'status', LOC)
    alias.fill(INT)
    func = FunctionInfo('c:@F@status', 'status', LOC, FuncSig(INT))
    resolver = NameResolver([alias, func])
    assert resolver.resolve(alias) == 'status'
    assert resolver.resolve(func) == 'status'


def test_keywords_and_value_collisions():
    func = FunctionInfo('c:@F@type', 'type', LOC, FuncSig(INT))
    enum = EnumInfo('c:@E@mode', 'mode', LOC)
    enum.fill([EnumItemInfo('counter', 0), EnumItemInfo('match', 1)], IKind.UINT)
    var = VarInfo('c:@counter', 'counter', LOC, INT)
    resolver = NameResolver([func, enum, var])
    assert resolver.resolve(func) == 'type_'
    assert resolver.constant_name(enum, enum.items[0]) == 'counter'
    assert resolver.constant_name(enum, enum.items[1]) == 'match_'
    assert resolver.resolve(var) == 'counter_1'


def test_field_names():
    comp = CompInfo('c:@S@s', 's', LOC, is_union=False)
    comp.fill([
        FieldInfo('type', INT, None, 0),
        FieldInfo('', INT, None, 32),
        FieldInfo('', INT, None, 64),
        FieldInfo('_anon1', INT, None, 96),
    ], None)
    resolver = NameResolver([comp])
    assert resolver.field_names(comp) == ['type_', '_anon1', '_anon2', '_anon1_1']


def test_param_names():
    sig = FuncSig(INT, (Param('', INT), Param('self', INT), Param('arg1', INT)))
    assert NameResolver.param_names(sig) == ['arg1_1', 'self_', 'arg1']


def test_resolution_is_deterministic():
    def build():
        return [_anon_struct(f'k{i}', 'outer', i) for i in range(1, 4)]

    first = [NameResolver(build()).resolve(n) for n in build()]
    second = [NameResolver(build()).resolve(n) for n in build()]
    assert first == second == ['Struct_outer_1', 'Struct_outer_2', 'Struct_outer_3']
