from rbindgen.emitter import (ConstItem, ExternBlock, ExternFn, ExternStatic,
                              FieldDecl, ImplItem, StructItem, TypeAliasItem)


def test_alias_and_const():
    assert TypeAliasItem('point_t', 'Struct_point').render() == 'pub type point_t = Struct_point;'
    assert ConstItem('RED', 'Enum_color', '0').render() == 'pub const RED: Enum_color = 0;'


def test_struct_rendering():
    item = StructItem('Struct_point', [
        FieldDecl('x', '::std::os::raw::c_int'),
        FieldDecl('_pad1', '[u8; 4]', is_pub=False),
    ])
    assert item.render() == '\n'.join([
        '#[repr(C)]',
        '#[derive(Copy, Clone)]',
        'pub struct Struct_point {',
        '    pub x: ::std::os::raw::c_int,',
        '    _pad1: [u8; 4],',
        '}',
    ])


def test_empty_union_and_repr_attributes():
    item = StructItem('Union_empty', [], is_union=True, repr=('C', 'align(8)'), derives=())
    assert item.render() == '#[repr(C, align(8))]\npub union Union_empty {}'


def test_impl_rendering():
    item = ImplItem('Struct_point', [['fn a() {}'], ['fn b() {', '', '}']], trait='Default')
    assert item.render() == '\n'.join([
        'impl Default for Struct_point {',
        '    fn a() {}',
        '',
        '    fn b() {',
        '',
        '    }',
        '}',
    ])


def test_short_function_stays_on_one_line():
    fn = ExternFn('area', [('w', 'f64'), ('h', 'f64')], 'f64')
    assert fn.render() == 'pub fn area(w: f64, h: f64) -> f64;'


def test_long_function_wraps_one_parameter_per_line():
    params = [(f'parameter_{i}', '::std::os::raw::c_int') for i in range(3)]
    fn = ExternFn('configure', params, None, is_variadic=True, link_name='configure')
    rendered = fn.render()
    assert rendered.split('\n') == [
        'pub fn configure(',
        '    parameter_0: ::std::os::raw::c_int,',
        '    parameter_1: ::std::os::raw::c_int,',
        '    parameter_2: ::std::os::raw::c_int,',
        '    ...,',
        ');',
    ]
    assert all(len(line) <= 80 for line in rendered.split('\n'))


def test_extern_block_with_links_and_link_names():
    block = ExternBlock('extern "C"', abi='C', links=(('z', None), ('m', 'static')), items=[
        ExternFn('type_', [], None, link_name='type'),
        ExternStatic('counter', '::std::os::raw::c_int', is_mut=True, link_name='counter'),
        ExternStatic('version', '::std::os::raw::c_int', is_mut=False),
    ])
    assert block.render() == '\n'.join([
        '#[link(name = "z")]',
        '#[link(name = "m", kind = "static")]',
        'extern "C" {',
        '    #[link_name = "type"]',
        '    pub fn type_();',
        '    pub static mut counter: ::std::os::raw::c_int;',
        '    pub static version: ::std::os::raw::c_int;',
        '}',
    ])
