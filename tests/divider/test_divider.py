import pytest

from rbindgen.c_parser import TypeRegistry, parse
from rbindgen.divider import Divider


class MockInfo:
    def __init__(self, name, dependencies):
        self.name = name
        self.dependencies = dependencies

    def get_dependencies(self):
        return self.dependencies

    def __repr__(self):
        return self.name


@pytest.fixture
def divider():
    return Divider([])


@pytest.fixture
def cycles_divider():
    registry = TypeRegistry()
    parse(['tests/c_examples/headers/cycles.h'], registry, system_includes=False)
    return Divider(registry.globals())


def test_extract_order1(divider):
    # A->B, B->[C,A], C->[], D->[]
    a = MockInfo("A", [])
    b = MockInfo("B", [])
    c = MockInfo("C", [])
    d = MockInfo("D", [])

    a.dependencies = [b]
    b.dependencies = [c, a]

    result = divider._extract_order([a, b, c, d], lambda x: x.get_dependencies())
    assert result == [[c], [d], [a, b]]


def test_extract_order2(divider):
    # A->B->C->[], D->A, E->[]
    a = MockInfo("A", [])
    b = MockInfo("B", [])
    c = MockInfo("C", [])
    d = MockInfo("D", [])
    e = MockInfo("E", [])

    a.dependencies = [b]
    b.dependencies = [c]
    d.dependencies = [a]

    result = divider._extract_order([a, b, c, d, e], lambda x: x.get_dependencies())
    assert result == [[c], [e], [b], [a], [d]]


def test_extract_order3(divider):
    # A->B->D, A->C->D, E->A, D->[], F->[]
    a = MockInfo("A", [])
    b = MockInfo("B", [])
    c = MockInfo("C", [])
    d = MockInfo("D", [])
    e = MockInfo("E", [])
    f = MockInfo("F", [])

    a.dependencies = [b, c]
    b.dependencies = [d]
    c.dependencies = [d]
    e.dependencies = [a]

    result = divider._extract_order([a, b, c, d, e, f], lambda x: x.get_dependencies())
    assert result == [[d], [f], [b], [c], [a], [e]]


def test_extract_order4(divider):
    # A->[B, C], B->C, C->[B, D], D->[]
    a = MockInfo("A", [])
    b = MockInfo("B", [])
    c = MockInfo("C", [])
    d = MockInfo("D", [])

    a.dependencies = [b, c]
    b.dependencies = [c]
    c.dependencies = [b, d]

    result = divider._extract_order([a, b, c, d], lambda x: x.get_dependencies())
    assert result == [[d], [b, c], [a]]


def test_dependencies_outside_the_list_are_ignored(divider):
    a = MockInfo("A", [])
    outside = MockInfo("X", [])
    a.dependencies = [outside, a]
    assert divider._extract_order([a], lambda x: x.get_dependencies()) == [[a]]


def test_type_order(cycles_divider):
    names = [[n.name for n in group] for group in cycles_divider.get_type_order()]
    # b embeds a by value; node and a only point at others
    assert names == [['node'], ['a'], ['b']]


def test_symbol_order(cycles_divider):
    assert [n.name for n in cycles_divider.get_symbol_order()] == ['list_head']
