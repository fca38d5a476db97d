"""Rust member layout for C records.

Rust's ``repr(C)`` reproduces C layout for ordinary fields, but bit-fields
have no Rust counterpart. Runs of bit-fields are stored in byte arrays and
accessed through generated methods; explicit padding and ``align``/``packed``
attributes keep every offset, the record size and its alignment identical to
what the C compiler reported.
"""
from dataclasses import dataclass, field

from rbindgen.c_types import (ArrayType, BoolType, CompInfo, CType, FieldInfo,
                              UnknownType, strip_aliases)
from rbindgen.resolver import unique

from .rust_items import FieldDecl
from .type_mapping import TypeMapper, integer_kind

# storage units grow up to this many bytes unless a bit-field straddles them
MAX_UNIT_BYTES = 8


@dataclass
class BitfieldSlot:
    field: FieldInfo
    name: str
    bit: int  # first bit within the storage unit


@dataclass
class BitfieldUnit:
    name: str
    offset: int
    size: int
    slots: list[BitfieldSlot] = field(default_factory=list)


@dataclass
class RecordPlan:
    members: list[FieldDecl]
    units: list[BitfieldUnit]
    repr: tuple[str, ...]
    # set when the C layout cannot be reproduced exactly
    problems: list[str] = field(default_factory=list)


def _ceil8(bits: int) -> int:
    return (bits + 7) // 8


def _align_up(value: int, align: int) -> int:
    if align <= 1:
        return value
    return (value + align - 1) // align * align


def _byte_backed(ty: CType) -> bool:
    """Whether the Rust spelling of ``ty`` is a byte array (alignment 1)."""
    ty = strip_aliases(ty)
    if isinstance(ty, ArrayType):
        return _byte_backed(ty.element)
    return isinstance(ty, UnknownType)


def _field_size_align(f: FieldInfo) -> tuple[int, int]:
    if f.layout is None:
        # flexible array members and other incomplete types occupy no storage
        return 0, 1
    return f.layout.size, max(f.layout.align, 1)


def _bitfield_runs(fields):
    """Group consecutive bit-fields into storage units."""
    i = 0
    while i < len(fields):
        f, _ = fields[i]
        if not f.is_bitfield:
            yield None, [fields[i]]
            i += 1
            continue
        start = f.bit_offset // 8
        end_bit = f.bit_offset + f.bit_width
        j = i + 1
        while j < len(fields) and fields[j][0].is_bitfield:
            g = fields[j][0]
            g_end = g.bit_offset + g.bit_width
            shares_byte = g.bit_offset // 8 < _ceil8(end_bit)
            if not shares_byte and _ceil8(g_end) - start > MAX_UNIT_BYTES:
                break
            end_bit = max(end_bit, g_end)
            j += 1
        yield (start, _ceil8(end_bit) - start), fields[i:j]
        i = j


class _Planner:
    def __init__(self, comp: CompInfo, names: list[str], mapper: TypeMapper):
        self.comp = comp
        self.mapper = mapper
        self.fields = list(zip(comp.fields, names))
        self.taken = set(names)
        self.members: list[FieldDecl] = []
        self.units: list[BitfieldUnit] = []
        self.problems: list[str] = []
        self.pos = 0
        self.natural_align = 1
        self.max_size = 0
        self._pads = 0

    def pad_to(self, offset: int) -> None:
        if offset <= self.pos:
            return
        self._pads += 1
        name = unique(f"_pad{self._pads}", self.taken)
        self.members.append(FieldDecl(name, f"[u8; {offset - self.pos}]", is_pub=False))
        self.pos = offset

    def add_unit(self, offset: int, size: int, slots) -> None:
        name = unique(f"_bitfield_{len(self.units) + 1}", self.taken)
        unit = BitfieldUnit(name, offset, size, [
            BitfieldSlot(f, fname, f.bit_offset - offset * 8) for f, fname in slots
        ])
        self.units.append(unit)
        self.members.append(FieldDecl(name, f"[u8; {size}]", is_pub=False))
        self.max_size = max(self.max_size, size)

    def pack_limit(self) -> int | None:
        """Largest ``packed(N)`` that keeps every field at its C offset."""
        layout = self.comp.layout
        if not self.comp.is_packed or layout is None:
            return None
        limit = max(layout.align, 1)
        for f, _ in self.fields:
            if f.is_bitfield or _byte_backed(f.type):
                continue
            _, align = _field_size_align(f)
            if f.offset % min(align, limit):
                return 1
        return limit

    def plan_struct(self, pack: int | None) -> None:
        for unit, slots in _bitfield_runs(self.fields):
            if unit is not None:
                offset, size = unit
                if offset < self.pos:
                    self.problems.append(f"bit-field storage overlaps at byte {offset}")
                    offset = self.pos
                self.pad_to(offset)
                self.add_unit(offset, size, slots)
                self.pos = offset + size
                continue

            f, name = slots[0]
            size, align = _field_size_align(f)
            rust_align = 1 if _byte_backed(f.type) else align
            effective = min(rust_align, pack) if pack else rust_align
            natural = _align_up(self.pos, effective)
            if f.offset > natural:
                self.pad_to(f.offset)
            elif f.offset < natural:
                self.problems.append(f"field {name} cannot be placed at byte {f.offset}")
            self.members.append(FieldDecl(name, self.mapper.field_type(f.type)))
            self.pos = max(self.pos, f.offset) + size
            self.natural_align = max(self.natural_align, effective)

    def plan_union(self, pack: int | None) -> None:
        for f, name in self.fields:
            if f.is_bitfield:
                self.add_unit(0, _ceil8(f.bit_offset + f.bit_width), [(f, name)])
                continue
            size, align = _field_size_align(f)
            rust_align = 1 if _byte_backed(f.type) else align
            self.members.append(FieldDecl(name, self.mapper.field_type(f.type)))
            self.max_size = max(self.max_size, size)
            self.natural_align = max(self.natural_align, min(rust_align, pack) if pack else rust_align)

    def finish(self, pack: int | None) -> tuple[str, ...]:
        layout = self.comp.layout
        attrs = ["C"]
        final_align = self.natural_align
        if pack is not None:
            attrs.append("packed" if pack == 1 else f"packed({pack})")
            final_align = min(self.natural_align, pack)
            if layout is not None and layout.align > pack:
                self.problems.append(f"alignment {layout.align} is lost to packing")
        elif layout is not None and layout.align > self.natural_align:
            attrs.append(f"align({layout.align})")
            final_align = layout.align

        if layout is not None:
            if self.comp.is_union:
                if _align_up(self.max_size, final_align) < layout.size:
                    name = unique("_pad", self.taken)
                    self.members.append(FieldDecl(name, f"[u8; {layout.size}]", is_pub=False))
            elif _align_up(self.pos, final_align) != layout.size:
                self.pad_to(layout.size)
        return tuple(attrs)


def plan_record(comp: CompInfo, names: list[str], mapper: TypeMapper) -> RecordPlan:
    """Lay out ``comp`` as Rust members; ``names`` are its field identifiers."""
    planner = _Planner(comp, names, mapper)
    pack = planner.pack_limit()
    if comp.is_union:
        planner.plan_union(pack)
    else:
        planner.plan_struct(pack)
    attrs = planner.finish(pack)
    return RecordPlan(planner.members, planner.units, attrs, planner.problems)


######## Accessors ########
def _getter(slot: BitfieldSlot, unit: BitfieldUnit, ty: str, read: str, method: str) -> list[str]:
    f = slot.field
    stripped = strip_aliases(f.type)
    if isinstance(stripped, BoolType):
        result = "value != 0"
    else:
        kind = integer_kind(f.type)
        if kind is not None and kind.is_signed and f.bit_width < 64:
            shift = 64 - f.bit_width
            result = f"((value << {shift}) as i64 >> {shift}) as {ty}"
        else:
            result = f"value as {ty}"
    return [
        "#[inline]",
        f"pub fn {method}(&self) -> {ty} {{",
        f"    let unit = {read};",
        "    let mut value: u64 = 0;",
        f"    for i in 0..{f.bit_width} {{",
        f"        let bit = {slot.bit} + i;",
        "        if (unit[bit / 8] >> (bit % 8)) & 1 == 1 {",
        "            value |= 1 << i;",
        "        }",
        "    }",
        f"    {result}",
        "}",
    ]


def _setter(slot: BitfieldSlot, unit: BitfieldUnit, ty: str, read: str, method: str) -> list[str]:
    f = slot.field
    return [
        "#[inline]",
        f"pub fn {method}(&mut self, value: {ty}) {{",
        f"    let mut unit = {read};",
        "    let value = value as u64;",
        f"    for i in 0..{f.bit_width} {{",
        f"        let bit = {slot.bit} + i;",
        "        let mask = 1u8 << (bit % 8);",
        "        if (value >> i) & 1 == 1 {",
        "            unit[bit / 8] |= mask;",
        "        } else {",
        "            unit[bit / 8] &= !mask;",
        "        }",
        "    }",
        f"    self.{unit.name} = unit;",
        "}",
    ]


def bitfield_accessors(plan: RecordPlan, is_union: bool, mapper: TypeMapper) -> list[list[str]]:
    """Getter and ``set_`` method per named bit-field, little-endian bit order."""
    methods = []
    taken: set[str] = set()
    for unit in plan.units:
        read = f"unsafe {{ self.{unit.name} }}" if is_union else f"self.{unit.name}"
        for slot in unit.slots:
            if not slot.field.name:
                continue
            ty = mapper.field_type(slot.field.type)
            getter = unique(slot.name, taken)
            setter = unique(f"set_{slot.name}", taken)
            methods.append(_getter(slot, unit, ty, read, getter))
            methods.append(_setter(slot, unit, ty, read, setter))
    return methods
