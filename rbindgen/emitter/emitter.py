from rbindgen import logging as rbindgen_logging
from rbindgen.c_types import (CompInfo, EnumInfo, FunctionInfo, FunctionType,
                              Global, IKind, TypeAliasInfo, VarInfo)
from rbindgen.selector import LinkPolicy, LinkType

from .layout import bitfield_accessors, plan_record
from .rust_items import (ConstItem, ExternBlock, ExternFn, ExternStatic,
                         FieldDecl, ImplItem, RustItem, StructItem,
                         TypeAliasItem)
from .type_mapping import TypeMapper, int_type

logger = rbindgen_logging.get_logger(__name__)

_ZEROED_DEFAULT = [
    "fn default() -> Self {",
    "    unsafe { ::std::mem::zeroed() }",
    "}",
]

_LINK_KINDS = {
    LinkType.DEFAULT: None,
    LinkType.STATIC: "static",
    LinkType.FRAMEWORK: "framework",
}


def enum_literal(value: int, kind: IKind, ty: str) -> str:
    """Spell an enum constant so it type-checks on every platform."""
    low, high = kind.portable_range()
    if low <= value <= high:
        return str(value)
    # wraps like the C conversion on the platforms where it does not fit
    suffix = "i64" if value < 0 else "u64"
    return f"{value}{suffix} as {ty}"


class BindingEmitter:
    """Renders ordered declarations as Rust items.

    Types come first in the order given; functions and variables follow in
    ``extern`` blocks grouped by calling convention and link targets.
    """

    def __init__(self, resolver, logger=None):
        self.resolver = resolver
        self.mapper = TypeMapper(resolver)
        self.logger = logger if logger is not None else rbindgen_logging.NullLogger()

    def emit(self, ordered, link_policy: LinkPolicy | None = None) -> list[RustItem]:
        items: list[RustItem] = []
        symbols: list[Global] = []
        for node in ordered:
            match node:
                case FunctionInfo() | VarInfo():
                    symbols.append(node)
                case CompInfo():
                    items.extend(self.emit_comp(node))
                case EnumInfo():
                    items.extend(self.emit_enum(node))
                case TypeAliasInfo():
                    if not self.resolver.is_redundant(node):
                        items.append(self.emit_alias(node))
                case _:
                    raise TypeError(f"Cannot emit {node!r}")

        items.extend(self.emit_externs(symbols, link_policy))
        if link_policy is not None:
            link_policy.report_unused()
        return items

    ######## Types ########
    def emit_comp(self, comp: CompInfo) -> list[RustItem]:
        name = self.resolver.resolve(comp)
        if not comp.is_complete:
            opaque = StructItem(name, [FieldDecl("_unused", "[u8; 0]", is_pub=False)], derives=())
            return [opaque]

        plan = plan_record(comp, self.resolver.field_names(comp), self.mapper)
        for problem in plan.problems:
            self.logger.warn(f"Layout of {comp.c_name} at {comp.location} is approximate: {problem}")

        items: list[RustItem] = [
            StructItem(name, plan.members, is_union=comp.is_union, repr=plan.repr),
            ImplItem(name, [list(_ZEROED_DEFAULT)], trait="Default"),
        ]
        accessors = bitfield_accessors(plan, comp.is_union, self.mapper)
        if accessors:
            items.append(ImplItem(name, accessors))
        return items

    def emit_enum(self, enum: EnumInfo) -> list[RustItem]:
        name = self.resolver.resolve(enum)
        items: list[RustItem] = [TypeAliasItem(name, int_type(enum.kind))]
        for item in enum.items:
            items.append(ConstItem(
                self.resolver.constant_name(enum, item),
                name,
                enum_literal(item.value, enum.kind, name),
            ))
        return items

    def emit_alias(self, alias: TypeAliasInfo) -> RustItem:
        aliased = alias.aliased
        if isinstance(aliased, FunctionType):
            target = self.mapper.fn_type(aliased.sig)
        else:
            target = self.mapper.field_type(aliased)
        return TypeAliasItem(self.resolver.resolve(alias), target)

    ######## Symbols ########
    def emit_externs(self, symbols, link_policy: LinkPolicy | None) -> list[ExternBlock]:
        blocks: dict[tuple, ExternBlock] = {}
        for node in symbols:
            links = link_policy.links_for(node) if link_policy is not None else ()
            link_attrs = tuple((target.name, _LINK_KINDS[target.kind]) for target in links)
            if isinstance(node, FunctionInfo):
                abi = node.sig.abi
                item = self.emit_function(node)
            else:
                abi = "C"
                item = self.emit_var(node)

            block = blocks.get((abi, link_attrs))
            if block is None:
                block = ExternBlock(f'extern "{abi}"', abi=abi, links=link_attrs)
                blocks[(abi, link_attrs)] = block
            block.items.append(item)
        return list(blocks.values())

    def emit_function(self, func: FunctionInfo) -> ExternFn:
        sig = func.sig
        names = self.resolver.param_names(sig)
        params = [(name, self.mapper.param_type(p.type)) for name, p in zip(names, sig.params)]
        is_variadic = sig.is_variadic
        if is_variadic and not params:
            self.logger.warn(
                f"Variadic function {func.name} at {func.location} has no named "
                f"parameter; declaring it without the variadic part"
            )
            is_variadic = False
        return ExternFn(
            self.resolver.resolve(func),
            params,
            self.mapper.return_type(sig.ret),
            is_variadic,
            link_name=func.link_name,
        )

    def emit_var(self, var: VarInfo) -> ExternStatic:
        return ExternStatic(
            self.resolver.resolve(var),
            self.mapper.field_type(var.type),
            is_mut=not var.is_const,
            link_name=var.name,
        )
