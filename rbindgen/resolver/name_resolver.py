from rbindgen import logging as rbindgen_logging
from rbindgen.c_types import (CompInfo, EnumInfo, EnumItemInfo, FuncSig,
                              Global, NamedType, TypeAliasInfo)

logger = rbindgen_logging.get_logger(__name__)

RUST_KEYWORDS = frozenset({
    "_", "abstract", "as", "async", "await", "become", "box", "break",
    "const", "continue", "crate", "do", "dyn", "else", "enum", "extern",
    "false", "final", "fn", "for", "gen", "if", "impl", "in", "let", "loop",
    "macro", "match", "mod", "move", "mut", "override", "priv", "pub", "ref",
    "return", "self", "Self", "static", "struct", "super", "trait", "true",
    "try", "type", "typeof", "unsafe", "unsized", "use", "virtual", "where",
    "while", "yield",
})


def sanitize(name: str) -> str:
    if name in RUST_KEYWORDS:
        return f"{name}_"
    return name


def unique(name: str, taken: set[str]) -> str:
    """Return ``name`` or the first free ``name_<n>``, and mark it taken."""
    candidate = name
    counter = 0
    while candidate in taken:
        counter += 1
        candidate = f"{name}_{counter}"
    taken.add(candidate)
    return candidate


def is_redundant_typedef(node: Global) -> bool:
    """`typedef struct { ... } name;` where the struct already took ``name``."""
    if not isinstance(node, TypeAliasInfo) or not node.is_complete:
        return False
    aliased = node.aliased
    return (
        isinstance(aliased, NamedType)
        and aliased.target.is_anonymous
        and aliased.target.typedef_name == node.name
    )


def _base_name(node: Global) -> str:
    if isinstance(node, CompInfo):
        prefix = "Union" if node.is_union else "Struct"
    elif isinstance(node, EnumInfo):
        prefix = "Enum"
    else:
        return node.name

    if not node.is_anonymous:
        return f"{prefix}_{node.name}"
    if node.typedef_name:
        return node.typedef_name
    return f"{prefix}_{node.anon_scope}_{node.anon_index}"


def _is_type(node: Global) -> bool:
    return isinstance(node, (CompInfo, EnumInfo, TypeAliasInfo))


class NameResolver:
    """Assigns every registered declaration a collision-free Rust identifier.

    Types and values live in separate namespaces. Within a namespace,
    declarations the C source names claim their identifier first, in
    registration order; synthesized names for anonymous declarations come
    afterwards and are the ones suffixed on a clash.
    """

    def __init__(self, nodes, logger=None):
        self.logger = logger if logger is not None else rbindgen_logging.NullLogger()
        self._names: dict[str, str] = {}
        self._constants: dict[tuple[str, str], str] = {}
        self._field_names: dict[str, list[str]] = {}

        nodes = list(nodes)
        types: set[str] = set()
        values: set[str] = set()

        named = [n for n in nodes if not n.is_anonymous or n.typedef_name]
        synthesized = [n for n in nodes if n.is_anonymous and not n.typedef_name]

        for node in named:
            if is_redundant_typedef(node):
                continue
            self._assign(node, types if _is_type(node) else values)
            if isinstance(node, EnumInfo):
                self._assign_constants(node, values)

        for node in synthesized:
            wanted = sanitize(_base_name(node))
            name = self._assign(node, types)
            if name != wanted:
                self.logger.warn(
                    f"Synthesized name {wanted} for anonymous declaration at "
                    f"{node.location} collides; using {name}"
                )
            if isinstance(node, EnumInfo):
                self._assign_constants(node, values)

        # redundant typedefs resolve to the declaration that took their name
        for node in nodes:
            if is_redundant_typedef(node):
                self._names[node.key] = self._names[node.aliased.target.key]

    def _assign(self, node: Global, namespace: set[str]) -> str:
        wanted = sanitize(_base_name(node))
        name = unique(wanted, namespace)
        if name != wanted and not node.is_anonymous:
            logger.debug("Renamed %s to %s to avoid a collision", node.c_name, name)
        self._names[node.key] = name
        return name

    def _assign_constants(self, enum: EnumInfo, values: set[str]) -> None:
        for item in enum.items:
            self._constants[(enum.key, item.name)] = unique(sanitize(item.name), values)

    def resolve(self, node: Global) -> str:
        """The Rust identifier of ``node``. Raises KeyError for unknown nodes."""
        return self._names[node.key]

    def constant_name(self, enum: EnumInfo, item: EnumItemInfo) -> str:
        return self._constants[(enum.key, item.name)]

    def is_redundant(self, node: Global) -> bool:
        return is_redundant_typedef(node)

    def field_names(self, comp: CompInfo) -> list[str]:
        """Member identifiers in field order; unnamed members become ``_anon<N>``."""
        cached = self._field_names.get(comp.key)
        if cached is not None:
            return list(cached)

        taken: set[str] = set()
        names = []
        anon_counter = 0
        for field in comp.fields:
            if field.name:
                names.append(unique(sanitize(field.name), taken))
            else:
                anon_counter += 1
                names.append(unique(f"_anon{anon_counter}", taken))
        self._field_names[comp.key] = names
        return list(names)

    @staticmethod
    def param_names(sig: FuncSig) -> list[str]:
        taken = {sanitize(p.name) for p in sig.params if p.name}
        names = []
        used: set[str] = set()
        for i, param in enumerate(sig.params, start=1):
            if param.name:
                names.append(unique(sanitize(param.name), used))
            else:
                names.append(unique(f"arg{i}", used | taken))
                used.add(names[-1])
        return names
