from dataclasses import dataclass, field

from rbindgen import logging as rbindgen_logging
from rbindgen.c_parser import TypeRegistry, parse
from rbindgen.c_types import Global, IKind, SourceLoc, parse_ikind
from rbindgen.divider import Divider
from rbindgen.emitter import BindingEmitter, RustItem
from rbindgen.emitter.rust_items import DEFAULT_WIDTH
from rbindgen.errors import UnknownTypeError
from rbindgen.resolver import NameResolver
from rbindgen.selector import (LinkPolicy, LinkTarget, close_over_dependencies,
                               select)

HEADER_COMMENT = "/* automatically generated by rbindgen */"


@dataclass
class BindgenOptions:
    match_pat: list[str] = field(default_factory=list)
    builtins: bool = False
    links: list[LinkTarget] = field(default_factory=list)
    emit_ast: bool = False
    fail_on_unknown_type: bool = False
    override_enum_ty: IKind | None = None
    clang_args: list[str] = field(default_factory=list)
    system_includes: bool = True

    @classmethod
    def from_config(cls, config: dict, **overrides) -> "BindgenOptions":
        """Build options from the ``[bindgen]`` table of a loaded config.

        Keyword overrides replace the configured value when not None.
        """
        section = dict(config.get("bindgen", {}))
        for key, value in overrides.items():
            if value is not None:
                section[key] = value

        override_enum_ty = section.get("override_enum_ty")
        if not isinstance(override_enum_ty, IKind):
            override_enum_ty = parse_ikind(override_enum_ty)

        return cls(
            match_pat=list(section.get("match_pat", [])),
            builtins=bool(section.get("builtins", False)),
            links=[
                link if isinstance(link, LinkTarget) else LinkTarget.from_config(link)
                for link in section.get("links", [])
            ],
            emit_ast=bool(section.get("emit_ast", False)),
            fail_on_unknown_type=bool(section.get("fail_on_unknown_type", False)),
            override_enum_ty=override_enum_ty,
            clang_args=list(section.get("clang_args", [])),
            system_includes=bool(section.get("system_includes", True)),
        )


@dataclass
class ParsedHeaders:
    registry: TypeRegistry
    # top-level declarations in source order
    top_level: list[Global]
    # selected declarations plus everything they reference, in registration order
    selected: list[Global]


def parse_headers(options: BindgenOptions, logger=None) -> ParsedHeaders:
    """Parse the headers named in ``options.clang_args`` and select what to emit.

    Raises HeaderParseError or UnknownTypeError.
    """
    logger = logger if logger is not None else rbindgen_logging.NullLogger()
    registry = TypeRegistry(
        logger,
        fail_on_unknown_type=options.fail_on_unknown_type,
        override_enum_ty=options.override_enum_ty,
    )
    top_level = parse(
        options.clang_args,
        registry,
        logger,
        emit_ast=options.emit_ast,
        system_includes=options.system_includes,
    )

    nodes = registry.globals()
    chosen = [node for node in nodes if select(node, options.match_pat, options.builtins)]
    selected = close_over_dependencies(chosen, nodes)
    rbindgen_logging.get_logger(__name__).debug(
        "Registered %d declarations, %d selected, %d emitted with dependencies",
        len(nodes), len(chosen), len(selected),
    )
    return ParsedHeaders(registry, top_level, selected)


class Bindings:
    """The result of one generation run.

    Owns the emitted declarations; :meth:`into_declarations` hands them over
    and leaves the object unusable.
    """

    def __init__(self, items):
        self._items: list[RustItem] | None = list(items)

    def _require_items(self) -> list[RustItem]:
        if self._items is None:
            raise RuntimeError("Bindings were already consumed by into_declarations()")
        return self._items

    def __len__(self):
        return len(self._require_items())

    def into_declarations(self) -> list[RustItem]:
        items = self._require_items()
        self._items = None
        return items

    def to_text(self, width: int = DEFAULT_WIDTH) -> str:
        units = [HEADER_COMMENT]
        units.extend(item.render(width) for item in self._require_items())
        return "\n\n".join(units) + "\n"

    def write(self, sink) -> None:
        """Write the bindings to a text stream; I/O errors propagate."""
        sink.write(self.to_text())


def generate(options: BindgenOptions, logger=None, span: SourceLoc | None = None) -> Bindings:
    """Generate Rust bindings for the headers described by ``options``.

    Raises HeaderParseError or UnknownTypeError; both are reported through
    ``logger.error`` first. ``span`` prefixes every forwarded diagnostic.
    """
    logger = logger if logger is not None else rbindgen_logging.NullLogger()
    if span is not None:
        logger = rbindgen_logging.SpanLogger(logger, span)

    try:
        parsed = parse_headers(options, logger)
    except UnknownTypeError as exc:
        logger.error(str(exc))
        raise

    resolver = NameResolver(parsed.registry.globals(), logger)
    divider = Divider(parsed.selected)
    ordered = [node for group in divider.get_type_order() for node in group]
    ordered.extend(divider.get_symbol_order())

    policy = LinkPolicy(options.links, logger)
    items = BindingEmitter(resolver, logger).emit(ordered, policy)
    return Bindings(items)
