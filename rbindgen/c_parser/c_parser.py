from clang import cindex
from clang.cindex import Cursor, CursorKind, LinkageKind

from rbindgen import logging as rbindgen_logging, utils
from rbindgen.c_types import Global
from rbindgen.errors import HeaderParseError

from .type_registry import TypeRegistry, direct_tag_declaration, is_anonymous_cursor

logger = rbindgen_logging.get_logger(__name__)

_TAG_KINDS = (
    CursorKind.STRUCT_DECL,
    CursorKind.UNION_DECL,
    CursorKind.ENUM_DECL,
)

_LINKABLE = (
    LinkageKind.EXTERNAL,
    LinkageKind.UNIQUE_EXTERNAL,
)

# clang options whose value is passed as the next argument
_OPTIONS_WITH_VALUE = frozenset({
    "-I", "-D", "-U", "-x", "-o", "-include", "-imacros", "-isystem",
    "-iquote", "-idirafter", "-isysroot", "-F", "-target", "-arch", "-MF",
    "-Xclang",
})

_INPUT_SUFFIXES = (".h", ".hh", ".hpp", ".hxx", ".H", ".c", ".inc")


def split_inputs(clang_args) -> tuple[list[str], list[str]]:
    """Separate input header paths from the other clang arguments."""
    flags: list[str] = []
    inputs: list[str] = []
    expect_value = False
    for arg in clang_args:
        if expect_value:
            flags.append(arg)
            expect_value = False
        elif arg in _OPTIONS_WITH_VALUE:
            flags.append(arg)
            expect_value = True
        elif not arg.startswith("-") and arg.endswith(_INPUT_SUFFIXES):
            inputs.append(arg)
        else:
            flags.append(arg)
    return flags, inputs


def _format_diagnostic(diag: cindex.Diagnostic) -> str:
    location = diag.location
    if location is not None and location.file is not None:
        return f"{location.file.name}:{location.line}:{location.column}: {diag.spelling}"
    return diag.spelling


class CParser:
    """Parses one translation unit with libclang and feeds it to a registry."""

    def __init__(self, clang_args, logger=None, *, emit_ast=False, system_includes=True):
        self.clang_args = list(clang_args)
        self.logger = logger if logger is not None else rbindgen_logging.NullLogger()
        self.emit_ast = emit_ast

        if not self.clang_args:
            message = "No input files given"
            self.logger.error(message)
            raise HeaderParseError(message)

        args = list(self.clang_args)
        if system_includes:
            args.extend(f"-isystem{path}" for path in _system_include_paths())

        index = cindex.Index.create()
        try:
            self.translation_unit = index.parse(
                None, args=args, options=cindex.TranslationUnit.PARSE_SKIP_FUNCTION_BODIES)
        except cindex.TranslationUnitLoadError as exc:
            message = f"Failed to parse headers with arguments {' '.join(self.clang_args)}"
            self.logger.error(message)
            raise HeaderParseError(message) from exc

        self._check_diagnostics()
        if self.emit_ast:
            self.print_ast()

    def _check_diagnostics(self):
        errors = []
        for diag in self.translation_unit.diagnostics:
            message = _format_diagnostic(diag)
            if diag.severity >= cindex.Diagnostic.Error:
                errors.append(message)
                self.logger.error(message)
            elif diag.severity >= cindex.Diagnostic.Warning:
                self.logger.warn(message)
        if errors:
            raise HeaderParseError(
                f"{len(errors)} error(s) while parsing {self.translation_unit.spelling}", errors)

    def walk(self, registry: TypeRegistry) -> list[Global]:
        """Register the top-level declarations in source order.

        Returns the distinct top-level Globals; nested and referenced
        declarations only appear in the registry.
        """
        top_level: list[Global] = []
        seen: set[str] = set()
        children = list(self.translation_unit.cursor.get_children())
        for i, cursor in enumerate(children):
            kind = cursor.kind
            if kind in _TAG_KINDS:
                following = children[i + 1] if i + 1 < len(children) else None
                # `typedef struct { ... } name;` and `struct { ... } var;` are
                # registered through the declaration that names them
                if is_anonymous_cursor(cursor) and _names_tag(following, cursor):
                    continue
            elif kind in (CursorKind.FUNCTION_DECL, CursorKind.VAR_DECL):
                if cursor.linkage not in _LINKABLE:
                    logger.debug("Skipping %s without external linkage", cursor.spelling)
                    continue
            elif kind != CursorKind.TYPEDEF_DECL:
                continue

            node = registry.register(cursor)
            if node.key not in seen:
                seen.add(node.key)
                top_level.append(node)
        logger.debug("Walked %s: %d top-level declarations", self.translation_unit.spelling, len(top_level))
        return top_level

    def print_ast(self, node=None, indent=0):
        """
        Prints the AST of the given node.
        """
        if node is None:
            for child in self.translation_unit.cursor.get_children():
                self.print_ast(child, indent)
            return
        logger.info('%s%s %s %s', ' ' * indent, node.kind, node.spelling, node.location)
        for child in node.get_children():
            self.print_ast(child, indent + 2)


def _names_tag(declaration: Cursor | None, tag: Cursor) -> bool:
    if declaration is None:
        return False
    if declaration.kind == CursorKind.TYPEDEF_DECL:
        ty = declaration.underlying_typedef_type
    elif declaration.kind == CursorKind.VAR_DECL:
        ty = declaration.type
    else:
        return False
    target = direct_tag_declaration(ty)
    return target is not None and target == tag


def _system_include_paths() -> tuple[str, ...]:
    try:
        return utils.get_compiler_include_paths()
    except OSError:
        logger.debug("No C compiler found; skipping system include discovery")
        return ()


def parse(clang_args, registry: TypeRegistry, logger=None, *, emit_ast=False, system_includes=True) -> list[Global]:
    """Parse every input header in ``clang_args`` into ``registry``.

    Several headers are parsed as separate translation units sharing the
    registry, so declarations unify by identity across them.
    """
    flags, inputs = split_inputs(clang_args)
    units = [flags + [header] for header in inputs] if len(inputs) > 1 else [list(clang_args)]

    top_level: list[Global] = []
    seen: set[str] = set()
    for args in units:
        parser = CParser(args, logger, emit_ast=emit_ast, system_includes=system_includes)
        for node in parser.walk(registry):
            if node.key not in seen:
                seen.add(node.key)
                top_level.append(node)
    return top_level
