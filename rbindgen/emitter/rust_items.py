from dataclasses import dataclass, field

INDENT = "    "
DEFAULT_WIDTH = 80


@dataclass
class RustItem:
    """One top-level Rust declaration; rendered as its own printed unit."""
    name: str

    def render(self, width: int = DEFAULT_WIDTH) -> str:
        raise NotImplementedError


@dataclass
class TypeAliasItem(RustItem):
    target: str

    def render(self, width: int = DEFAULT_WIDTH) -> str:
        return f"pub type {self.name} = {self.target};"


@dataclass
class ConstItem(RustItem):
    ty: str
    value: str

    def render(self, width: int = DEFAULT_WIDTH) -> str:
        return f"pub const {self.name}: {self.ty} = {self.value};"


@dataclass
class FieldDecl:
    name: str
    ty: str
    is_pub: bool = True

    def render(self) -> str:
        visibility = "pub " if self.is_pub else ""
        return f"{visibility}{self.name}: {self.ty},"


@dataclass
class StructItem(RustItem):
    fields: list[FieldDecl] = field(default_factory=list)
    is_union: bool = False
    repr: tuple[str, ...] = ("C",)
    derives: tuple[str, ...] = ("Copy", "Clone")

    def render(self, width: int = DEFAULT_WIDTH) -> str:
        lines = [f"#[repr({', '.join(self.repr)})]"]
        if self.derives:
            lines.append(f"#[derive({', '.join(self.derives)})]")
        keyword = "union" if self.is_union else "struct"
        if not self.fields:
            lines.append(f"pub {keyword} {self.name} {{}}")
            return "\n".join(lines)
        lines.append(f"pub {keyword} {self.name} {{")
        lines.extend(INDENT + f.render() for f in self.fields)
        lines.append("}")
        return "\n".join(lines)


@dataclass
class ImplItem(RustItem):
    """``impl [Trait for] Name`` holding pre-rendered methods.

    Each method is a list of lines indented relative to the impl body.
    """
    methods: list[list[str]] = field(default_factory=list)
    trait: str | None = None

    def render(self, width: int = DEFAULT_WIDTH) -> str:
        header = f"impl {self.trait} for {self.name}" if self.trait else f"impl {self.name}"
        lines = [f"{header} {{"]
        for i, method in enumerate(self.methods):
            if i:
                lines.append("")
            lines.extend(INDENT + line if line else "" for line in method)
        lines.append("}")
        return "\n".join(lines)


def _link_name_attr(name: str, link_name: str | None) -> list[str]:
    if link_name and link_name != name:
        return [f'#[link_name = "{link_name}"]']
    return []


@dataclass
class ExternFn(RustItem):
    params: list[tuple[str, str]] = field(default_factory=list)
    ret: str | None = None
    is_variadic: bool = False
    link_name: str | None = None

    def render_lines(self, indent: str, width: int) -> list[str]:
        args = [f"{name}: {ty}" for name, ty in self.params]
        if self.is_variadic:
            args.append("...")
        ret = f" -> {self.ret}" if self.ret else ""
        lines = [indent + attr for attr in _link_name_attr(self.name, self.link_name)]

        single = f"{indent}pub fn {self.name}({', '.join(args)}){ret};"
        if len(single) <= width or not args:
            lines.append(single)
            return lines
        lines.append(f"{indent}pub fn {self.name}(")
        lines.extend(f"{indent}{INDENT}{arg}," for arg in args)
        lines.append(f"{indent}){ret};")
        return lines

    def render(self, width: int = DEFAULT_WIDTH) -> str:
        return "\n".join(self.render_lines("", width))


@dataclass
class ExternStatic(RustItem):
    ty: str = ""
    is_mut: bool = True
    link_name: str | None = None

    def render_lines(self, indent: str, width: int) -> list[str]:
        lines = [indent + attr for attr in _link_name_attr(self.name, self.link_name)]
        mutability = "mut " if self.is_mut else ""
        lines.append(f"{indent}pub static {mutability}{self.name}: {self.ty};")
        return lines

    def render(self, width: int = DEFAULT_WIDTH) -> str:
        return "\n".join(self.render_lines("", width))


@dataclass
class ExternBlock(RustItem):
    """``extern "<abi>" { ... }`` with one ``#[link]`` per library.

    ``links`` holds ``(library, kind)`` pairs; ``kind`` is None for the
    default dynamic linkage.
    """
    abi: str = "C"
    links: tuple[tuple[str, str | None], ...] = ()
    items: list[ExternFn | ExternStatic] = field(default_factory=list)

    def render(self, width: int = DEFAULT_WIDTH) -> str:
        lines = []
        for library, kind in self.links:
            if kind:
                lines.append(f'#[link(name = "{library}", kind = "{kind}")]')
            else:
                lines.append(f'#[link(name = "{library}")]')
        lines.append(f'extern "{self.abi}" {{')
        for item in self.items:
            lines.extend(item.render_lines(INDENT, width))
        lines.append("}")
        return "\n".join(lines)
