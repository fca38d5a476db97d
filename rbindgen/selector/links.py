from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase

from rbindgen import logging as rbindgen_logging
from rbindgen.c_types import FunctionInfo, Global, VarInfo

logger = rbindgen_logging.get_logger(__name__)


class LinkType(Enum):
    DEFAULT = "default"
    STATIC = "static"
    FRAMEWORK = "framework"

    @classmethod
    def parse(cls, value) -> "LinkType":
        if isinstance(value, LinkType):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValueError(
                f"Unknown link kind '{value}', expected one of: "
                f"{', '.join(kind.value for kind in cls)}"
            ) from exc


@dataclass(frozen=True)
class LinkTarget:
    """A library every matching function/variable is declared against."""
    name: str
    kind: LinkType = LinkType.DEFAULT
    symbols: tuple[str, ...] = ("*",)

    def matches(self, symbol: str) -> bool:
        return any(fnmatchcase(symbol, pattern) for pattern in self.symbols)

    @classmethod
    def from_config(cls, entry) -> "LinkTarget":
        if isinstance(entry, str):
            return cls(entry)
        if not isinstance(entry, dict):
            raise TypeError(f"Link entries must be tables or strings, got {type(entry).__name__}")
        if "name" not in entry:
            raise ValueError(f"Link entry {entry} has no name")
        symbols = entry.get("symbols", ["*"])
        if isinstance(symbols, str):
            symbols = [symbols]
        return cls(entry["name"], LinkType.parse(entry.get("kind", "default")), tuple(symbols))


def symbol_name(node: Global) -> str | None:
    if isinstance(node, FunctionInfo):
        return node.link_name
    if isinstance(node, VarInfo):
        return node.name
    return None


class LinkPolicy:
    """Attaches link targets to emitted symbols.

    Targets apply additively: a symbol matched by several targets is declared
    against all of them, in configuration order.
    """

    def __init__(self, targets=(), logger=None):
        self.targets = tuple(targets)
        self.logger = logger if logger is not None else rbindgen_logging.NullLogger()
        self._used: set[LinkTarget] = set()

    def links_for(self, node: Global) -> tuple[LinkTarget, ...]:
        symbol = symbol_name(node)
        if symbol is None:
            return ()
        matched = tuple(target for target in self.targets if target.matches(symbol))
        self._used.update(matched)
        return matched

    def report_unused(self) -> list[LinkTarget]:
        """Warn about targets that matched no emitted symbol so far."""
        unused = [target for target in self.targets if target not in self._used]
        for target in unused:
            self.logger.warn(
                f"Link directive for '{target.name}' ({target.kind.value}) "
                f"matched no emitted symbol"
            )
        return unused
