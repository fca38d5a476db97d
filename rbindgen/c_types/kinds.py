from dataclasses import dataclass
from enum import Enum


class IKind(Enum):
    """C integer type classified by signedness and platform width class.

    The value is ``(c_spelling, signed, width_class, min_bits)``; ``min_bits``
    is the narrowest width the class has on any supported platform.
    """

    CHAR = ("char", True, "char", 8)
    SCHAR = ("signed char", True, "char", 8)
    UCHAR = ("unsigned char", False, "char", 8)
    SHORT = ("short", True, "short", 16)
    USHORT = ("unsigned short", False, "short", 16)
    INT = ("int", True, "int", 32)
    UINT = ("unsigned int", False, "int", 32)
    LONG = ("long", True, "long", 32)
    ULONG = ("unsigned long", False, "long", 32)
    LONGLONG = ("long long", True, "longlong", 64)
    ULONGLONG = ("unsigned long long", False, "longlong", 64)

    @property
    def is_signed(self) -> bool:
        return self.value[1]

    @property
    def width_class(self) -> str:
        return self.value[2]

    @property
    def min_bits(self) -> int:
        return self.value[3]

    def portable_range(self) -> tuple[int, int]:
        """Values representable on every platform for this kind."""
        bits = self.min_bits
        if self.is_signed:
            return -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        return 0, (1 << bits) - 1


class FKind(Enum):
    FLOAT = "float"
    DOUBLE = "double"


_IKIND_NAMES = {
    "uchar": IKind.UCHAR,
    "schar": IKind.SCHAR,
    "ushort": IKind.USHORT,
    "sshort": IKind.SHORT,
    "uint": IKind.UINT,
    "sint": IKind.INT,
    "ulong": IKind.ULONG,
    "slong": IKind.LONG,
    "ulonglong": IKind.ULONGLONG,
    "slonglong": IKind.LONGLONG,
}


def parse_ikind(name: str | None) -> IKind | None:
    """Map an ``override_enum_ty`` option spelling to an :class:`IKind`.

    Raises ValueError for unknown spellings.
    """
    if name is None:
        return None
    name = name.strip().lower()
    if not name:
        return None
    try:
        return _IKIND_NAMES[name]
    except KeyError as exc:
        raise ValueError(
            f"Unknown integer kind '{name}', expected one of: {', '.join(_IKIND_NAMES)}"
        ) from exc


@dataclass(frozen=True)
class Layout:
    size: int
    align: int


@dataclass(frozen=True)
class SourceLoc:
    file: str | None
    line: int = 0
    column: int = 0

    @property
    def is_builtin(self) -> bool:
        return self.file is None

    def __str__(self):
        if self.file is None:
            return "<builtin>"
        return f"{self.file}:{self.line}:{self.column}"


class DataType(Enum):
    """What a declaration declares; symbols go into ``extern`` blocks."""

    VARIABLE = "variable"
    FUNCTION = "function"
    STRUCT = "struct"
    UNION = "union"
    ENUM = "enum"
    TYPE_ALIAS = "typedef"

    @property
    def is_symbol(self) -> bool:
        return self in (DataType.VARIABLE, DataType.FUNCTION)
