from .name_resolver import (RUST_KEYWORDS, NameResolver, is_redundant_typedef,
                            sanitize, unique)

__all__ = [
    'NameResolver',
    'RUST_KEYWORDS',
    'is_redundant_typedef',
    'sanitize',
    'unique',
]
