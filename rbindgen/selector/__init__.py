from .filter import close_over_dependencies, is_builtin, select
from .links import LinkPolicy, LinkTarget, LinkType

__all__ = [
    'LinkPolicy',
    'LinkTarget',
    'LinkType',
    'close_over_dependencies',
    'is_builtin',
    'select',
]
