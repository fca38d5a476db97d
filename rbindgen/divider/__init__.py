from .divider import Divider

__all__ = [
    'Divider',
]
