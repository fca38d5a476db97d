from .rustfmt import RustFmt
from .thirdparty import ThirdParty

__all__ = [
    'RustFmt',
    'ThirdParty',
]
