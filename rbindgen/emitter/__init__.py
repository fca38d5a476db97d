from .emitter import BindingEmitter, enum_literal
from .layout import RecordPlan, plan_record
from .rust_items import (ConstItem, ExternBlock, ExternFn, ExternStatic,
                         FieldDecl, ImplItem, RustItem, StructItem,
                         TypeAliasItem)
from .type_mapping import TypeMapper

__all__ = [
    'BindingEmitter',
    'ConstItem',
    'ExternBlock',
    'ExternFn',
    'ExternStatic',
    'FieldDecl',
    'ImplItem',
    'RecordPlan',
    'RustItem',
    'StructItem',
    'TypeAliasItem',
    'TypeMapper',
    'enum_literal',
    'plan_record',
]
