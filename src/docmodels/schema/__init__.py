"""Schema domain — field descriptors, schema objects and assembly."""

from docmodels.schema.assembler import DeferredBinding
from docmodels.schema.assembler import SchemaAssembler
from docmodels.schema.fields import FieldType
from docmodels.schema.fields import Ref
from docmodels.schema.fields import RefState
from docmodels.schema.fields import SELF
from docmodels.schema.fields import VirtualFieldSpec
from docmodels.schema.fields import VirtualFieldType
from docmodels.schema.schema import Schema
from docmodels.schema.virtuals import VirtualBuilder
from docmodels.schema.virtuals import VirtualFieldBinder

__all__ = [
    "DeferredBinding",
    "FieldType",
    "Ref",
    "RefState",
    "SELF",
    "Schema",
    "SchemaAssembler",
    "VirtualBuilder",
    "VirtualFieldBinder",
    "VirtualFieldSpec",
    "VirtualFieldType",
]
