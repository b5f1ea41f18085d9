"""Field catalog, mapping resolution and mapping persistence."""

from .fields import FIELD_CATALOG, FieldMapping, LogicalField
from .store import JsonFileMappingStore, MappingStore

__all__ = ['FIELD_CATALOG', 'FieldMapping', 'LogicalField', 'JsonFileMappingStore', 'MappingStore']
