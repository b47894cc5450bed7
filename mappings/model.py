"""
In-progress mapping draft with schema-aware table and column selection
"""

from typing import Any, Dict, Iterable, List, Optional
from models.base import MappingDraftState, SyncType
from schemas.connection import ColumnInfo, TableInfo
from schemas.mapping import ColumnMapping, TableMapping
from mappings.joins import JoinBuilder
from core.exceptions import ValidationError
import logging

logger = logging.getLogger(__name__)

FALLBACK_PRIMARY_KEY = "id"


class MappingModel:
    """
    Owns one TableMapping draft from table selection through submission.
    
    States:
        EMPTY -> TABLES_SELECTED -> COLUMNS_CONFIGURED
        -> (JOINS_CONFIGURED) -> SUBMITTABLE
    
    Tables must come from the source/destination schema snapshots the
    model was built with. Re-selecting either table discards the column
    mappings, since they may reference columns the new table lacks.
    """
    
    def __init__(
        self,
        source_tables: Optional[Iterable[TableInfo]] = None,
        destination_tables: Optional[Iterable[TableInfo]] = None
    ):
        self._source_tables: Dict[str, TableInfo] = {}
        self._destination_tables: Dict[str, TableInfo] = {}
        self.set_schema_snapshots(source_tables or [], destination_tables or [])
        self.draft = TableMapping(joins=[])
        self.joins = JoinBuilder(self)
    
    # ------------------------------------------------------------------
    # Schema snapshots
    # ------------------------------------------------------------------
    
    def set_schema_snapshots(self, source_tables: Iterable[TableInfo], destination_tables: Iterable[TableInfo]):
        self._source_tables = {t.table_name: t for t in source_tables}
        self._destination_tables = {t.table_name: t for t in destination_tables}
    
    def source_table_names(self) -> List[str]:
        return list(self._source_tables)
    
    def destination_table_names(self) -> List[str]:
        return list(self._destination_tables)
    
    def source_table_info(self, table_name: Optional[str] = None) -> Optional[TableInfo]:
        if table_name is None:
            table_name = self.draft.source_table
        return self._source_tables.get(table_name)
    
    def source_columns(self) -> List[ColumnInfo]:
        table = self.source_table_info()
        return list(table.columns) if table else []
    
    def destination_columns(self) -> List[ColumnInfo]:
        table = self._destination_tables.get(self.draft.destination_table)
        return list(table.columns) if table else []
    
    def primary_key_candidates(self) -> List[str]:
        """Primary-key-flagged source columns, or ``['id']`` when none are flagged"""
        keys = [c.column_name for c in self.source_columns() if c.is_primary_key]
        return keys or [FALLBACK_PRIMARY_KEY]
    
    # ------------------------------------------------------------------
    # Draft fields
    # ------------------------------------------------------------------
    
    @property
    def state(self) -> MappingDraftState:
        if not (self.draft.source_table and self.draft.destination_table):
            return MappingDraftState.EMPTY
        if not self.draft.column_mappings:
            return MappingDraftState.TABLES_SELECTED
        if self.is_submittable():
            return MappingDraftState.SUBMITTABLE
        if self.draft.joins:
            return MappingDraftState.JOINS_CONFIGURED
        return MappingDraftState.COLUMNS_CONFIGURED
    
    def set_name(self, name: str):
        self.draft.name = name
    
    def set_sync_type(self, sync_type: SyncType):
        self.draft.sync_type = SyncType(sync_type)
    
    def set_enabled(self, enabled: bool):
        self.draft.enabled = bool(enabled)
    
    def set_where_clause(self, where_clause: Optional[str]):
        self.draft.where_clause = where_clause.strip() if where_clause and where_clause.strip() else None
    
    def set_primary_key(self, primary_key: str):
        """
        Raises:
            ValidationError: If the key is neither a candidate nor a source column
        """
        allowed = set(self.primary_key_candidates())
        allowed.update(c.column_name for c in self.source_columns())
        if primary_key not in allowed:
            raise ValidationError(
                f"Primary key '{primary_key}' is not a column of {self.draft.source_table or 'the source table'}",
                context={"source_table": self.draft.source_table, "primary_key": primary_key}
            )
        self.draft.primary_key = primary_key
    
    def set_source_table(self, table_name: str):
        """
        Select the main source table.
        
        Clears column mappings, resets the primary key to the first
        candidate and re-derives every join condition.
        
        Raises:
            ValidationError: If the table is not in the source schema
        """
        if table_name and table_name not in self._source_tables:
            raise ValidationError(f"Unknown source table: {table_name}", context={"table": table_name})
        
        self.draft.source_table = table_name
        self.draft.column_mappings = []
        self.draft.primary_key = self.primary_key_candidates()[0]
        
        if table_name:
            self.joins.detach_table(table_name)
        self.joins.refresh_conditions()
    
    def set_destination_table(self, table_name: str):
        """
        Raises:
            ValidationError: If the table is not in the destination schema
        """
        if table_name and table_name not in self._destination_tables:
            raise ValidationError(f"Unknown destination table: {table_name}", context={"table": table_name})
        
        self.draft.destination_table = table_name
        self.draft.column_mappings = []
    
    # ------------------------------------------------------------------
    # Column mappings
    # ------------------------------------------------------------------
    
    def add_column_mapping(self) -> ColumnMapping:
        column = ColumnMapping()
        self.draft.column_mappings.append(column)
        return column
    
    def update_column_mapping(self, index: int, field: str, value: Any) -> ColumnMapping:
        columns = self.draft.column_mappings
        columns[index] = columns[index].with_field(field, value)
        return columns[index]
    
    def remove_column_mapping(self, index: int) -> ColumnMapping:
        return self.draft.column_mappings.pop(index)
    
    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------
    
    def validation_errors(self) -> List[str]:
        return self.draft.missing_requirements()
    
    def is_submittable(self) -> bool:
        return not self.validation_errors()
    
    def validate(self):
        """
        Raises:
            ValidationError: Listing every problem that blocks creation
        """
        errors = self.validation_errors()
        if errors:
            raise ValidationError(errors[0], errors=errors, context={"name": self.draft.name})
    
    def to_mapping(self) -> TableMapping:
        """Detached copy of the draft, with an empty join list dropped"""
        mapping = self.draft.model_copy(deep=True)
        if not mapping.joins:
            mapping.joins = None
        return mapping
    
    def reset(self):
        self.draft = TableMapping(joins=[])
