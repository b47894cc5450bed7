"""
Join specifications attached to a mapping draft.

Two side effects of ``update_join`` are part of the contract:
- changing ``table`` clears ``join_column`` and ``on``
- changing ``source_column`` or ``join_column`` recomputes ``on``
"""

from typing import Any, List, Optional, TYPE_CHECKING
from models.base import JoinType
from schemas.connection import ColumnInfo
from schemas.mapping import ColumnMapping, JoinConfig, validated_copy
from core.exceptions import ValidationError
import logging

if TYPE_CHECKING:
    from mappings.model import MappingModel

logger = logging.getLogger(__name__)

UPDATABLE_JOIN_FIELDS = ("table", "type", "source_column", "join_column")


def build_join_condition(source_table: str, join: JoinConfig) -> str:
    """``"src"."col" = "joined"."col"``, or ``""`` while any part is missing"""
    if not (source_table and join.table and join.source_column and join.join_column):
        return ""
    return f'"{source_table}"."{join.source_column}" = "{join.table}"."{join.join_column}"'


class JoinBuilder:
    """
    Edits the join list of one MappingModel draft.
    
    Joins are addressed by index; list order is insertion order.
    """
    
    def __init__(self, model: "MappingModel"):
        self.model = model
    
    @property
    def joins(self) -> List[JoinConfig]:
        if self.model.draft.joins is None:
            self.model.draft.joins = []
        return self.model.draft.joins
    
    def __len__(self) -> int:
        return len(self.joins)
    
    def add_join(self) -> JoinConfig:
        join = JoinConfig()
        self.joins.append(join)
        return join
    
    def update_join(self, index: int, field: str, value: Any) -> JoinConfig:
        """
        Update one field of a join.
        
        Raises:
            ValueError: If ``field`` is not user-editable
            ValidationError: If the join would target the main source table
                or a table missing from the source schema
        """
        if field not in UPDATABLE_JOIN_FIELDS:
            raise ValueError(f"Join field is not editable: {field}")
        
        join = self.joins[index]
        
        if field == "table" and value:
            self._check_join_table(value)
        
        updated = validated_copy(join, {field: value})
        
        if field == "table":
            updated.join_column = ""
            updated.on = ""
            logger.debug(f"Join {index} table changed to '{value}', cleared join column and condition")
        elif field in ("source_column", "join_column"):
            updated.on = build_join_condition(self.model.draft.source_table, updated)
        
        self.joins[index] = updated
        return updated
    
    def remove_join(self, index: int) -> JoinConfig:
        return self.joins.pop(index)
    
    def add_join_column(self, join_index: int) -> ColumnMapping:
        column = ColumnMapping()
        self.joins[join_index].columns.append(column)
        return column
    
    def update_join_column(self, join_index: int, column_index: int, field: str, value: Any) -> ColumnMapping:
        columns = self.joins[join_index].columns
        columns[column_index] = columns[column_index].with_field(field, value)
        return columns[column_index]
    
    def remove_join_column(self, join_index: int, column_index: int) -> ColumnMapping:
        return self.joins[join_index].columns.pop(column_index)
    
    def refresh_conditions(self):
        """Recompute every ON-condition against the current main source table"""
        for join in self.joins:
            join.on = build_join_condition(self.model.draft.source_table, join)
    
    def detach_table(self, table_name: str):
        """Reset joins that target ``table_name`` as if their table had been cleared"""
        for join in self.joins:
            if join.table == table_name:
                join.table = ""
                join.join_column = ""
                join.on = ""
    
    def available_columns(self, join_table: str, join_type: Optional[Any]) -> List[ColumnInfo]:
        """
        Columns offered for a join's source side.
        
        LEFT offers the main source table's columns and RIGHT the joined
        table's columns; INNER and unknown types offer nothing. Nothing is
        offered until both tables are present in the source schema.
        """
        if not join_table:
            return []
        
        main_table = self.model.source_table_info()
        joined_table = self.model.source_table_info(join_table)
        if main_table is None or joined_table is None:
            return []
        
        try:
            kind = JoinType(str(getattr(join_type, "value", join_type)).upper())
        except ValueError:
            return []
        
        if kind == JoinType.LEFT:
            return list(main_table.columns)
        if kind == JoinType.RIGHT:
            return list(joined_table.columns)
        return []
    
    def destination_columns(self) -> List[ColumnInfo]:
        """Targets offered for join column projections"""
        return self.model.destination_columns()
    
    def _check_join_table(self, table_name: str):
        if table_name == self.model.draft.source_table:
            raise ValidationError(
                "Join table must differ from the source table",
                context={"table": table_name}
            )
        if self.model.source_table_info(table_name) is None:
            raise ValidationError(
                f"Unknown source table: {table_name}",
                context={"table": table_name}
            )
