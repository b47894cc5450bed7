"""
Pydantic schemas for table mappings, joins and column projections
"""

from pydantic import BaseModel, Field, validator, ValidationError as PydanticValidationError
from typing import Optional, List, Any, Dict, TypeVar
from models.base import SyncType, JoinType, ColumnTransform
from core.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def validated_copy(model: ModelT, changes: Dict[str, Any]) -> ModelT:
    """
    Copy of a model with ``changes`` applied and every field re-validated.
    
    Raises:
        ValidationError: If a changed value is not valid for its field
    """
    try:
        return type(model).model_validate({**model.model_dump(), **changes})
    except PydanticValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]
        raise ValidationError(
            f"Invalid {type(model).__name__}: {errors[0]}",
            errors=errors,
            context={"fields": sorted(changes)}
        )


class ColumnMapping(BaseModel):
    """
    One source column copied into one destination column.
    
    ``default_value`` is substituted by the backend when the source value
    is null.
    """
    source_column: str = ""
    destination_column: str = ""
    transform: Optional[ColumnTransform] = None
    default_value: Optional[Any] = None
    
    @validator("transform", pre=True)
    def empty_transform_is_none(cls, v):
        if v == "" or v == "none":
            return None
        return v
    
    def with_field(self, field: str, value: Any) -> "ColumnMapping":
        """Validated copy with one field replaced"""
        if field not in type(self).model_fields:
            raise ValueError(f"Unknown column mapping field: {field}")
        return validated_copy(self, {field: value})


class JoinConfig(BaseModel):
    """
    Auxiliary table joined into a mapping.
    
    ``on`` is derived from the column pair and is never edited directly.
    """
    table: str = ""
    type: JoinType = JoinType.LEFT
    on: str = ""
    source_column: str = ""
    join_column: str = ""
    columns: List[ColumnMapping] = Field(default_factory=list)
    
    @validator("type", pre=True)
    def normalize_join_type(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


class TableMapping(BaseModel):
    """Server-side mapping definition, also used as the create payload"""
    id: Optional[str] = None
    name: str = ""
    source_table: str = ""
    destination_table: str = ""
    primary_key: str = "id"
    sync_type: SyncType = SyncType.FULL
    column_mappings: List[ColumnMapping] = Field(default_factory=list)
    joins: Optional[List[JoinConfig]] = None
    where_clause: Optional[str] = None
    enabled: bool = True
    last_sync: Optional[str] = None
    
    @validator("id", pre=True)
    def coerce_id(cls, v):
        if v is None:
            return v
        return str(v)
    
    def missing_requirements(self) -> List[str]:
        """Problems that block creation, in display order"""
        problems = []
        if not self.name or not self.source_table or not self.destination_table:
            problems.append("Name, source table, and destination table are required")
        if not self.column_mappings:
            problems.append("At least one column mapping is required")
        return problems
    
    def to_payload(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True, exclude={"id", "last_sync"})
