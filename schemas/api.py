"""
Pydantic schemas for mapping execution results
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any


class MappingExecutionResult(BaseModel):
    """Outcome of executing a single mapping"""
    success: bool = True
    mapping_id: Optional[str] = None
    synced_records: int = 0
    message: Optional[str] = None
    
    @validator("mapping_id", pre=True)
    def coerce_mapping_id(cls, v):
        return str(v) if v is not None else v
    
    @validator("synced_records", pre=True)
    def none_is_zero(cls, v):
        return 0 if v is None else v


class ExecuteAllResult(BaseModel):
    """
    Aggregate outcome of executing every enabled mapping.
    
    Per-mapping failures are carried in ``results``/``errors``; they do
    not make the aggregate call fail.
    """
    success: bool = True
    total_mappings: int = 0
    synced_records: int = 0
    message: Optional[str] = None
    results: List[Dict[str, Any]] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    
    @validator("total_mappings", "synced_records", pre=True)
    def none_is_zero(cls, v):
        return 0 if v is None else v
    
    @validator("results", "errors", pre=True)
    def none_is_empty(cls, v):
        return [] if v is None else v
    
    @property
    def failed_mappings(self) -> List[Dict[str, Any]]:
        return [r for r in self.results if r.get("success") is False]
