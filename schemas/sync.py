"""
Pydantic schemas for the legacy single-pair sync
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List
from models.base import DataSourceType, SyncType, SyncMethod


class PerformanceMetrics(BaseModel):
    records_per_second: Optional[float] = None
    avg_latency_ms: Optional[float] = None
    last_sync_duration_ms: Optional[float] = None


class SyncStatus(BaseModel):
    sync_running: bool = False
    errors: List[str] = Field(default_factory=list)
    connection_ready: Optional[bool] = None
    total_records_synced: int = 0
    last_sync: Optional[str] = None
    source_type: Optional[DataSourceType] = None
    destination_type: Optional[DataSourceType] = None
    sync_method: Optional[SyncMethod] = None
    performance_metrics: Optional[PerformanceMetrics] = None
    
    @validator("errors", pre=True)
    def none_is_empty(cls, v):
        return [] if v is None else v


class SyncRule(BaseModel):
    """Single-table, single-key periodic sync rule"""
    table_name: str = ""
    primary_key: str = ""
    sync_type: SyncType = SyncType.FULL
    last_sync: Optional[str] = None
