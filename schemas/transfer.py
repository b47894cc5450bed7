"""
Pydantic schemas for bulk table transfers
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List
from datetime import datetime
from models.base import TransferStatus, TableTransferStatus, TransferOperation


class SourceTableInfo(BaseModel):
    table_name: str
    column_count: int = 0
    row_count: int = 0


class DestinationTableStatus(BaseModel):
    table_name: str
    exists: bool = False
    row_count: Optional[int] = None


class TransferOptions(BaseModel):
    create_tables: bool = True
    transfer_data: bool = True
    overwrite_existing: bool = False


class BulkTransferRequest(TransferOptions):
    tables: List[str] = Field(..., min_length=1)


class TableTransferProgress(BaseModel):
    """
    Progress of a single table inside a transfer.
    
    A table may fail while the transfer as a whole keeps running.
    """
    table_name: str
    status: TableTransferStatus = TableTransferStatus.PENDING
    total_records: Optional[int] = None
    transferred_records: Optional[int] = None
    error: Optional[str] = None


class BulkTransferProgress(BaseModel):
    """
    Snapshot of a bulk transfer as reported by the backend.
    
    Ensures:
    - completed_tables never exceeds total_tables
    - errors and table_progress are always lists
    """
    transfer_id: str
    status: TransferStatus = TransferStatus.PENDING
    total_tables: int = Field(0, ge=0)
    completed_tables: int = Field(0, ge=0)
    current_table: Optional[str] = None
    current_operation: Optional[TransferOperation] = None
    total_records: Optional[int] = None
    transferred_records: Optional[int] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    errors: List[str] = Field(default_factory=list)
    table_progress: List[TableTransferProgress] = Field(default_factory=list)
    
    @validator("transfer_id", pre=True)
    def coerce_transfer_id(cls, v):
        return str(v) if v is not None else v
    
    @validator("completed_tables")
    def completed_within_total(cls, v, values):
        total = values.get("total_tables")
        if total is not None and v > total:
            raise ValueError(
                f"completed_tables ({v}) exceeds total_tables ({total})"
            )
        return v
    
    @validator("errors", "table_progress", pre=True)
    def none_is_empty(cls, v):
        return [] if v is None else v
    
    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
    
    @property
    def failed_tables(self) -> List[TableTransferProgress]:
        return [t for t in self.table_progress if t.status == TableTransferStatus.FAILED]
