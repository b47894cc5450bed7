"""
Shared enumerations for the CDC control-plane client.

This package defines the closed vocabularies exchanged with the backend:

Enums:
    DataSourceType, DataSourceCategory, FieldType, DBType: connection setup
    SyncType, JoinType, ColumnTransform, MappingDraftState: table mappings
    TransferStatus, TableTransferStatus, TransferOperation, TransferState: bulk transfers
    SyncMethod: legacy sync status

All enums subclass ``str`` so they serialize to their wire values.

Usage:
    from models.base import DataSourceType, JoinType, TransferStatus
"""

from models.base import (
    DataSourceType,
    DataSourceCategory,
    FieldType,
    DBType,
    SyncType,
    JoinType,
    ColumnTransform,
    MappingDraftState,
    TransferStatus,
    TableTransferStatus,
    TransferOperation,
    TransferState,
    SyncMethod,
)

__all__ = [
    "DataSourceType",
    "DataSourceCategory",
    "FieldType",
    "DBType",
    "SyncType",
    "JoinType",
    "ColumnTransform",
    "MappingDraftState",
    "TransferStatus",
    "TableTransferStatus",
    "TransferOperation",
    "TransferState",
    "SyncMethod",
]
