"""
Pydantic schemas for data validation and serialization.

This package defines the models exchanged with the CDC backend and the
client-side drafts built from them:

Schemas:
    connection: registry entries, connection status and test results
    mapping: table mappings, joins and column mappings
    transfer: bulk transfer requests and progress snapshots
    sync: legacy sync status and rules
    api: mapping execution results

Usage:
    from schemas.mapping import TableMapping, ColumnMapping, JoinConfig
    from schemas.transfer import BulkTransferProgress

Example:
    mapping = TableMapping(
        name="Users",
        source_table="users",
        destination_table="customers",
        column_mappings=[ColumnMapping(source_column="email", destination_column="email")]
    )
    assert mapping.missing_requirements() == []

Validation:
    Backend payloads are parsed with these models; a payload that fails
    validation is reported as a ResponseParseError by the backend client.
"""

__all__ = [
    "TableMapping",
    "ColumnMapping",
    "JoinConfig",
    "BulkTransferProgress",
    "TableTransferProgress",
    "DataSourceTypeInfo",
    "ConnectionStatus",
    "SyncStatus",
    "SyncRule",
    "MappingExecutionResult",
    "ExecuteAllResult",
]
