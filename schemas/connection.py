"""
Pydantic schemas for data source metadata and connection state
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any, Union
from models.base import DataSourceType, DataSourceCategory, FieldType


# ============================================================================
# Registry Schemas
# ============================================================================

class FieldOption(BaseModel):
    value: str
    label: str


class DataSourceFormField(BaseModel):
    """
    One configuration field of a data source type.
    
    Dotted names (``tunnel.sshHost``) address a nested group of the
    connection config. ``depends_on`` names the boolean field that must be
    truthy for this field to be shown and validated.
    """
    name: str = Field(..., min_length=1)
    label: str
    type: FieldType
    required: bool = False
    description: Optional[str] = None
    default_value: Optional[Any] = None
    options: Optional[List[FieldOption]] = None
    placeholder: Optional[str] = None
    depends_on: Optional[str] = None
    
    @property
    def has_default(self) -> bool:
        return self.default_value is not None


class DataSourceCapabilities(BaseModel):
    supports_transactions: bool
    supports_real_time_cdc: bool
    supports_polling_cdc: bool
    supports_schema_introspection: bool
    supports_bulk_operations: bool
    supports_custom_queries: bool
    max_connections: Optional[int] = None
    supported_data_types: List[str] = Field(default_factory=list)


class DataSourceTypeInfo(BaseModel):
    """Registry entry describing one data source type"""
    type: DataSourceType
    name: str
    description: str
    icon: Optional[str] = None
    category: DataSourceCategory
    capabilities: DataSourceCapabilities
    config_fields: List[DataSourceFormField] = Field(default_factory=list)
    
    @validator("config_fields")
    def validate_unique_field_names(cls, v):
        seen = set()
        for field in v:
            if field.name in seen:
                raise ValueError(f"Duplicate config field name: {field.name}")
            seen.add(field.name)
        return v
    
    def get_field(self, name: str) -> Optional[DataSourceFormField]:
        for field in self.config_fields:
            if field.name == name:
                return field
        return None


# ============================================================================
# Connection Config Schemas
# ============================================================================

class TunnelConfig(BaseModel):
    """Typed view over the nested ``tunnel`` group of a connection config"""
    enabled: bool = False
    ssh_host: Optional[str] = Field(None, alias="sshHost")
    ssh_port: Optional[int] = Field(None, alias="sshPort")
    ssh_user: Optional[str] = Field(None, alias="sshUser")
    ssh_private_key: Optional[str] = Field(None, alias="sshPrivateKey")
    ssh_password: Optional[str] = Field(None, alias="sshPassword")
    local_port: Optional[int] = Field(None, alias="localPort")
    remote_host: Optional[str] = Field(None, alias="remoteHost")
    remote_port: Optional[int] = Field(None, alias="remotePort")
    
    class Config:
        populate_by_name = True


class LegacyConnectionConfig(BaseModel):
    """Single-pair PostgreSQL connection used by the legacy endpoints"""
    name: str
    host: str = "localhost"
    port: int = 5432
    database: str = ""
    user: str = ""
    password: Optional[str] = None


# ============================================================================
# Connection Status Schemas
# ============================================================================

class ConnectionMetadata(BaseModel):
    version: Optional[str] = None
    server_info: Optional[str] = None


class TestResultMetadata(ConnectionMetadata):
    capabilities: Optional[List[str]] = None


class TestResult(BaseModel):
    """Outcome of a connection test; ``success: false`` is a valid answer"""
    success: bool
    message: str = ""
    metadata: Optional[TestResultMetadata] = None
    
    __test__ = False


class SingleConnectionStatus(BaseModel):
    connected: bool = False
    error: Optional[str] = None
    last_check: Optional[str] = None
    adapter_type: Optional[DataSourceType] = None
    capabilities: Optional[DataSourceCapabilities] = None
    metadata: Optional[ConnectionMetadata] = None


class ConnectionStatus(BaseModel):
    """Connection state of both pipeline sides; passwords arrive masked"""
    source: Optional[SingleConnectionStatus] = None
    destination: Optional[SingleConnectionStatus] = None
    source_config: Optional[Dict[str, Any]] = None
    dest_config: Optional[Dict[str, Any]] = None
    
    @property
    def both_connected(self) -> bool:
        return bool(
            self.source and self.source.connected
            and self.destination and self.destination.connected
        )


class SupportedDataSourcesResponse(BaseModel):
    supported_types: List[DataSourceType] = Field(default_factory=list)


class SchemaProperty(BaseModel):
    type: str
    description: str = ""
    default: Optional[Any] = None
    enum: Optional[List[str]] = None


class ConfigurationSchema(BaseModel):
    required: List[str] = Field(default_factory=list)
    optional: List[str] = Field(default_factory=list)
    properties: Dict[str, SchemaProperty] = Field(default_factory=dict)


class ConfigurationSchemaResponse(BaseModel):
    config_schema: ConfigurationSchema = Field(..., alias="schema")
    
    class Config:
        populate_by_name = True


class ColumnInfo(BaseModel):
    """Introspected column of a source or destination table"""
    column_name: str
    data_type: Optional[str] = None
    is_nullable: Optional[Union[bool, str]] = None
    is_primary_key: bool = False


class TableInfo(BaseModel):
    table_name: str
    columns: List[ColumnInfo] = Field(default_factory=list)
    
    def column_names(self) -> List[str]:
        return [c.column_name for c in self.columns]
