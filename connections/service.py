"""
Connection testing, persistence and schema introspection against the backend
"""

from typing import Dict, List, Optional
from urllib.parse import quote
from backend.client import BackendClient, parse_model
from connections.config_builder import ConnectionConfigBuilder, ConnectionConfig
from models.base import DataSourceType, DBType
from schemas.connection import (
    ColumnInfo,
    ConfigurationSchemaResponse,
    ConnectionStatus,
    LegacyConnectionConfig,
    SupportedDataSourcesResponse,
    TestResult,
)
from core.exceptions import RequestError, ResponseParseError
import logging

logger = logging.getLogger(__name__)


class ConnectionService:
    """
    Drives the ``/connections`` and ``/tables`` endpoints.
    
    Configs are validated locally before any request is issued.
    """
    
    def __init__(self, client: BackendClient, builder: Optional[ConnectionConfigBuilder] = None):
        self.client = client
        self.builder = builder or ConnectionConfigBuilder()
    
    async def test_config(self, config: ConnectionConfig) -> TestResult:
        """
        Ask the backend to test a multi-source config.
        
        A failed test is returned as ``TestResult(success=False)``; only
        transport failures raise.
        """
        payload = self.builder.finalize(config)
        logger.info(f"Testing {payload['type']} connection '{payload['name']}'")
        
        try:
            data = await self.client.post("/connections/test-config", json=payload, envelope=False)
        except RequestError as e:
            return TestResult(success=False, message=e.message)
        
        result = parse_model(TestResult, data, {"path": "/connections/test-config"})
        if not result.success:
            logger.warning(f"Connection test failed for '{payload['name']}': {result.message}")
        return result
    
    async def save_config(self, config: ConnectionConfig, db_type: DBType) -> str:
        """
        Persist a multi-source config as the source or destination.
        
        Returns:
            The backend confirmation message (may be empty)
        
        Raises:
            ValidationError: Required fields missing
            RequestError: Backend rejected the config
        """
        payload = self.builder.finalize(config)
        endpoint = "source-config" if DBType(db_type) == DBType.SOURCE else "destination-config"
        
        data = await self.client.post(f"/connections/{endpoint}", json=payload)
        logger.info(f"Saved {DBType(db_type).value} connection '{payload['name']}'")
        return (data or {}).get("message") or ""
    
    async def test_connection(self, config: LegacyConnectionConfig) -> TestResult:
        try:
            data = await self.client.post("/connections/test", json=config.model_dump(), envelope=False)
        except RequestError as e:
            return TestResult(success=False, message=e.message)
        return parse_model(TestResult, data, {"path": "/connections/test"})
    
    async def save_connection(self, config: LegacyConnectionConfig, db_type: DBType) -> str:
        data = await self.client.post(f"/connections/{DBType(db_type).value}", json=config.model_dump())
        return (data or {}).get("message") or ""
    
    async def fetch_status(self) -> ConnectionStatus:
        data = await self.client.get("/connections/status", envelope=False)
        return parse_model(ConnectionStatus, data, {"path": "/connections/status"})
    
    async def fetch_supported_types(self) -> List[DataSourceType]:
        data = await self.client.get("/connections/supported-types")
        return parse_model(SupportedDataSourcesResponse, data).supported_types
    
    async def fetch_configuration_schema(self, source_type: DataSourceType) -> ConfigurationSchemaResponse:
        path = f"/connections/schema/{quote(DataSourceType(source_type).value, safe='')}"
        data = await self.client.get(path)
        return parse_model(ConfigurationSchemaResponse, data, {"path": path})
    
    async def fetch_tables(self, db_type: DBType) -> Dict[str, List[ColumnInfo]]:
        """Introspected tables of one side, keyed by table name"""
        data = await self.client.get("/tables", params={"type": DBType(db_type).value}, envelope=False)
        if not isinstance(data, dict):
            raise ResponseParseError(
                "Unexpected tables payload from backend",
                context={"path": "/tables", "type": DBType(db_type).value}
            )
        return {
            name: [parse_model(ColumnInfo, column, {"table": name}) for column in (columns or [])]
            for name, columns in data.items()
        }
