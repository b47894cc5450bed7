"""
Sync rule management for the legacy single-pair sync
"""

from typing import Dict, List, Optional
from urllib.parse import quote
from backend.client import BackendClient, parse_model
from connections.service import ConnectionService
from models.base import DBType
from schemas.connection import ColumnInfo
from schemas.sync import SyncRule
from core.exceptions import (
    CDCClientError,
    RequestError,
    ResponseParseError,
    ValidationError,
)
import logging

logger = logging.getLogger(__name__)

# Offered when the source schema of a table is unknown
FALLBACK_PRIMARY_KEYS = ["id", "user_id", "pk", "primary_key"]


class SyncRuleManager:
    """
    Owns the sync rule list and the source schema used to pick keys.
    
    Attributes:
        rules: Last rule list received from the backend
        source_tables: Source columns keyed by table name
    """
    
    def __init__(self, client: BackendClient, connections: Optional[ConnectionService] = None):
        self.client = client
        self.connections = connections or ConnectionService(client)
        self.rules: List[SyncRule] = []
        self.source_tables: Dict[str, List[ColumnInfo]] = {}
    
    async def start_sync(self) -> str:
        """
        Start the legacy sync engine.
        
        Raises:
            RequestError: Backend answered with an ``error`` field
        """
        data = await self.client.post("/sync/start", envelope=False)
        data = data if isinstance(data, dict) else {}
        
        if data.get("error"):
            raise RequestError(data["error"], context={"path": "/sync/start"}, payload=data)
        
        message = data.get("message") or "Sync started"
        logger.info(f"Sync start requested: {message}")
        return message
    
    async def load_rules(self) -> List[SyncRule]:
        self.rules = await self.fetch_rules()
        return self.rules
    
    async def fetch_rules(self) -> List[SyncRule]:
        """Current rule list, without touching ``rules``"""
        data = await self.client.get("/sync/rules", envelope=False)
        if not isinstance(data, list):
            raise ResponseParseError(
                "Unexpected sync rules payload from backend",
                context={"path": "/sync/rules"}
            )
        
        return [parse_model(SyncRule, rule, {"path": "/sync/rules"}) for rule in data]
    
    async def add_rule(self, rule: SyncRule) -> List[SyncRule]:
        """
        Add a rule and reload the rule list.
        
        Raises:
            ValidationError: Table name or primary key missing
        """
        errors = []
        if not rule.table_name.strip():
            errors.append("Table name is required")
        if not rule.primary_key.strip():
            errors.append("Primary key is required")
        if errors:
            raise ValidationError(errors[0], errors=errors, context={"table": rule.table_name})
        
        await self.client.post(
            "/sync/rules",
            json=rule.model_dump(mode="json", exclude_none=True),
            envelope=False
        )
        logger.info(f"Added {rule.sync_type.value} sync rule for {rule.table_name} (key: {rule.primary_key})")
        
        await self._reload_quietly()
        return self.rules
    
    async def delete_rule(self, table_name: str) -> List[SyncRule]:
        path = f"/sync/rules/{quote(table_name, safe='')}"
        await self.client.delete(path, envelope=False)
        
        logger.info(f"Deleted sync rule for {table_name}")
        self.rules = [r for r in self.rules if r.table_name != table_name]
        await self._reload_quietly()
        return self.rules
    
    async def load_source_tables(self) -> Dict[str, List[ColumnInfo]]:
        self.source_tables = await self.connections.fetch_tables(DBType.SOURCE)
        return self.source_tables
    
    def primary_key_options(self, table_name: str) -> List[str]:
        """
        Candidate key columns for a table.
        
        Declared primary keys and ``*id*`` columns come first; a table
        without either offers all its columns, an unknown table the
        common key names.
        """
        columns = self.source_tables.get(table_name)
        if not columns:
            return list(FALLBACK_PRIMARY_KEYS)
        
        keys = [c.column_name for c in columns if c.is_primary_key or "id" in c.column_name]
        return keys or [c.column_name for c in columns]
    
    async def _reload_quietly(self):
        try:
            await self.load_rules()
        except CDCClientError as e:
            logger.warning(f"Sync rule reload failed: {e.message}")
