"""
Mapping CRUD and execution against the backend.

The coordinator keeps the last mapping list snapshot. Every refresh
replaces it wholesale; a refresh overtaken by a newer one is dropped so an
older response can never overwrite a newer snapshot.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote
from backend.client import BackendClient, parse_model
from mappings.model import MappingModel
from schemas.api import ExecuteAllResult, MappingExecutionResult
from schemas.connection import TableInfo
from schemas.mapping import TableMapping, validated_copy
from core.exceptions import (
    CDCClientError,
    RequestError,
    ValidationError,
)
import logging

logger = logging.getLogger(__name__)


def _mapping_path(mapping_id: str) -> str:
    return f"/mappings/{quote(str(mapping_id), safe='')}"


class MappingExecutionCoordinator:
    """
    Submits mapping create/update/delete/execute requests.
    
    Attributes:
        mappings: Last mapping list received from the backend
        source_tables: Source schema snapshot used for new drafts
        destination_tables: Destination schema snapshot used for new drafts
        on_executed: Optional callback receiving every execution result
    """
    
    def __init__(
        self,
        client: BackendClient,
        on_executed: Optional[Callable[[Union[MappingExecutionResult, ExecuteAllResult]], None]] = None
    ):
        self.client = client
        self.on_executed = on_executed
        self.mappings: List[TableMapping] = []
        self.source_tables: List[TableInfo] = []
        self.destination_tables: List[TableInfo] = []
        self.loaded = False
        self._refresh_seq = 0
    
    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    
    async def refresh(self) -> List[TableMapping]:
        """Replace the mapping snapshot with the backend's current list"""
        self._refresh_seq += 1
        seq = self._refresh_seq
        
        data = await self.client.get("/mappings")
        mappings = [
            parse_model(TableMapping, item, {"path": "/mappings"})
            for item in (data.get("mappings") or [])
        ]
        
        if seq != self._refresh_seq:
            logger.debug(f"Discarding mapping list #{seq}, superseded by #{self._refresh_seq}")
            return self.mappings
        
        self.mappings = mappings
        self.loaded = True
        logger.info(f"Loaded {len(mappings)} mappings")
        return mappings
    
    async def load_source_tables(self) -> List[TableInfo]:
        self.source_tables = await self._load_tables("/mappings/source/tables")
        return self.source_tables
    
    async def load_destination_tables(self) -> List[TableInfo]:
        self.destination_tables = await self._load_tables("/mappings/destination/tables")
        return self.destination_tables
    
    async def load_tables(self):
        await asyncio.gather(self.load_source_tables(), self.load_destination_tables())
    
    def new_draft(self) -> MappingModel:
        """Empty draft bound to the currently loaded schema snapshots"""
        return MappingModel(self.source_tables, self.destination_tables)
    
    def get(self, mapping_id: str) -> Optional[TableMapping]:
        for mapping in self.mappings:
            if mapping.id == str(mapping_id):
                return mapping
        return None
    
    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    
    async def create(self, mapping: Union[TableMapping, MappingModel]) -> TableMapping:
        """
        Create a mapping from a finished draft.
        
        Raises:
            ValidationError: Name, tables or column mappings missing (no request is issued)
            RequestError: Backend rejected the mapping; message is the backend's
        """
        if isinstance(mapping, MappingModel):
            mapping = mapping.to_mapping()
        
        errors = mapping.missing_requirements()
        if errors:
            raise ValidationError(errors[0], errors=errors, context={"name": mapping.name})
        
        data = await self.client.post("/mappings", json=mapping.to_payload())
        logger.info(f"Created mapping '{mapping.name}' ({mapping.source_table} -> {mapping.destination_table})")
        
        created = mapping
        if isinstance(data.get("mapping"), dict):
            created = parse_model(TableMapping, data["mapping"], {"path": "/mappings"})
        elif data.get("id") is not None:
            created = mapping.model_copy(update={"id": str(data["id"])})
        
        await self._refresh_quietly()
        return created
    
    async def update(self, mapping_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply a partial update to one mapping.
        
        Known fields are validated before the request; the cached entry is
        replaced by a validated copy and then by the refreshed snapshot.
        
        Raises:
            ValidationError: A changed field has an invalid value
        """
        known = {key: value for key, value in changes.items() if key in TableMapping.model_fields}
        existing = self.get(mapping_id)
        updated = validated_copy(existing or TableMapping(id=mapping_id), known)
    
        normalized = updated.model_dump(mode="json")
        payload = {**changes, **{key: normalized[key] for key in known}}
        data = await self.client.put(_mapping_path(mapping_id), json=payload)
    
        if existing is not None:
            self.mappings = [updated if m is existing else m for m in self.mappings]
    
        await self._refresh_quietly()
        return data
    
    async def toggle_enabled(self, mapping_id: str, enabled: bool):
        """Enable or disable a mapping; repeating the call is harmless"""
        await self.update(mapping_id, {"enabled": enabled})
        logger.info(f"Mapping {mapping_id} {'enabled' if enabled else 'disabled'}")
    
    async def delete(self, mapping_id: str):
        """
        Delete a mapping. A mapping the backend no longer knows counts as
        deleted, so repeating the call is harmless.
        """
        try:
            await self.client.delete(_mapping_path(mapping_id))
            logger.info(f"Deleted mapping {mapping_id}")
        except RequestError as e:
            if not e.is_not_found:
                raise
            logger.info(f"Mapping {mapping_id} already deleted")
        
        self.mappings = [m for m in self.mappings if m.id != str(mapping_id)]
        await self._refresh_quietly()
    
    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    
    async def execute(self, mapping_id: str) -> MappingExecutionResult:
        path = f"{_mapping_path(mapping_id)}/execute"
        data = await self.client.post(path)
        
        result = parse_model(MappingExecutionResult, {"mapping_id": mapping_id, **data}, {"path": path})
        logger.info(f"Mapping {mapping_id} executed, synced {result.synced_records} records")
        
        self._notify(result)
        return result
    
    async def execute_all(self) -> ExecuteAllResult:
        """
        Execute every enabled mapping in one backend call.
        
        Per-mapping failures come back inside the result.
        
        Raises:
            ValidationError: The loaded snapshot has no enabled mapping
        """
        if self.loaded and not any(m.enabled for m in self.mappings):
            raise ValidationError("No enabled mappings to execute")
        
        data = await self.client.post("/mappings/execute-all")
        result = parse_model(ExecuteAllResult, data, {"path": "/mappings/execute-all"})
        
        logger.info(
            f"Executed {result.total_mappings} mappings, "
            f"synced {result.synced_records} records"
        )
        if result.failed_mappings or result.errors:
            logger.warning(
                f"{len(result.failed_mappings) or len(result.errors)} mappings reported failures during execute-all"
            )
        
        self._notify(result)
        return result
    
    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    
    async def _load_tables(self, path: str) -> List[TableInfo]:
        data = await self.client.get(path)
        tables = [parse_model(TableInfo, t, {"path": path}) for t in (data.get("tables") or [])]
        logger.info(f"Loaded {len(tables)} tables from {path}")
        return tables
    
    async def _refresh_quietly(self):
        try:
            await self.refresh()
        except CDCClientError as e:
            logger.warning(f"Mapping list refresh failed: {e.message}")
    
    def _notify(self, result):
        if self.on_executed is not None:
            self.on_executed(result)
