"""
Unit tests for mapping CRUD and execution orchestration
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock
from mappings.coordinator import MappingExecutionCoordinator
from mappings.model import MappingModel
from models.base import SyncType
from schemas.api import ExecuteAllResult, MappingExecutionResult
from schemas.mapping import ColumnMapping, TableMapping
from core.exceptions import RequestError, TransportError, ValidationError


def _mapping(**overrides):
    data = {
        "name": "Users",
        "source_table": "users",
        "destination_table": "customers",
        "primary_key": "id",
        "column_mappings": [ColumnMapping(source_column="email", destination_column="email")],
    }
    data.update(overrides)
    return TableMapping(**data)


def _listing(*mappings):
    return {"success": True, "mappings": list(mappings)}


class TestRefresh:
    """Test mapping list snapshots"""
    
    @pytest.mark.asyncio
    async def test_refresh_replaces_snapshot(self, mock_client):
        mock_client.get.return_value = _listing({"id": 1, "name": "Users", "enabled": True})
        coordinator = MappingExecutionCoordinator(mock_client)
        
        mappings = await coordinator.refresh()
        
        mock_client.get.assert_awaited_once_with("/mappings")
        assert [m.id for m in mappings] == ["1"]
        assert coordinator.loaded
        assert coordinator.get(1).name == "Users"
    
    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_snapshot(self, mock_client):
        coordinator = MappingExecutionCoordinator(mock_client)
        coordinator.mappings = [_mapping(id="1")]
        mock_client.get.side_effect = TransportError()
        
        with pytest.raises(TransportError):
            await coordinator.refresh()
        
        assert [m.id for m in coordinator.mappings] == ["1"]
    
    @pytest.mark.asyncio
    async def test_overtaken_refresh_is_discarded(self, mock_client):
        """A slow older response must not overwrite a newer snapshot"""
        slow_response = asyncio.Event()
        
        async def get(path):
            if mock_client.get.await_count == 1:
                await slow_response.wait()
                return _listing({"id": "old"})
            return _listing({"id": "new"})
        
        mock_client.get.side_effect = get
        coordinator = MappingExecutionCoordinator(mock_client)
        
        older = asyncio.ensure_future(coordinator.refresh())
        await asyncio.sleep(0)
        await coordinator.refresh()
        slow_response.set()
        await older
        
        assert [m.id for m in coordinator.mappings] == ["new"]
    
    @pytest.mark.asyncio
    async def test_load_tables_and_new_draft(self, mock_client):
        async def get(path):
            if path == "/mappings/source/tables":
                return {"success": True, "tables": [{"table_name": "users", "columns": [{"column_name": "id"}]}]}
            return {"success": True, "tables": [{"table_name": "customers", "columns": []}]}
        
        mock_client.get.side_effect = get
        coordinator = MappingExecutionCoordinator(mock_client)
        
        await coordinator.load_tables()
        draft = coordinator.new_draft()
        
        assert isinstance(draft, MappingModel)
        assert draft.source_table_names() == ["users"]
        assert draft.destination_table_names() == ["customers"]


class TestCreate:
    """Test mapping creation"""
    
    @pytest.mark.asyncio
    async def test_incomplete_mapping_never_reaches_backend(self, mock_client):
        coordinator = MappingExecutionCoordinator(mock_client)
        
        with pytest.raises(ValidationError) as exc_info:
            await coordinator.create(_mapping(column_mappings=[]))
        
        assert exc_info.value.message == "At least one column mapping is required"
        mock_client.post.assert_not_called()
    
    @pytest.mark.asyncio
    async def test_create_posts_payload_and_refreshes(self, mock_client):
        mock_client.post.return_value = {"success": True, "id": 12}
        mock_client.get.return_value = _listing({"id": 12, "name": "Users"})
        coordinator = MappingExecutionCoordinator(mock_client)
        
        created = await coordinator.create(_mapping())
        
        path = mock_client.post.await_args.args[0]
        payload = mock_client.post.await_args.kwargs["json"]
        assert path == "/mappings"
        assert payload["name"] == "Users"
        assert "id" not in payload
        assert created.id == "12"
        assert [m.id for m in coordinator.mappings] == ["12"]
    
    @pytest.mark.asyncio
    async def test_backend_rejection_propagates(self, mock_client):
        mock_client.post.side_effect = RequestError("Destination table customers has no column email")
        coordinator = MappingExecutionCoordinator(mock_client)
        coordinator.mappings = [_mapping(id="1")]
        
        with pytest.raises(RequestError) as exc_info:
            await coordinator.create(_mapping())
        
        assert exc_info.value.message == "Destination table customers has no column email"
        mock_client.get.assert_not_called()
        assert len(coordinator.mappings) == 1
    
    @pytest.mark.asyncio
    async def test_refresh_failure_after_create_is_not_raised(self, mock_client):
        mock_client.get.side_effect = TransportError()
        coordinator = MappingExecutionCoordinator(mock_client)
        
        created = await coordinator.create(_mapping())
        
        assert created.name == "Users"


class TestToggleAndDelete:
    """Test idempotent mapping updates"""
    
    @pytest.mark.asyncio
    async def test_toggle_enabled_twice(self, mock_client):
        mock_client.get.return_value = _listing({"id": "5", "name": "Users", "enabled": True})
        coordinator = MappingExecutionCoordinator(mock_client)
        coordinator.mappings = [_mapping(id="5", enabled=False)]
        
        await coordinator.toggle_enabled("5", True)
        after_first = [m.model_dump() for m in coordinator.mappings]
        await coordinator.toggle_enabled("5", True)
        
        assert mock_client.put.await_count == 2
        mock_client.put.assert_awaited_with("/mappings/5", json={"enabled": True})
        assert coordinator.get("5").enabled is True
        assert [m.model_dump() for m in coordinator.mappings] == after_first
    
    @pytest.mark.asyncio
    async def test_update_values_are_validated(self, mock_client):
        """The cached entry holds typed values even when the follow-up refresh fails"""
        mock_client.get.side_effect = TransportError()
        coordinator = MappingExecutionCoordinator(mock_client)
        coordinator.mappings = [_mapping(id="5")]
        coordinator.loaded = True
        
        await coordinator.update("5", {"enabled": "false", "sync_type": "incremental"})
        
        mock_client.put.assert_awaited_once_with(
            "/mappings/5", json={"enabled": False, "sync_type": "incremental"}
        )
        mapping = coordinator.get("5")
        assert mapping.enabled is False
        assert mapping.sync_type == SyncType.INCREMENTAL
        with pytest.raises(ValidationError):
            await coordinator.execute_all()
    
    @pytest.mark.asyncio
    async def test_invalid_update_is_rejected(self, mock_client):
        coordinator = MappingExecutionCoordinator(mock_client)
        coordinator.mappings = [_mapping(id="5")]
        
        with pytest.raises(ValidationError):
            await coordinator.update("5", {"sync_type": "sometimes"})
        
        mock_client.put.assert_not_called()
        assert coordinator.get("5").sync_type == SyncType.FULL
    
    @pytest.mark.asyncio
    async def test_ids_are_quoted_in_paths(self, mock_client):
        coordinator = MappingExecutionCoordinator(mock_client)
        mock_client.get.return_value = _listing()
        
        await coordinator.toggle_enabled("a/b", False)
        
        mock_client.put.assert_awaited_with("/mappings/a%2Fb", json={"enabled": False})
    
    @pytest.mark.asyncio
    async def test_delete_removes_mapping(self, mock_client):
        mock_client.get.return_value = _listing()
        coordinator = MappingExecutionCoordinator(mock_client)
        coordinator.mappings = [_mapping(id="5"), _mapping(id="6")]
        
        await coordinator.delete("5")
        
        mock_client.delete.assert_awaited_once_with("/mappings/5")
        assert coordinator.mappings == []
    
    @pytest.mark.asyncio
    async def test_repeated_delete_is_success(self, mock_client):
        mock_client.delete.side_effect = RequestError("Mapping not found", status_code=404)
        mock_client.get.return_value = _listing()
        coordinator = MappingExecutionCoordinator(mock_client)
        
        await coordinator.delete("5")
        
        mock_client.get.assert_awaited_once_with("/mappings")
    
    @pytest.mark.asyncio
    async def test_delete_failure_propagates(self, mock_client):
        mock_client.delete.side_effect = RequestError("Mapping is running", status_code=409)
        coordinator = MappingExecutionCoordinator(mock_client)
        coordinator.mappings = [_mapping(id="5")]
        
        with pytest.raises(RequestError):
            await coordinator.delete("5")
        
        assert [m.id for m in coordinator.mappings] == ["5"]


class TestExecution:
    """Test single and batch execution"""
    
    @pytest.mark.asyncio
    async def test_execute(self, mock_client):
        mock_client.post.return_value = {"success": True, "synced_records": 42, "message": "done"}
        on_executed = MagicMock()
        coordinator = MappingExecutionCoordinator(mock_client, on_executed=on_executed)
        
        result = await coordinator.execute(7)
        
        mock_client.post.assert_awaited_once_with("/mappings/7/execute")
        assert result.synced_records == 42
        assert result.mapping_id == "7"
        on_executed.assert_called_once_with(result)
    
    @pytest.mark.asyncio
    async def test_execute_failure_propagates(self, mock_client):
        mock_client.post.side_effect = RequestError("Source connection lost")
        on_executed = MagicMock()
        coordinator = MappingExecutionCoordinator(mock_client, on_executed=on_executed)
        
        with pytest.raises(RequestError):
            await coordinator.execute("7")
        
        on_executed.assert_not_called()
    
    @pytest.mark.asyncio
    async def test_execute_all_carries_partial_failures(self, mock_client):
        mock_client.post.return_value = {
            "success": True,
            "total_mappings": 2,
            "synced_records": 10,
            "results": [
                {"mapping_id": "1", "success": True, "synced_records": 10},
                {"mapping_id": "2", "success": False, "error": "timeout"},
            ],
        }
        coordinator = MappingExecutionCoordinator(mock_client)
        
        result = await coordinator.execute_all()
        
        assert isinstance(result, ExecuteAllResult)
        assert result.total_mappings == 2
        assert [r["mapping_id"] for r in result.failed_mappings] == ["2"]
    
    @pytest.mark.asyncio
    async def test_execute_all_without_enabled_mappings(self, mock_client):
        mock_client.get.return_value = _listing({"id": "1", "enabled": False})
        coordinator = MappingExecutionCoordinator(mock_client)
        await coordinator.refresh()
        
        with pytest.raises(ValidationError):
            await coordinator.execute_all()
        
        mock_client.post.assert_not_called()
