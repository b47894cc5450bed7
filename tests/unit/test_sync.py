"""
Unit tests for sync status polling and sync rules
"""

import asyncio
import pytest
from sync.poller import SyncStatusPoller, POLL_JOB_ID
from sync.rules import SyncRuleManager, FALLBACK_PRIMARY_KEYS
from schemas.connection import ColumnInfo, ConnectionStatus
from schemas.sync import SyncRule
from models.base import SyncType
from core.exceptions import RequestError, ResponseParseError, TransportError, ValidationError


CONNECTION_STATUS = {
    "source": {"connected": True, "adapter_type": "postgresql"},
    "destination": {"connected": False, "error": "password authentication failed"},
}
SYNC_STATUS = {"sync_running": True, "errors": None, "total_records_synced": 120}
RULES = [{"table_name": "users", "primary_key": "id", "sync_type": "incremental"}]


def _route(responses):
    async def get(path, **kwargs):
        response = responses[path]
        if isinstance(response, Exception):
            raise response
        return response
    return get


@pytest.fixture
def poller(mock_client, mock_scheduler):
    return SyncStatusPoller(mock_client, scheduler=mock_scheduler, interval=5)


class TestSyncStatusPoller:
    """Test periodic status refresh"""
    
    def test_interval_bounds(self, mock_client, mock_scheduler):
        with pytest.raises(ValueError):
            SyncStatusPoller(mock_client, scheduler=mock_scheduler, interval=4)
        with pytest.raises(ValueError):
            SyncStatusPoller(mock_client, scheduler=mock_scheduler, interval=11)
        
        assert SyncStatusPoller(mock_client, scheduler=mock_scheduler, interval=10).interval == 10
    
    @pytest.mark.asyncio
    async def test_refresh_replaces_both_snapshots(self, poller, mock_client):
        mock_client.get.side_effect = _route({
            "/connections/status": CONNECTION_STATUS,
            "/sync/status": SYNC_STATUS,
        })
        
        assert await poller.refresh()
        
        assert poller.connection_status.source.connected
        assert not poller.connection_status.both_connected
        assert poller.sync_status.sync_running
        assert poller.sync_status.errors == []
        assert poller.last_error is None
    
    @pytest.mark.asyncio
    async def test_partial_failure_keeps_previous_state(self, poller, mock_client):
        previous = ConnectionStatus()
        poller.connection_status = previous
        mock_client.get.side_effect = _route({
            "/connections/status": CONNECTION_STATUS,
            "/sync/status": TransportError(),
        })
        
        assert not await poller.refresh()
        
        assert poller.connection_status is previous
        assert poller.sync_status is None
        assert poller.last_error
    
    @pytest.mark.asyncio
    async def test_malformed_status_is_transient(self, poller, mock_client):
        mock_client.get.side_effect = _route({
            "/connections/status": CONNECTION_STATUS,
            "/sync/status": {"total_records_synced": "many"},
        })
        
        assert not await poller.refresh()
        assert poller.sync_status is None
    
    @pytest.mark.asyncio
    async def test_refresh_all_reloads_rules(self, poller, mock_client):
        mock_client.get.side_effect = _route({
            "/connections/status": CONNECTION_STATUS,
            "/sync/status": SYNC_STATUS,
            "/sync/rules": RULES,
        })
        
        assert await poller.refresh_all()
        
        assert [r.table_name for r in poller.rules.rules] == ["users"]
        assert poller.rules.rules[0].sync_type == SyncType.INCREMENTAL
    
    def test_start_and_stop(self, poller, mock_scheduler):
        poller.start()
        
        job = mock_scheduler.jobs[POLL_JOB_ID]
        assert job.func == poller.refresh
        assert job.trigger.interval.total_seconds() == 5
        assert poller.running
        
        poller.stop()
        
        assert not poller.running
    
    @pytest.mark.asyncio
    async def test_results_after_stop_are_discarded(self, poller, mock_client):
        release = asyncio.Event()
        
        async def get(path, **kwargs):
            await release.wait()
            return CONNECTION_STATUS if path == "/connections/status" else SYNC_STATUS
        
        mock_client.get.side_effect = get
        
        in_flight = asyncio.ensure_future(poller.refresh())
        await asyncio.sleep(0)
        poller.stop()
        release.set()
        
        assert not await in_flight
        assert poller.connection_status is None
        assert poller.sync_status is None


class TestSyncRuleManager:
    """Test sync rule management"""
    
    @pytest.mark.asyncio
    async def test_start_sync(self, mock_client):
        mock_client.post.return_value = {"message": "Sync started for 3 tables"}
        
        message = await SyncRuleManager(mock_client).start_sync()
        
        mock_client.post.assert_awaited_once_with("/sync/start", envelope=False)
        assert message == "Sync started for 3 tables"
    
    @pytest.mark.asyncio
    async def test_start_sync_error_payload(self, mock_client):
        mock_client.post.return_value = {"error": "No sync rules configured"}
        
        with pytest.raises(RequestError) as exc_info:
            await SyncRuleManager(mock_client).start_sync()
        
        assert exc_info.value.message == "No sync rules configured"
    
    @pytest.mark.asyncio
    async def test_load_rules(self, mock_client):
        mock_client.get.return_value = RULES
        manager = SyncRuleManager(mock_client)
        
        rules = await manager.load_rules()
        
        assert rules == [SyncRule(table_name="users", primary_key="id", sync_type=SyncType.INCREMENTAL)]
    
    @pytest.mark.asyncio
    async def test_unexpected_rules_payload(self, mock_client):
        mock_client.get.return_value = {"rules": RULES}
        
        with pytest.raises(ResponseParseError):
            await SyncRuleManager(mock_client).load_rules()
    
    @pytest.mark.asyncio
    async def test_add_rule_requires_table_and_key(self, mock_client):
        manager = SyncRuleManager(mock_client)
        
        with pytest.raises(ValidationError) as exc_info:
            await manager.add_rule(SyncRule(table_name="users"))
        
        assert exc_info.value.errors == ["Primary key is required"]
        mock_client.post.assert_not_called()
    
    @pytest.mark.asyncio
    async def test_add_rule_posts_and_reloads(self, mock_client):
        mock_client.get.return_value = RULES
        manager = SyncRuleManager(mock_client)
        
        rules = await manager.add_rule(SyncRule(table_name="users", primary_key="id", sync_type="incremental"))
        
        mock_client.post.assert_awaited_once_with(
            "/sync/rules",
            json={"table_name": "users", "primary_key": "id", "sync_type": "incremental"},
            envelope=False
        )
        assert [r.table_name for r in rules] == ["users"]
    
    @pytest.mark.asyncio
    async def test_delete_rule(self, mock_client):
        mock_client.get.return_value = []
        manager = SyncRuleManager(mock_client)
        manager.rules = [SyncRule(table_name="user events", primary_key="id")]
        
        await manager.delete_rule("user events")
        
        mock_client.delete.assert_awaited_once_with("/sync/rules/user%20events", envelope=False)
        assert manager.rules == []
    
    @pytest.mark.asyncio
    async def test_load_source_tables(self, mock_client):
        mock_client.get.return_value = {"users": [{"column_name": "id", "is_primary_key": True}]}
        manager = SyncRuleManager(mock_client)
        
        tables = await manager.load_source_tables()
        
        mock_client.get.assert_awaited_once_with("/tables", params={"type": "source"}, envelope=False)
        assert tables["users"][0].is_primary_key
    
    def test_primary_key_options(self, mock_client):
        manager = SyncRuleManager(mock_client)
        manager.source_tables = {
            "users": [
                ColumnInfo(column_name="uuid", is_primary_key=True),
                ColumnInfo(column_name="org_id"),
                ColumnInfo(column_name="email"),
            ],
            "events": [
                ColumnInfo(column_name="name"),
                ColumnInfo(column_name="payload"),
            ],
        }
        
        assert manager.primary_key_options("users") == ["uuid", "org_id"]
        assert manager.primary_key_options("events") == ["name", "payload"]
        assert manager.primary_key_options("unknown") == FALLBACK_PRIMARY_KEYS
