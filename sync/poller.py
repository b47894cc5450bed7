"""
Periodic refresh of connection and sync status.

Runs as an APScheduler interval job with a fixed cadence and no backoff.
The owning view starts the poller when it becomes active and stops it when
it is torn down; responses still in flight at that point are dropped.
"""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from backend.client import BackendClient, parse_model
from connections.service import ConnectionService
from schemas.connection import ConnectionStatus
from schemas.sync import SyncStatus
from sync.rules import SyncRuleManager
from core.config import settings
from core.exceptions import CDCClientError
import logging

logger = logging.getLogger(__name__)

POLL_JOB_ID = "sync_status_poll"
MIN_INTERVAL_SECONDS = 5
MAX_INTERVAL_SECONDS = 10


class SyncStatusPoller:
    """
    Keeps the last connection status and sync status snapshots.
    
    Both snapshots are replaced together and only when both requests
    succeed; any failure leaves the previous pair in place.
    """
    
    def __init__(
        self,
        client: BackendClient,
        scheduler: Optional[AsyncIOScheduler] = None,
        interval: Optional[float] = None,
        connections: Optional[ConnectionService] = None,
        rules: Optional[SyncRuleManager] = None
    ):
        interval = interval if interval is not None else settings.STATUS_POLL_INTERVAL_SECONDS
        if not MIN_INTERVAL_SECONDS <= interval <= MAX_INTERVAL_SECONDS:
            raise ValueError(
                f"Status poll interval must be between {MIN_INTERVAL_SECONDS} "
                f"and {MAX_INTERVAL_SECONDS} seconds, got {interval}"
            )
        
        self.client = client
        self.interval = interval
        self.scheduler = scheduler or AsyncIOScheduler()
        self._owns_scheduler = scheduler is None
        self.connections = connections or ConnectionService(client)
        self.rules = rules or SyncRuleManager(client, self.connections)
        
        self.connection_status: Optional[ConnectionStatus] = None
        self.sync_status: Optional[SyncStatus] = None
        self.last_error: Optional[str] = None
        self._generation = 0
    
    @property
    def running(self) -> bool:
        return self.scheduler.get_job(POLL_JOB_ID) is not None
    
    async def refresh(self) -> bool:
        """
        Fetch connection status and sync status concurrently.
        
        Returns:
            True if both snapshots were replaced
        """
        generation = self._generation
        results = await asyncio.gather(
            self.connections.fetch_status(),
            self._fetch_sync_status(),
            return_exceptions=True
        )
        
        if not self._accept(generation, results):
            return False
        
        self.connection_status, self.sync_status = results
        return True
    
    async def refresh_all(self) -> bool:
        """Refresh both status snapshots and the sync rule list"""
        generation = self._generation
        results = await asyncio.gather(
            self.connections.fetch_status(),
            self._fetch_sync_status(),
            self.rules.fetch_rules(),
            return_exceptions=True
        )
        
        if not self._accept(generation, results):
            return False
        
        self.connection_status, self.sync_status, self.rules.rules = results
        return True
    
    def start(self):
        """Refresh now, then every ``interval`` seconds until ``stop``"""
        self.scheduler.add_job(
            self.refresh,
            trigger=IntervalTrigger(seconds=self.interval),
            id=POLL_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=datetime.now(timezone.utc)
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(f"Sync status polling started (every {self.interval}s)")
    
    def stop(self):
        self._generation += 1
        if self.scheduler.get_job(POLL_JOB_ID) is not None:
            self.scheduler.remove_job(POLL_JOB_ID)
        logger.info("Sync status polling stopped")
    
    def close(self):
        self.stop()
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
    
    async def _fetch_sync_status(self) -> SyncStatus:
        data = await self.client.get("/sync/status", envelope=False)
        return parse_model(SyncStatus, data, {"path": "/sync/status"})
    
    def _accept(self, generation: int, results: List) -> bool:
        failures = [r for r in results if isinstance(r, BaseException)]
        for failure in failures:
            if not isinstance(failure, CDCClientError):
                raise failure
        
        if failures:
            self.last_error = failures[0].message
            logger.warning(f"Status refresh failed, keeping previous status: {self.last_error}")
            return False
        
        if generation != self._generation:
            logger.debug("Discarding status refresh that completed after stop")
            return False
        
        self.last_error = None
        return True
