"""
Bulk transfer initiation and progress tracking.

The coordinator is an observer plus initiator: it starts a transfer, then
polls the backend on a fixed interval and mirrors whatever status the
backend reports. Transitions are never computed locally.

    NotStarted -> Pending -> Running -> {Completed | Failed}
"""

import math
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from backend.client import BackendClient, parse_model
from models.base import TransferState, TransferStatus
from schemas.transfer import (
    BulkTransferProgress,
    BulkTransferRequest,
    DestinationTableStatus,
    SourceTableInfo,
    TransferOptions,
)
from transfer.formatting import elapsed_seconds, format_duration
from core.config import settings
from core.exceptions import CDCClientError, ResponseParseError, ValidationError
import logging

logger = logging.getLogger(__name__)

POLL_JOB_ID = "bulk_transfer_poll"


class BulkTransferCoordinator:
    """
    Owns the table selection and the progress of one bulk transfer.
    
    Attributes:
        source_tables: Tables offered by the source connection
        destination_status: Existence check results for the selected tables
        options: Options used when ``start`` is called without explicit ones
        transfer_id: Id of the tracked transfer, if any
        progress: Last progress snapshot received for ``transfer_id``
    """
    
    def __init__(
        self,
        client: BackendClient,
        scheduler: Optional[AsyncIOScheduler] = None,
        poll_interval: Optional[float] = None
    ):
        self.client = client
        self.scheduler = scheduler or AsyncIOScheduler()
        self._owns_scheduler = scheduler is None
        self.poll_interval = poll_interval or settings.TRANSFER_POLL_INTERVAL_SECONDS
        
        self.source_tables: List[SourceTableInfo] = []
        self.destination_status: List[DestinationTableStatus] = []
        self.options = TransferOptions()
        self._selected: List[str] = []
        
        self.transfer_id: Optional[str] = None
        self.progress: Optional[BulkTransferProgress] = None
        self._generation = 0
    
    # ------------------------------------------------------------------
    # Source tables and selection
    # ------------------------------------------------------------------
    
    async def load_source_tables(self) -> List[SourceTableInfo]:
        path = "/bulk-transfer/source-tables"
        data = await self.client.get(path)
        self.source_tables = [
            parse_model(SourceTableInfo, t, {"path": path})
            for t in (data.get("tables") or [])
        ]
        
        available = {t.table_name for t in self.source_tables}
        self._selected = [name for name in self._selected if name in available]
        
        logger.info(f"Loaded {len(self.source_tables)} source tables for bulk transfer")
        return self.source_tables
    
    def selected_tables(self) -> List[str]:
        return list(self._selected)
    
    def select_table(self, table_name: str):
        if self.source_tables and table_name not in {t.table_name for t in self.source_tables}:
            raise ValidationError(
                f"Unknown source table: {table_name}",
                context={"table": table_name}
            )
        if table_name not in self._selected:
            self._selected.append(table_name)
    
    def deselect_table(self, table_name: str):
        self._selected = [name for name in self._selected if name != table_name]
    
    def select_all(self):
        self._selected = [t.table_name for t in self.source_tables]
    
    def deselect_all(self):
        self._selected = []
        self.destination_status = []
    
    async def check_destination(self) -> List[DestinationTableStatus]:
        """
        Ask the backend which selected tables already exist at the destination.
        
        A failed check is logged and the previous status is kept.
        """
        if not self._selected:
            self.destination_status = []
            return self.destination_status
        
        path = "/bulk-transfer/check-destination"
        try:
            data = await self.client.post(path, json={"tables": self.selected_tables()})
            self.destination_status = [
                parse_model(DestinationTableStatus, t, {"path": path})
                for t in (data.get("table_status") or [])
            ]
        except CDCClientError as e:
            logger.warning(f"Destination table check failed: {e.message}")
        
        return self.destination_status
    
    # ------------------------------------------------------------------
    # Transfer lifecycle
    # ------------------------------------------------------------------
    
    @property
    def state(self) -> TransferState:
        if self.transfer_id is None:
            return TransferState.NOT_STARTED
        if self.progress is None:
            return TransferState.PENDING
        return TransferState(self.progress.status.value)
    
    @property
    def is_active(self) -> bool:
        return self.state in (TransferState.PENDING, TransferState.RUNNING)
    
    async def start(
        self,
        table_names: Optional[Iterable[str]] = None,
        options: Optional[TransferOptions] = None
    ) -> str:
        """
        Start a bulk transfer and begin polling its progress.
        
        Args:
            table_names: Tables to transfer, defaults to the current selection
            options: Transfer options, defaults to ``self.options``
        
        Returns:
            Backend transfer id
        
        Raises:
            ValidationError: No tables given, or a transfer is still active
            RequestError: Backend refused to start the transfer
        """
        tables = list(table_names) if table_names is not None else self.selected_tables()
        if not tables:
            raise ValidationError("Please select at least one table to transfer")
        if self.is_active:
            raise ValidationError(
                "A bulk transfer is already in progress",
                context={"transfer_id": self.transfer_id}
            )
        
        options = options or self.options
        request = BulkTransferRequest(tables=tables, **options.model_dump())
        
        path = "/bulk-transfer/start"
        data = await self.client.post(path, json=request.model_dump())
        
        transfer_id = data.get("transfer_id")
        if transfer_id is None:
            raise ResponseParseError(
                "Bulk transfer start response carried no transfer_id",
                context={"path": path}
            )
        
        self._generation += 1
        self.transfer_id = str(transfer_id)
        self.progress = BulkTransferProgress(
            transfer_id=self.transfer_id,
            status=TransferStatus.PENDING,
            total_tables=len(tables)
        )
        
        logger.info(f"Started bulk transfer {self.transfer_id} for {len(tables)} tables")
        self.start_polling()
        return self.transfer_id
    
    async def poll(self, transfer_id: Optional[str] = None) -> Optional[BulkTransferProgress]:
        """
        Fetch the latest progress of a transfer and fold it into local state.
        
        Safe to call repeatedly. Once a terminal status has been seen no
        further request is issued for that transfer, and a response arriving
        after it is ignored. A failed poll is logged and the previous progress
        kept. Progress of a transfer other than the tracked one is returned
        without being stored.
        """
        transfer_id = str(transfer_id or self.transfer_id or "")
        if not transfer_id:
            return None
        
        current = self._progress_for(transfer_id)
        if current is not None and current.is_terminal:
            self._remove_poll_job()
            return current
        
        generation = self._generation
        path = f"/bulk-transfer/progress/{quote(transfer_id, safe='')}"
        
        try:
            data = await self.client.get(path)
            payload = data.get("progress") if isinstance(data, dict) else None
            if not isinstance(payload, dict):
                raise ResponseParseError(
                    "Progress response carried no progress object",
                    context={"path": path}
                )
            merged = self._merge(transfer_id, payload)
            progress = parse_model(BulkTransferProgress, merged, {"path": path})
        except CDCClientError as e:
            logger.warning(f"Progress poll for transfer {transfer_id} failed: {e.message}")
            return self._progress_for(transfer_id)
        
        if transfer_id != self.transfer_id:
            # Not the tracked transfer: report it without touching local state
            return progress
        
        if generation != self._generation:
            logger.debug(f"Discarding stale progress for transfer {transfer_id}")
            return self.progress
        
        current = self._progress_for(transfer_id)
        if current is not None and current.is_terminal:
            # A terminal status is final; a slower overlapping poll cannot undo it
            logger.debug(f"Ignoring late {progress.status.value} progress for finished transfer {transfer_id}")
            return current
        
        self.progress = progress
        logger.debug(
            f"Transfer {transfer_id}: {progress.status.value}, "
            f"{progress.completed_tables}/{progress.total_tables} tables"
        )
        
        if progress.is_terminal:
            self._remove_poll_job()
            if progress.status == TransferStatus.FAILED:
                logger.error(f"Bulk transfer {transfer_id} failed: {'; '.join(progress.errors) or 'no details'}")
            else:
                logger.info(f"Bulk transfer {transfer_id} completed ({progress.completed_tables} tables)")
        
        return progress
    
    def start_polling(self):
        """Schedule ``poll`` on a fixed interval for the tracked transfer"""
        if not self.is_active:
            return
        
        self.scheduler.add_job(
            self.poll,
            trigger=IntervalTrigger(seconds=self.poll_interval),
            id=POLL_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.debug(f"Polling transfer {self.transfer_id} every {self.poll_interval}s")
    
    def stop(self):
        """Stop polling; responses already in flight are discarded"""
        self._generation += 1
        self._remove_poll_job()
        logger.debug("Bulk transfer polling stopped")
    
    def dismiss(self):
        """
        Forget a finished transfer.
        
        Raises:
            ValidationError: The transfer is still pending or running
        """
        if self.transfer_id is None:
            return
        if self.is_active:
            raise ValidationError(
                "Cannot dismiss a transfer that is still in progress",
                context={"transfer_id": self.transfer_id}
            )
        
        self.stop()
        self.transfer_id = None
        self.progress = None
    
    def close(self):
        self.stop()
        if self._owns_scheduler and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
    
    # ------------------------------------------------------------------
    # Derived progress
    # ------------------------------------------------------------------
    
    def percent_complete(self) -> int:
        progress = self.progress
        if progress is None or not progress.total_tables:
            return 0
        return _round_percent(progress.completed_tables, progress.total_tables)
    
    def record_percent_complete(self) -> int:
        progress = self.progress
        if progress is None or not progress.total_records or not progress.transferred_records:
            return 0
        return _round_percent(progress.transferred_records, progress.total_records)
    
    def duration(self, progress: Optional[BulkTransferProgress] = None, now=None) -> Optional[str]:
        """Formatted wall-clock time since start; ``None`` before the backend reports a start time"""
        progress = progress or self.progress
        if progress is None or progress.start_time is None:
            return None
        return format_duration(elapsed_seconds(progress.start_time, progress.end_time, now))
    
    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    
    def _progress_for(self, transfer_id: str) -> Optional[BulkTransferProgress]:
        if self.progress is not None and self.progress.transfer_id == transfer_id:
            return self.progress
        return None
    
    def _merge(self, transfer_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        # Fields missing from the payload keep their last known value
        previous = self._progress_for(transfer_id)
        base = previous.model_dump() if previous is not None else {"transfer_id": transfer_id}
        return {**base, **payload}
    
    def _remove_poll_job(self):
        if self.scheduler.get_job(POLL_JOB_ID) is not None:
            self.scheduler.remove_job(POLL_JOB_ID)


def _round_percent(part: int, whole: int) -> int:
    return int(math.floor(part / whole * 100 + 0.5))
