"""
Full-table enumeration with optional parallel segment scanning.

With a scan concurrency of N > 1, worker i scans segment i of N; DynamoDB
guarantees the segments are disjoint and together cover the table. Workers
share one cancellation event, checked before every page fetch. It is set when
a consumer returns False or a worker fails, whichever happens first, and that
first trigger decides the result: an early stop returns normally, a failure
is raised. Later failures are logged and dropped.

Cancellation never interrupts a page: a worker delivers every item of the page
it already holds before it looks at the event again. The worker whose own
consumer returned False stops at once.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from ..config import RuntimeOptions
from ..models.item import Item
from .table_gateway import TableGateway

logger = logging.getLogger(__name__)

Consumer = Callable[[Item], bool]


@dataclass
class ScanCursor:
    """Pagination state of one worker for the lifetime of one scan."""

    segment: int = 0
    total_segments: int = 1
    exclusive_start_key: Optional[Item] = None
    pages_fetched: int = 0

    @property
    def exhausted(self) -> bool:
        return self.pages_fetched > 0 and self.exclusive_start_key is None

    def request(self, consistent_read: bool = False, page_size: Optional[int] = None) -> Dict[str, Any]:
        """boto3 scan kwargs for the next page."""
        kwargs: Dict[str, Any] = {
            'ConsistentRead': consistent_read,
            'Select': 'ALL_ATTRIBUTES',
        }
        if self.total_segments > 1:
            kwargs['Segment'] = self.segment
            kwargs['TotalSegments'] = self.total_segments
        if self.exclusive_start_key is not None:
            kwargs['ExclusiveStartKey'] = self.exclusive_start_key
        if page_size:
            kwargs['Limit'] = page_size
        return kwargs

    def advance(self, response: Dict[str, Any]) -> None:
        self.pages_fetched += 1
        self.exclusive_start_key = response.get('LastEvaluatedKey') or None


class _ScanOutcome:
    """First-trigger-wins result shared by parallel workers."""

    def __init__(self):
        self.cancelled = threading.Event()
        self._lock = threading.Lock()
        self.error: Optional[BaseException] = None
        self.stopped_early = False

    def stop(self) -> None:
        with self._lock:
            if not self.cancelled.is_set():
                self.stopped_early = True
                self.cancelled.set()

    def fail(self, error: BaseException) -> bool:
        """Record `error` if nothing has triggered yet; True if it was recorded."""
        with self._lock:
            if self.cancelled.is_set():
                return False
            self.error = error
            self.cancelled.set()
            return True


class ParallelScanner:
    """Feeds every item of a table to a consumer, serially or over N segments."""

    def __init__(
        self,
        gateway: TableGateway,
        options: Optional[RuntimeOptions] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.gateway = gateway
        self.options = options or RuntimeOptions()
        self.log = log or logger

    @property
    def concurrency(self) -> int:
        return max(1, self.options.scan_concurrency)

    def range_items(self, consumer: Consumer) -> None:
        """Call `consumer` with each item until it returns False or the table is exhausted.

        In parallel mode the consumer is called from several threads at once.
        No ordering is guaranteed beyond DynamoDB's own page order.

        Raises:
            DynamoMapError: The first scan failure, if one happened before any
                consumer asked to stop
        """
        if self.concurrency <= 1:
            self._scan_segment(consumer, ScanCursor())
            return
        self._scan_parallel(consumer, self.concurrency)

    def _scan_segment(self, consumer: Consumer, cursor: ScanCursor,
                      outcome: Optional[_ScanOutcome] = None) -> bool:
        """Run the page loop for one cursor.

        Returns:
            True if the consumer asked to stop, False otherwise
        """
        while not cursor.exhausted:
            if outcome is not None and outcome.cancelled.is_set():
                self.gateway.debug("scan worker observed cancellation, segment:", cursor.segment)
                return False
            response = self.gateway.scan(**cursor.request(self.options.consistent_read, self.options.scan_page_size))
            cursor.advance(response)
            for item in response.get('Items', []):
                if not consumer(item):
                    self.gateway.debug("scan consumer stopped iteration early, segment:", cursor.segment)
                    return True
        self.gateway.debug("scan worker done, segment:", cursor.segment, "pages:", cursor.pages_fetched)
        return False

    def _scan_parallel(self, consumer: Consumer, total_segments: int) -> None:
        outcome = _ScanOutcome()
        # resolve the shared Table resource before workers race to create it
        self.gateway.table

        def work(segment: int) -> None:
            cursor = ScanCursor(segment=segment, total_segments=total_segments)
            self.gateway.debug("starting scan worker, segment:", segment)
            try:
                if self._scan_segment(consumer, cursor, outcome):
                    outcome.stop()
            except Exception as e:
                if outcome.fail(e):
                    self.log.debug(f"Scan of {self.gateway.table_name} failed in segment {segment}: {e}")
                else:
                    self.log.debug(f"Discarding later scan error in segment {segment} of {self.gateway.table_name}: {e}")

        with ThreadPoolExecutor(max_workers=total_segments, thread_name_prefix="dynamomap-scan") as executor:
            futures = [executor.submit(work, segment) for segment in range(total_segments)]
            for future in futures:
                future.result()

        if outcome.error is not None:
            raise outcome.error
