#!/usr/bin/env python3
"""
🗄️ FEED CACHE WITH SINGLE-FLIGHT REFRESH
========================================
Holds the most recent parsed CPCB snapshot and refreshes it at most once
per freshness window.

- Fresh snapshot (age < ttl): served without any network access
- Missing/expired snapshot: exactly one refresh runs; concurrent callers wait
  on the same in-flight refresh and share its result or its error
- Refresh failure: the error is surfaced unless ``serve_stale_on_error`` is
  enabled and an older snapshot exists
"""

import logging
import threading
import time
from concurrent.futures import Future
from typing import Any, Callable, Dict, Optional

from processors.feed_parser import FeedSnapshot, parse_feed
from utils.errors import AqiServiceError, UpstreamUnavailable

logger = logging.getLogger(__name__)


class FeedCache:
    """Owns the shared feed snapshot and its refresh-in-flight marker"""

    def __init__(self, fetch_document: Callable[[], Dict[str, Any]], ttl_seconds: float = 3600,
                 clock: Callable[[], float] = time.time, serve_stale_on_error: bool = False):
        self.fetch_document = fetch_document
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.serve_stale_on_error = serve_stale_on_error

        self._lock = threading.Lock()
        self._snapshot: Optional[FeedSnapshot] = None
        self._in_flight: Optional[Future] = None

    def _is_fresh(self, snapshot: Optional[FeedSnapshot], now: float) -> bool:
        return snapshot is not None and now - snapshot.fetched_at < self.ttl_seconds

    def get_snapshot(self) -> FeedSnapshot:
        """
        Return a fresh snapshot, refreshing it if needed

        Raises:
            UpstreamUnavailable: refresh failed (FeedTimeout on timeout)
            MalformedFeed: the feed could not be parsed
        """
        with self._lock:
            snapshot = self._snapshot
            if self._is_fresh(snapshot, self.clock()):
                logger.debug("Using cached AQI data")
                return snapshot

            future = self._in_flight
            leader = future is None
            if leader:
                future = Future()
                self._in_flight = future

        if not leader:
            logger.debug("Waiting on in-flight feed refresh")
            return future.result()

        try:
            fresh = self._refresh()
        except AqiServiceError as e:
            result = self._on_refresh_error(e, snapshot)
        except Exception as e:
            logger.error(f"❌ Unexpected feed refresh error: {e}")
            result = self._on_refresh_error(UpstreamUnavailable(f"Feed refresh failed: {e}"), snapshot)
        except BaseException as e:
            # interpreter shutdown or Ctrl-C: release waiting followers, then propagate
            with self._lock:
                self._in_flight = None
            future.set_exception(e)
            raise
        else:
            with self._lock:
                self._snapshot = fresh
                self._in_flight = None
            future.set_result(fresh)
            return fresh

        with self._lock:
            self._in_flight = None
        if isinstance(result, FeedSnapshot):
            future.set_result(result)
            return result
        future.set_exception(result)
        raise result

    def _refresh(self) -> FeedSnapshot:
        document = self.fetch_document()
        stations = parse_feed(document)
        snapshot = FeedSnapshot(stations=tuple(stations), fetched_at=self.clock())
        logger.info(f"✅ Feed snapshot refreshed ({len(stations)} stations)")
        return snapshot

    def _on_refresh_error(self, error: AqiServiceError, stale: Optional[FeedSnapshot]):
        if stale is not None and self.serve_stale_on_error:
            age_minutes = (self.clock() - stale.fetched_at) / 60
            logger.warning(f"⚠️ Feed refresh failed ({error.kind}); serving stale snapshot "
                           f"({age_minutes:.0f} min old)")
            return stale
        logger.error(f"❌ Feed refresh failed: {error.kind} - {error.message}")
        return error

    def invalidate(self) -> bool:
        """Drop the cached snapshot; returns whether one was cached"""
        with self._lock:
            had_snapshot = self._snapshot is not None
            self._snapshot = None
        return had_snapshot

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            snapshot = self._snapshot
            refreshing = self._in_flight is not None
        if snapshot is None:
            return {'cached': False, 'refreshing': refreshing, 'ttl_seconds': self.ttl_seconds}
        return {
            'cached': True,
            'refreshing': refreshing,
            'ttl_seconds': self.ttl_seconds,
            'age_seconds': round(self.clock() - snapshot.fetched_at, 1),
            'station_count': len(snapshot.stations),
        }
