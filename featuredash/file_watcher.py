"""File watcher service using watchfiles.

Monitors the scanner output directory and invalidates the feature store when
features.json or metadata.json change, so the next request reloads them.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from watchfiles import Change, awatch

from featuredash.feature_store import FeatureStore

logger = logging.getLogger("featuredash.watcher")


class FileWatcher:
    """Background watcher that invalidates the feature store on change."""

    def __init__(self):
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._running = False

    async def start(self, store: FeatureStore) -> None:
        """Start watching the store's data directory in a background task."""
        if self._running:
            logger.warning("File watcher already running")
            return

        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop(store, self._stop_event))
        logger.info(f"File watcher started for {store.features_path}")

    async def stop(self) -> None:
        """Stop the file watcher."""
        self._running = False
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("File watcher stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    async def _watch_loop(self, store: FeatureStore, stop_event: asyncio.Event) -> None:
        watch_dir = store.features_path.parent
        if not watch_dir.exists():
            logger.warning(f"Data directory {watch_dir} does not exist, watcher has nothing to monitor")
            self._running = False
            return

        try:
            async for changes in awatch(watch_dir, stop_event=stop_event):
                if not self._running:
                    break
                if self.relevant_changes(changes, store):
                    logger.info("Feature data changed, invalidating store")
                    store.invalidate()
        except asyncio.CancelledError:
            logger.info("File watcher task cancelled")
        except Exception as e:
            logger.error(f"File watcher error: {e}")
        finally:
            self._running = False

    @staticmethod
    def relevant_changes(changes: set[tuple[Change, str]], store: FeatureStore) -> list[tuple[str, Path]]:
        """Keep only changes to the store's files, as (change_type, path) pairs."""
        watched = {store.features_path.resolve()}
        if store.metadata_path is not None:
            watched.add(store.metadata_path.resolve())

        result = []
        for change_type, path_str in changes:
            path = Path(path_str).resolve()
            if path not in watched:
                continue
            if change_type == Change.deleted:
                result.append(("deleted", path))
            elif change_type in (Change.modified, Change.added):
                result.append(("modified", path))
        return result


# Singleton instance
file_watcher = FileWatcher()
