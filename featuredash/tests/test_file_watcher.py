import asyncio
import tempfile
import unittest
from pathlib import Path

from watchfiles import Change

from featuredash.feature_store import FeatureStore
from featuredash.file_watcher import FileWatcher


class RelevantChangesTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.data_dir = Path(self.tmpdir.name)
        self.store = FeatureStore(self.data_dir / "features.json", self.data_dir / "metadata.json")

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def test_keeps_only_store_files(self) -> None:
        changes = {
            (Change.modified, str(self.data_dir / "features.json")),
            (Change.added, str(self.data_dir / "metadata.json")),
            (Change.modified, str(self.data_dir / "notes.txt")),
        }
        result = sorted(FileWatcher.relevant_changes(changes, self.store))
        self.assertEqual(
            result,
            [
                ("modified", (self.data_dir / "features.json").resolve()),
                ("modified", (self.data_dir / "metadata.json").resolve()),
            ],
        )

    def test_reports_deletions(self) -> None:
        changes = {(Change.deleted, str(self.data_dir / "features.json"))}
        self.assertEqual(
            FileWatcher.relevant_changes(changes, self.store),
            [("deleted", (self.data_dir / "features.json").resolve())],
        )

    def test_store_without_metadata(self) -> None:
        store = FeatureStore(self.data_dir / "features.json")
        changes = {(Change.modified, str(self.data_dir / "metadata.json"))}
        self.assertEqual(FileWatcher.relevant_changes(changes, store), [])


class FileWatcherLifecycleTests(unittest.IsolatedAsyncioTestCase):
    async def test_missing_directory_stops_watching(self) -> None:
        store = FeatureStore(Path("/nonexistent-featuredash-data/features.json"))
        watcher = FileWatcher()

        with self.assertLogs("featuredash.watcher", level="WARNING"):
            await watcher.start(store)
            await asyncio.sleep(0.05)

        self.assertFalse(watcher.is_running)
        await watcher.stop()

    async def test_start_and_stop(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            store = FeatureStore(Path(tmp) / "features.json")
            watcher = FileWatcher()
            await watcher.start(store)
            self.assertTrue(watcher.is_running)

            with self.assertLogs("featuredash.watcher", level="WARNING"):
                await watcher.start(store)

            await watcher.stop()
            self.assertFalse(watcher.is_running)


if __name__ == "__main__":
    unittest.main()
