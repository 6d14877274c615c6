import json
import os
import tempfile
import unittest
from pathlib import Path

from featuredash.feature_store import FeatureStore, decode_features


def _document(*names: str) -> list[dict]:
    return [
        {
            "name": name,
            "path": f"src/{name}",
            "owner": "platform",
            "features": [{"name": f"{name}_child", "path": f"src/{name}/child"}],
        }
        for name in names
    ]


class DecodeFeaturesTests(unittest.TestCase):
    def test_attaches_parents(self) -> None:
        features = decode_features(json.dumps(_document("auth")))
        child = features[0].features[0]
        self.assertIs(child.parent, features[0])
        self.assertIsNone(features[0].parent)

    def test_rejects_non_array_documents(self) -> None:
        with self.assertRaises(ValueError):
            decode_features(json.dumps({"name": "auth", "path": "src/auth"}))

    def test_rejects_invalid_features(self) -> None:
        with self.assertRaises(ValueError):
            decode_features(json.dumps([{"name": "no-path"}]))


class FeatureStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmpdir = tempfile.TemporaryDirectory()
        self.data_dir = Path(self.tmpdir.name)
        self.features_path = self.data_dir / "features.json"
        self.metadata_path = self.data_dir / "metadata.json"
        self.store = FeatureStore(self.features_path, self.metadata_path)
        self._mtime = 1_700_000_000

    def tearDown(self) -> None:
        self.tmpdir.cleanup()

    def _write(self, content: str) -> None:
        self.features_path.write_text(content, encoding="utf-8")
        # Bump mtime explicitly so consecutive writes never share a signature.
        self._mtime += 10
        os.utime(self.features_path, (self._mtime, self._mtime))

    def test_missing_file_serves_empty_snapshot_and_logs_once(self) -> None:
        with self.assertLogs("featuredash.store", level="WARNING") as captured:
            self.assertEqual(self.store.get_features(), [])
            self.assertEqual(self.store.get_features(), [])
        self.assertEqual(len(captured.records), 1)
        self.assertIn("not found", captured.output[0])

    def test_loads_and_indexes_features(self) -> None:
        self._write(json.dumps(_document("auth", "billing")))

        snapshot = self.store.get_snapshot()
        self.assertEqual([feature.name for feature in snapshot.features], ["auth", "billing"])
        self.assertEqual(len(snapshot.index), 4)
        self.assertEqual(snapshot.index.resolve_owner("src/billing/child"), "platform")
        self.assertGreater(snapshot.loaded_at, 0)

    def test_reuses_snapshot_until_file_changes(self) -> None:
        self._write(json.dumps(_document("auth")))
        first = self.store.get_snapshot()
        self.assertIs(self.store.get_snapshot(), first)

        self._write(json.dumps(_document("auth", "search")))
        second = self.store.get_snapshot()
        self.assertIsNot(second, first)
        self.assertIn("src/search", second.index)

    def test_invalidate_forces_reload(self) -> None:
        self._write(json.dumps(_document("auth")))
        first = self.store.get_snapshot()
        self.store.invalidate()
        self.assertIsNot(self.store.get_snapshot(), first)

    def test_broken_document_keeps_previous_snapshot(self) -> None:
        self._write(json.dumps(_document("auth")))
        good = self.store.get_snapshot()

        self._write("[{not json")
        with self.assertLogs("featuredash.store", level="ERROR") as captured:
            self.assertIs(self.store.get_snapshot(), good)
        self.assertIn("Failed to decode", captured.output[0])

        # The broken file is not re-parsed until it changes again.
        self.assertIs(self.store.get_snapshot(), good)

        self._write(json.dumps(_document("billing")))
        self.assertEqual([feature.name for feature in self.store.get_features()], ["billing"])

    def test_metadata(self) -> None:
        self.assertIsNone(self.store.get_metadata())

        self.metadata_path.write_text(
            json.dumps({"version": "1.4.0", "repository": "acme/shop", "generated_at": "2024-06-01"}),
            encoding="utf-8",
        )
        metadata = self.store.get_metadata()
        self.assertEqual(metadata.version, "1.4.0")
        self.assertEqual(metadata.repository, "acme/shop")
        self.assertEqual(metadata.model_dump()["generated_at"], "2024-06-01")

    def test_broken_metadata_returns_none(self) -> None:
        self.metadata_path.write_text("{", encoding="utf-8")
        with self.assertLogs("featuredash.store", level="ERROR"):
            self.assertIsNone(self.store.get_metadata())


if __name__ == "__main__":
    unittest.main()
