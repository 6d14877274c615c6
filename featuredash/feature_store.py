"""Feature store: loads the scanner's features.json and keeps the latest snapshot."""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from featuredash import config
from featuredash.feature_tree import FeatureTreeIndex, attach_parents
from featuredash.models import Feature, Metadata
from featuredash.observability import record_load, record_load_failure, start_span

logger = logging.getLogger("featuredash.store")

_FEATURE_LIST = TypeAdapter(list[Feature])


@dataclass(frozen=True)
class FeatureSnapshot:
    """Decoded forest with parents attached, plus its path index."""

    features: list[Feature] = field(default_factory=list)
    index: FeatureTreeIndex = field(default_factory=lambda: FeatureTreeIndex([]))
    loaded_at: float = 0.0


def _file_signature(path: Path) -> Optional[tuple[int, int]]:
    try:
        stats = path.stat()
    except OSError:
        return None
    return stats.st_mtime_ns, stats.st_size


def decode_features(raw: str) -> list[Feature]:
    """Decode a features.json document and attach parent references."""
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError("features document must be a JSON array")
    return attach_parents(_FEATURE_LIST.validate_python(data))


class FeatureStore:
    """Serves the most recent valid features.json snapshot.

    The file is re-read whenever its mtime/size change. A document that
    fails to decode is logged and the previous snapshot stays in place.
    """

    def __init__(self, features_path: Path, metadata_path: Optional[Path] = None):
        self.features_path = features_path
        self.metadata_path = metadata_path
        self._snapshot = FeatureSnapshot()
        self._signature: Optional[tuple[int, int]] = None
        self._missing_logged = False

    def invalidate(self) -> None:
        self._signature = None

    def get_snapshot(self) -> FeatureSnapshot:
        signature = _file_signature(self.features_path)
        if signature is None:
            if not self._missing_logged:
                logger.warning(f"Features file not found: {self.features_path}")
                self._missing_logged = True
            return self._snapshot

        self._missing_logged = False
        if signature != self._signature:
            self._reload(signature)
        return self._snapshot

    def get_features(self) -> list[Feature]:
        return self.get_snapshot().features

    def get_index(self) -> FeatureTreeIndex:
        return self.get_snapshot().index

    def _reload(self, signature: tuple[int, int]) -> None:
        started = time.perf_counter()
        with start_span("store.load_features", {"path": str(self.features_path)}):
            try:
                features = decode_features(self.features_path.read_text(encoding="utf-8"))
            except OSError as e:
                logger.error(f"Failed to read features file {self.features_path}: {e}")
                record_load_failure("read")
                return
            except ValueError as e:
                # Covers JSONDecodeError and ValidationError. Broken files are
                # not re-parsed until they change again.
                logger.error(f"Failed to decode features file {self.features_path}: {e}")
                record_load_failure("decode")
                self._signature = signature
                return

        index = FeatureTreeIndex(features)
        self._snapshot = FeatureSnapshot(features=features, index=index, loaded_at=time.time())
        self._signature = signature
        duration_ms = (time.perf_counter() - started) * 1000.0
        record_load("success", duration_ms)
        logger.info(f"Loaded {len(index)} features from {self.features_path}")

    def get_metadata(self) -> Optional[Metadata]:
        if self.metadata_path is None or not self.metadata_path.exists():
            return None
        try:
            return Metadata.model_validate_json(self.metadata_path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.error(f"Failed to load metadata file {self.metadata_path}: {e}")
            return None


# Global instance reading the configured data directory
feature_store = FeatureStore(config.FEATURES_FILE, config.METADATA_FILE)
