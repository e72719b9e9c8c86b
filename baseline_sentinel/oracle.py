"""
Feature oracle: answers "what is this feature's Baseline status".

The status dataset ships with the package (``data/baseline-status.json``)
and can be replaced by a refreshed copy on disk (see ``dataset.py``). It is
read once; lookups never touch the network or the disk.
"""

import json
import logging
import threading
from functools import lru_cache
from importlib import resources
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from .errors import DatasetError
from .models import FeatureStatus

logger = logging.getLogger(__name__)

BUNDLED_DATASET = "baseline-status.json"


# ============================================================================
# DATASET LOADING
# ============================================================================

def parse_dataset(data: Dict) -> Mapping[str, Mapping]:
    """Validate the raw JSON document and return an immutable feature map"""
    features = data.get("features") if isinstance(data, dict) else None
    if not isinstance(features, dict):
        raise DatasetError("dataset has no 'features' object")

    parsed = {}
    for key, entry in features.items():
        if not isinstance(entry, dict):
            raise DatasetError(f"dataset entry for '{key}' is not an object")
        parsed[key] = MappingProxyType(dict(entry))
    return MappingProxyType(parsed)


def read_dataset(path: Path) -> Mapping[str, Mapping]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise DatasetError(f"cannot read dataset {path}: {e}") from e
    return parse_dataset(data)


@lru_cache(maxsize=1)
def bundled_dataset() -> Mapping[str, Mapping]:
    """The dataset shipped with the package, loaded once per process."""
    source = resources.files("baseline_sentinel").joinpath("data").joinpath(BUNDLED_DATASET)
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise DatasetError(f"cannot read bundled dataset: {e}") from e
    return parse_dataset(data)


def load_dataset(path: Optional[str] = None) -> Mapping[str, Mapping]:
    """Load the override dataset at ``path``, falling back to the bundled one."""
    if path:
        try:
            dataset = read_dataset(Path(path))
            logger.debug("Loaded %d features from %s", len(dataset), path)
            return dataset
        except DatasetError as e:
            logger.warning("%s; falling back to bundled dataset", e)
    return bundled_dataset()


# ============================================================================
# ORACLE
# ============================================================================

class FeatureOracle:
    """Memoizing classifier over a read-only status dataset.

    The memo map is the only mutable state and is guarded by a lock, so a
    single oracle can be shared by concurrent scans.
    """

    def __init__(self, dataset: Mapping[str, Mapping]):
        self._dataset = dataset
        self._cache: Dict[str, FeatureStatus] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_statuses(cls, statuses: Mapping[str, str]) -> "FeatureOracle":
        """Build an oracle from a plain ``{feature_id: status}`` mapping."""
        return cls(parse_dataset({"features": {k: {"status": v} for k, v in statuses.items()}}))

    def __len__(self) -> int:
        return len(self._dataset)

    def __contains__(self, key: object) -> bool:
        return key in self._dataset

    def classify(self, key: str) -> FeatureStatus:
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            return cached

        status = self._lookup(key)
        with self._lock:
            self._cache[key] = status
        return status

    def _lookup(self, key: str) -> FeatureStatus:
        try:
            entry = self._dataset.get(key)
            if entry is None:
                return FeatureStatus.UNKNOWN
            return FeatureStatus(entry.get("status"))
        except (ValueError, TypeError, AttributeError) as e:
            logger.debug("Unclassifiable feature %r: %s", key, e)
            return FeatureStatus.UNKNOWN

    def doc_url(self, key: str) -> Optional[str]:
        entry = self._dataset.get(key)
        return entry.get("mdn") if entry else None

    def web_feature(self, key: str) -> Optional[str]:
        entry = self._dataset.get(key)
        return entry.get("webFeature") if entry else None

    def is_compliant(self, key: str, target: FeatureStatus = FeatureStatus.WIDELY) -> bool:
        """Fail open: only a known status below ``target`` is non-compliant."""
        status = self.classify(key)
        if status == FeatureStatus.LIMITED:
            return False
        if status == FeatureStatus.NEWLY:
            return target != FeatureStatus.WIDELY
        return True
