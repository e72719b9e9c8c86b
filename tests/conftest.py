import pytest

from baseline_sentinel.catalog import DEFAULT_CATALOG
from baseline_sentinel.context import ScanContext, default_context
from baseline_sentinel.models import FeatureStatus
from baseline_sentinel.oracle import FeatureOracle


def make_context(status="limited", overrides=None, target=FeatureStatus.WIDELY):
    """Context whose oracle gives every catalogued feature ``status``."""
    statuses = {key: status for key in DEFAULT_CATALOG}
    statuses.update(overrides or {})
    return ScanContext(oracle=FeatureOracle.from_statuses(statuses), target=target)


@pytest.fixture
def ctx():
    return make_context()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("BASELINE_SENTINEL_TARGET", "BASELINE_SENTINEL_DATASET", "BASELINE_SENTINEL_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    default_context.cache_clear()
