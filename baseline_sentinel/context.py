"""
Scan context: the catalog, the oracle (and its memo cache) and the Baseline
target, passed explicitly into every scan.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from .catalog import DEFAULT_CATALOG, RemediationCatalog
from .config import SentinelConfig
from .models import FeatureStatus
from .oracle import FeatureOracle, load_dataset


@dataclass
class ScanContext:
    oracle: FeatureOracle
    catalog: RemediationCatalog = field(default=DEFAULT_CATALOG)
    target: FeatureStatus = FeatureStatus.WIDELY

    @classmethod
    def from_config(cls, config: Optional[SentinelConfig] = None) -> "ScanContext":
        config = config or SentinelConfig()
        return cls(
            oracle=FeatureOracle(load_dataset(config.dataset_path)),
            target=config.target,
        )

    def should_report(self, feature_id: str) -> bool:
        """Catalogued and below the Baseline target."""
        if feature_id not in self.catalog:
            return False
        return not self.oracle.is_compliant(feature_id, self.target)


@lru_cache(maxsize=1)
def default_context() -> ScanContext:
    """Shared context over the bundled dataset, used when a caller passes none."""
    return ScanContext.from_config(SentinelConfig.from_env())
