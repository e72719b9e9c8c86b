"""
Refreshes the Baseline status dataset from the web platform status API.

Only the CLI ``refresh-data`` command and hosts call this; scans read the
dataset file it writes and never touch the network.
"""

import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional

import aiohttp

from .errors import DatasetError
from .models import FeatureStatus
from .oracle import bundled_dataset

logger = logging.getLogger(__name__)

WEBSTATUS_URL = "https://api.webstatus.dev/v1/features"
BATCH_SIZE = 5
BATCH_PAUSE = 0.2
REQUEST_TIMEOUT = 30

_KNOWN_STATUSES = {FeatureStatus.WIDELY.value, FeatureStatus.NEWLY.value, FeatureStatus.LIMITED.value}


def batches(items: List[str], size: int = BATCH_SIZE) -> Iterable[List[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def merge_statuses(dataset: Mapping[str, Mapping], statuses: Mapping[str, str]) -> Dict[str, Dict]:
    """Copy of ``dataset`` with each entry's status taken from its web feature, where known."""
    merged = {}
    for key, entry in dataset.items():
        entry = dict(entry)
        status = statuses.get(entry.get("webFeature") or "")
        if status in _KNOWN_STATUSES:
            entry["status"] = status
        merged[key] = entry
    return merged


class DatasetRefresher:
    """Fetch statuses in small batches and write the merged dataset file"""

    def __init__(self, output_path: str, base: Optional[Mapping[str, Mapping]] = None,
                 url: str = WEBSTATUS_URL, batch_size: int = BATCH_SIZE, pause: float = BATCH_PAUSE):
        self.output_path = Path(output_path)
        self.base = base if base is not None else bundled_dataset()
        self.url = url
        self.batch_size = batch_size
        self.pause = pause

    def web_features(self) -> List[str]:
        return sorted({entry["webFeature"] for entry in self.base.values() if entry.get("webFeature")})

    async def fetch_statuses(self, web_features: List[str],
                             session: Optional[aiohttp.ClientSession] = None) -> Dict[str, str]:
        if session is None:
            timeout = aiohttp.ClientTimeout(total=REQUEST_TIMEOUT)
            async with aiohttp.ClientSession(timeout=timeout) as own_session:
                return await self.fetch_statuses(web_features, own_session)

        statuses: Dict[str, str] = {}
        for index, batch in enumerate(batches(web_features, self.batch_size)):
            if index:
                await asyncio.sleep(self.pause)
            query = " OR ".join(f"id:{feature}" for feature in batch)
            try:
                async with session.get(self.url, params={"q": query}) as response:
                    if response.status != 200:
                        logger.warning("Status API returned %s for %s", response.status, query)
                        continue
                    data = await response.json()
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.warning("Error fetching %s: %s", query, e)
                continue

            for item in data.get("data", []):
                status = (item.get("baseline") or {}).get("status")
                if item.get("feature_id") and status:
                    statuses[item["feature_id"]] = status
        return statuses

    async def refresh(self, session: Optional[aiohttp.ClientSession] = None) -> Dict:
        web_features = self.web_features()
        logger.info("Fetching Baseline status for %d web features...", len(web_features))
        statuses = await self.fetch_statuses(web_features, session)
        if not statuses:
            raise DatasetError("No feature statuses could be fetched")

        document = {
            "generated": datetime.now().isoformat(timespec="seconds"),
            "source": self.url,
            "features": merge_statuses(self.base, statuses),
        }
        self._save(document)
        logger.info("Updated %d web features, wrote %s", len(statuses), self.output_path)
        return document

    def _save(self, document: Dict):
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2)
        except OSError as e:
            raise DatasetError(f"cannot write dataset {self.output_path}: {e}") from e


def refresh_dataset(output_path: str, base: Optional[Mapping[str, Mapping]] = None) -> Dict:
    return asyncio.run(DatasetRefresher(output_path, base).refresh())
