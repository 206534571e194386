# ============================================================================
# CLAUDE CONTEXT - BLOB CHANGE DETECTORS
# ============================================================================
# STATUS: Listeners - candidate blob discovery
# PURPOSE: Two interchangeable strategies for finding blobs that may need processing
# EXPORTS: IBlobDetector, ContainerScanBlobDetector, AnalyticsLogBlobDetector, select_blob_detector
# INTERFACES: IBlobDetector
# PYDANTIC_MODELS: None
# DEPENDENCIES: infrastructure.blob (IBlobStore), listeners.analytics_log
# SCOPE: Called from Listener.poll on the caller's thread
# VALIDATION: None - every candidate is re-checked by the listener
# PATTERNS: Strategy
# ENTRY_POINTS: select_blob_detector(registry, blob_store, dev_account_name)
# ============================================================================

"""
Blob Change Detectors.

Both strategies produce candidates, never decisions: a candidate that
turns out to be unchanged is filtered by the freshness check. Producing
a candidate twice is harmless; missing one is not.

ContainerScanBlobDetector
    Lists every blob in every registered container on every poll.
    Complete and deterministic, cost grows with container size. Used
    for the local development store, which keeps no analytics logs.

AnalyticsLogBlobDetector
    Reads each account's Storage Analytics logs for successful writes
    to registered containers. The first poll for an account records the
    newest existing log as the watermark and then scans that account's
    containers once, so blobs written before startup are still seen.
    The watermark is in memory only; losing it means one more full scan.
"""

from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from core.models import AccountHandle, BlobItem, ContainerHandle, PollContext
from util_logger import LoggerFactory, ComponentType

from .analytics_log import parse_log_text

logger = LoggerFactory.create_logger(ComponentType.DETECTOR, "BlobDetector")

BlobCallback = Callable[[BlobItem, PollContext], None]


class IBlobDetector(ABC):
    """Strategy interface for blob change detection."""

    kind: str = "abstract"

    @abstractmethod
    def poll(self, callback: BlobCallback, context: PollContext) -> None:
        """Invoke callback once per candidate blob"""
        pass


class ContainerScanBlobDetector(IBlobDetector):
    """Full enumeration of every registered container."""

    kind = "container_scan"

    def __init__(self, containers: List[ContainerHandle], blob_store):
        self.containers = list(containers)
        self.blob_store = blob_store

    def poll(self, callback: BlobCallback, context: PollContext) -> None:
        for container in self.containers:
            count = 0
            for item in self.blob_store.list_blobs(container):
                if context.is_cancelled:
                    logger.info(f"Scan of {container} cancelled after {count} blobs")
                    return
                callback(item, context)
                count += 1
            logger.debug(f"Scanned {count} blobs in {container}")


class AnalyticsLogBlobDetector(IBlobDetector):
    """
    Analytics-log driven detection with a one-time initial scan per account.

    Watermark per account is (log blob name, lines already processed).
    The newest log blob may still be growing, so it is re-read on the
    next poll and only its new lines are processed.
    """

    kind = "analytics_log"

    def __init__(self, containers: List[ContainerHandle], blob_store):
        self.blob_store = blob_store
        self._accounts: Dict[str, AccountHandle] = {}
        self._containers: Dict[str, Dict[str, ContainerHandle]] = {}
        for container in containers:
            account_key = container.account.key
            self._accounts.setdefault(account_key, container.account)
            self._containers.setdefault(account_key, {})[container.name] = container
        self._watermarks: Dict[str, Optional[Tuple[str, int]]] = {}

    def poll(self, callback: BlobCallback, context: PollContext) -> None:
        for account_key, account in self._accounts.items():
            if context.is_cancelled:
                return
            if account_key not in self._watermarks:
                self._initial_scan(account_key, account, callback, context)
            else:
                self._read_new_logs(account_key, account, callback, context)

    def _initial_scan(self, account_key: str, account: AccountHandle,
                      callback: BlobCallback, context: PollContext) -> None:
        # Watermark first: writes that land during the scan show up in later logs
        existing = self.blob_store.list_log_blobs(account)
        watermark = (existing[-1], 0) if existing else None

        logger.info(f"Initial scan of {len(self._containers[account_key])} containers "
                    f"in {account.account_name} (watermark={watermark[0] if watermark else None})")
        for container in self._containers[account_key].values():
            for item in self.blob_store.list_blobs(container):
                if context.is_cancelled:
                    return
                callback(item, context)

        # Only recorded once the scan completed; an interrupted scan is redone
        self._watermarks[account_key] = watermark

    def _read_new_logs(self, account_key: str, account: AccountHandle,
                       callback: BlobCallback, context: PollContext) -> None:
        watermark = self._watermarks[account_key]
        if watermark is None:
            names = self.blob_store.list_log_blobs(account)
        else:
            names = [watermark[0]] + self.blob_store.list_log_blobs(account, after=watermark[0])

        registered = self._containers[account_key]
        for name in names:
            if context.is_cancelled:
                return
            lines = self.blob_store.read_log_blob(account, name).splitlines()
            already_seen = watermark[1] if watermark is not None and name == watermark[0] else 0
            if already_seen >= len(lines):
                continue

            seen = set()
            for write in parse_log_text(lines[already_seen:]):
                if write.account_name.lower() != account_key:
                    continue
                container = registered.get(write.container_name)
                if container is None or (container.name, write.blob_name) in seen:
                    continue
                seen.add((container.name, write.blob_name))
                callback(BlobItem(container=container, blob_name=write.blob_name), context)

            # Advance per log blob so a failure mid-poll resumes from here
            watermark = (name, len(lines))
            self._watermarks[account_key] = watermark
            logger.debug(f"Processed {name} for {account.account_name}: {len(seen)} candidates")

    def get_watermark(self, account_name: str) -> Optional[Tuple[str, int]]:
        return self._watermarks.get(account_name.lower())


def select_blob_detector(registry, blob_store, dev_account_name: str) -> IBlobDetector:
    """
    Pick the detection strategy for a registry.

    Full scan if any container is in the development account (it keeps
    no analytics logs), otherwise analytics-log based.
    """
    containers = registry.containers
    if registry.uses_development_storage(dev_account_name):
        logger.info(f"Development storage ({dev_account_name}) registered: using container scan")
        return ContainerScanBlobDetector(containers, blob_store)
    logger.info("Using analytics log blob detection")
    return AnalyticsLogBlobDetector(containers, blob_store)
