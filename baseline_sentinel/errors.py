class SentinelError(Exception):
    """Base class for host-level errors raised by baseline_sentinel."""


class DatasetError(SentinelError):
    """The Baseline status dataset could not be read or refreshed."""


class ScanTargetError(SentinelError):
    """A scan or fix target does not exist or cannot be read."""
