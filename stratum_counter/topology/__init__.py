from .snapshot import Snapshot, take_snapshot
from .correlate import claim, correlate, filter_connections

__all__ = ["Snapshot", "take_snapshot", "claim", "correlate", "filter_connections"]
