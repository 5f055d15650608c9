from typing import List, NamedTuple, Optional


class StatsError(Exception):
    """Base class for everything the stats core raises."""


class ValidationError(StatsError):
    """
    The upload batch is malformed. Raised before any merge is attempted,
    so nothing from the batch has been persisted.
    """
    code = "invalid_batch"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidNamespace(ValidationError):
    code = "invalid_namespace"


class InvalidPlayerId(ValidationError):
    code = "invalid_player_id"


class InvalidStatId(ValidationError):
    code = "invalid_stat_id"


class UnknownStatType(ValidationError):
    code = "unknown_stat_type"


class InvalidValue(ValidationError):
    code = "invalid_value"


class MergeError(StatsError):
    """A single stat could not be merged into its stored record."""
    reason = "merge_failed"


class KindConflict(MergeError):
    reason = "kind_conflict"


class TypeMismatch(MergeError):
    reason = "type_mismatch"


class ValueOverflow(MergeError):
    reason = "overflow"


class StorageUnavailable(StatsError):
    reason = "storage_unavailable"


class FailedStat(NamedTuple):
    player_id: Optional[str]  # None for namespace-wide stats
    stat_id: str
    reason: str
    message: str


class PartialFailure(StatsError):
    """
    Some stats of an already validated batch failed to merge.
    The ones not listed in `failures` were persisted.
    """

    def __init__(self, failures: List[FailedStat]):
        super().__init__(f"{len(failures)} stat(s) failed to merge")
        self.failures = failures

    @property
    def retryable(self) -> bool:
        return any(f.reason == StorageUnavailable.reason for f in self.failures)
