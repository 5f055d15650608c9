from .errors import (
    StatsError,
    ValidationError,
    InvalidNamespace,
    InvalidPlayerId,
    InvalidStatId,
    UnknownStatType,
    InvalidValue,
    MergeError,
    KindConflict,
    TypeMismatch,
    ValueOverflow,
    StorageUnavailable,
    PartialFailure,
    FailedStat,
)
from .model import (
    StatKind,
    NumericFamily,
    UploadType,
    Total,
    RollingAverage,
    StatKey,
    StatRecord,
    INT_MIN,
    INT_MAX,
    merge_total,
    merge_rolling_average,
    merge_upload,
    project,
)
from .store import StatRecordStore, InMemoryStatRecordStore
from .upload import StatBatch, StatUpload, UploadMergeEngine, parse_batch
from .reader import StatProjectionReader
