"""
Statistic values and their merge rules.

A stored statistic is either a Total (running sum of every uploaded value)
or a RollingAverage (running sum plus sample count, read back as the mean).
Both remember the numeric family they were first written with; integers may
be widened into a float record but floats are never narrowed into an
integer record.
"""
import enum
import math
from dataclasses import dataclass
from typing import Optional, Union
from uuid import UUID

from app.services.stats.errors import KindConflict, TypeMismatch, ValueOverflow

Number = Union[int, float]

# Integer records are stored as signed 64-bit columns
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


class StatKind(str, enum.Enum):
    TOTAL = "total"
    ROLLING_AVERAGE = "rolling_average"


class NumericFamily(str, enum.Enum):
    INT = "int"
    FLOAT = "float"


class UploadType(str, enum.Enum):
    INT_TOTAL = "int_total"
    INT_ROLLING_AVERAGE = "int_rolling_average"
    FLOAT_TOTAL = "float_total"
    FLOAT_ROLLING_AVERAGE = "float_rolling_average"

    @property
    def kind(self) -> StatKind:
        if self in (UploadType.INT_TOTAL, UploadType.FLOAT_TOTAL):
            return StatKind.TOTAL
        return StatKind.ROLLING_AVERAGE

    @property
    def family(self) -> NumericFamily:
        if self in (UploadType.INT_TOTAL, UploadType.INT_ROLLING_AVERAGE):
            return NumericFamily.INT
        return NumericFamily.FLOAT


@dataclass(frozen=True)
class Total:
    family: NumericFamily
    total: Number

    kind = StatKind.TOTAL


@dataclass(frozen=True)
class RollingAverage:
    family: NumericFamily
    sum: Number
    count: int = 0

    kind = StatKind.ROLLING_AVERAGE


StatValue = Union[Total, RollingAverage]


@dataclass(frozen=True)
class StatKey:
    namespace: str
    stat_id: str
    player_id: Optional[UUID] = None  # None addresses a namespace-wide stat


@dataclass(frozen=True)
class StatRecord:
    key: StatKey
    value: StatValue

    @property
    def stat_id(self) -> str:
        return self.key.stat_id


def _widen(existing_family: NumericFamily, incoming: Number, incoming_family: NumericFamily) -> Number:
    if existing_family == incoming_family:
        return incoming
    if existing_family == NumericFamily.FLOAT:
        return float(incoming)
    raise TypeMismatch(
        f"cannot merge a {incoming_family.value} value into an {existing_family.value} record"
    )


def _checked(family: NumericFamily, value: Number) -> Number:
    if family == NumericFamily.INT:
        if not INT_MIN <= value <= INT_MAX:
            raise ValueOverflow(f"{value} does not fit a 64-bit integer record")
    elif not math.isfinite(value):
        raise ValueOverflow("merged value is not a finite float")
    return value


def merge_total(existing: Optional[Total], incoming: Number, family: NumericFamily) -> Total:
    if existing is None:
        return Total(family, incoming)
    incoming = _widen(existing.family, incoming, family)
    return Total(existing.family, _checked(existing.family, existing.total + incoming))


def merge_rolling_average(
    existing: Optional[RollingAverage], incoming: Number, family: NumericFamily
) -> RollingAverage:
    if existing is None:
        return RollingAverage(family, incoming, 1)
    incoming = _widen(existing.family, incoming, family)
    return RollingAverage(existing.family, _checked(existing.family, existing.sum + incoming), existing.count + 1)


def merge_upload(existing: Optional[StatValue], upload_type: UploadType, value: Number) -> StatValue:
    """Apply one uploaded value to the stored record, enforcing that kinds never change."""
    kind = upload_type.kind
    if existing is not None and existing.kind != kind:
        raise KindConflict(
            f"stat is stored as {existing.kind.value}, upload is {kind.value}"
        )
    if kind == StatKind.TOTAL:
        return merge_total(existing, value, upload_type.family)
    return merge_rolling_average(existing, value, upload_type.family)


def project(value: StatValue) -> float:
    if isinstance(value, Total):
        return float(value.total)
    if value.count == 0:
        return 0.0
    return value.sum / value.count

