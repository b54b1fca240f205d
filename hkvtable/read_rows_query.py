# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass

from hkvtable._helpers import _check_argument
from hkvtable._helpers import _to_bytes

# empty row key. As a scan start it means "first row", as a stop "no bound"
EMPTY_START_ROW = b""
EMPTY_END_ROW = EMPTY_START_ROW

_MAX_TIMESTAMP = 2**63 - 1


@dataclass(frozen=True)
class TimeRange:
    """Half-open timestamp window [min_stamp, max_stamp)"""

    min_stamp: int = 0
    max_stamp: int = _MAX_TIMESTAMP

    def __post_init__(self):
        if self.min_stamp < 0:
            raise ValueError("min_stamp must be >= 0")
        if self.max_stamp < self.min_stamp:
            raise ValueError("max_stamp is smaller than min_stamp")


class _ReadQuery:
    def __init__(self):
        self.family_map: dict[str, set[bytes | None] | None] = OrderedDict()
        self.filter_string: str | None = None
        self.time_range: TimeRange | None = None
        self._max_versions = 1

    def add_family(self, family: str):
        """
        Select every column of ``family``
        """
        self.family_map[family] = None
        return self

    def add_column(self, family: str, qualifier: str | bytes | None):
        """
        Select a single column. A None qualifier selects the bare column
        """
        columns = self.family_map.get(family)
        if columns is None:
            columns = set()
            self.family_map[family] = columns
        columns.add(_to_bytes(qualifier))
        return self

    def set_time_range(self, min_stamp: int, max_stamp: int):
        self.time_range = TimeRange(min_stamp, max_stamp)
        return self

    def set_time_stamp(self, timestamp: int):
        self.time_range = TimeRange(timestamp, timestamp + 1)
        return self

    def set_filter(self, filter_string: str | None):
        self.filter_string = filter_string
        return self

    @property
    def max_versions(self) -> int:
        return self._max_versions

    @max_versions.setter
    def max_versions(self, max_versions: int):
        """
        Raises:
          - ValueError if max_versions is < 1
        """
        if max_versions < 1:
            raise ValueError("max_versions must be >= 1")
        self._max_versions = max_versions

    def set_max_versions(self, max_versions: int = _MAX_TIMESTAMP):
        self.max_versions = max_versions
        return self

    @property
    def families(self) -> list[str]:
        return list(self.family_map.keys())


class Get(_ReadQuery):
    """
    Read a single row
    """

    def __init__(self, row: str | bytes):
        super().__init__()
        _check_argument(row is not None, "row is null")
        self.row: bytes = _to_bytes(row)  # type: ignore[assignment]

    def __repr__(self):
        return f"Get(row={self.row!r}, families={self.families})"


class Scan(_ReadQuery):
    """
    Read a range of rows.

    By default the start row is inclusive and the stop row exclusive.
    Leaving both empty scans the whole family.
    """

    def __init__(
        self,
        start_row: str | bytes = EMPTY_START_ROW,
        stop_row: str | bytes = EMPTY_END_ROW,
        include_start_row: bool = True,
        include_stop_row: bool = False,
    ):
        super().__init__()
        self.start_row: bytes = _to_bytes(start_row)  # type: ignore[assignment]
        self.stop_row: bytes = _to_bytes(stop_row)  # type: ignore[assignment]
        self.include_start_row = include_start_row
        self.include_stop_row = include_stop_row
        # number of rows the server returns per round trip. -1 leaves it unset
        self.batch = -1

    def with_start_row(self, start_row: str | bytes, inclusive: bool = True) -> "Scan":
        self.start_row = _to_bytes(start_row)  # type: ignore[assignment]
        self.include_start_row = inclusive
        return self

    def with_stop_row(self, stop_row: str | bytes, inclusive: bool = False) -> "Scan":
        self.stop_row = _to_bytes(stop_row)  # type: ignore[assignment]
        self.include_stop_row = inclusive
        return self

    def set_batch(self, batch: int) -> "Scan":
        self.batch = batch
        return self

    def is_full_scan(self) -> bool:
        return self.start_row == EMPTY_START_ROW and self.stop_row == EMPTY_END_ROW

    def __repr__(self):
        return (
            f"Scan(start_row={self.start_row!r}, stop_row={self.stop_row!r}, "
            f"families={self.families})"
        )
