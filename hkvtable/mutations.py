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

import enum
from collections import OrderedDict
from dataclasses import dataclass

from hkvtable._helpers import _check_argument
from hkvtable._helpers import _to_bytes
from hkvtable.read_rows_query import TimeRange

# timestamp used when a write does not specify one: "latest version"
LATEST_TIMESTAMP = 2**63 - 1

# framing bytes of a serialized cell: key length, value length, row length,
# family length, timestamp and type
_KEY_VALUE_OVERHEAD = 4 + 4 + 2 + 1 + 8 + 1


class KeyValueType(enum.Enum):
    PUT = "Put"
    DELETE = "Delete"
    DELETE_COLUMN = "DeleteColumn"
    DELETE_FAMILY = "DeleteFamily"


@dataclass
class KeyValue:
    """
    A single versioned cell carried by a mutation.

    ``value`` is None for deletes.
    """

    row: bytes
    family: str
    qualifier: bytes | None
    timestamp: int
    type: KeyValueType
    value: bytes | None = None

    @property
    def length(self) -> int:
        """
        Serialized size of the cell, used for size limits and write buffer
        accounting
        """
        return (
            _KEY_VALUE_OVERHEAD
            + len(self.row)
            + len(self.family.encode("utf-8"))
            + len(self.qualifier or b"")
            + len(self.value or b"")
        )


class Mutation:
    """
    Base class for row mutations. Cells are grouped by family in insertion
    order.
    """

    def __init__(self, row: str | bytes, timestamp: int = LATEST_TIMESTAMP):
        _check_argument(row is not None, "row is null")
        self.row: bytes = _to_bytes(row)  # type: ignore[assignment]
        self.timestamp = timestamp
        self.write_to_wal = True
        self.family_map: dict[str, list[KeyValue]] = OrderedDict()

    def _add(self, key_value: KeyValue) -> None:
        self.family_map.setdefault(key_value.family, []).append(key_value)

    def _timestamp(self, timestamp: int | None) -> int:
        return self.timestamp if timestamp is None else timestamp

    @property
    def families(self) -> list[str]:
        return list(self.family_map.keys())

    def cells(self) -> list[KeyValue]:
        return [kv for kvs in self.family_map.values() for kv in kvs]

    def is_empty(self) -> bool:
        return not self.family_map

    def size(self) -> int:
        """
        Estimated size of this mutation in bytes
        """
        return sum(kv.length for kv in self.cells())

    def __len__(self) -> int:
        return len(self.cells())

    def __repr__(self):
        return f"{self.__class__.__name__}(row={self.row!r}, families={self.families})"


class Put(Mutation):
    """
    Insert or overwrite cell values of a single row.
    """

    def add_column(
        self,
        family: str,
        qualifier: str | bytes | None,
        value: str | bytes,
        timestamp: int | None = None,
    ) -> "Put":
        self._add(
            KeyValue(
                row=self.row,
                family=family,
                qualifier=_to_bytes(qualifier),
                timestamp=self._timestamp(timestamp),
                type=KeyValueType.PUT,
                value=_to_bytes(value),
            )
        )
        return self


class Append(Mutation):
    """
    Append bytes to the current value of cells in a single row. The
    operation is atomic on the server.
    """

    def add(
        self, family: str, qualifier: str | bytes | None, value: str | bytes
    ) -> "Append":
        self._add(
            KeyValue(
                row=self.row,
                family=family,
                qualifier=_to_bytes(qualifier),
                timestamp=self.timestamp,
                type=KeyValueType.PUT,
                value=_to_bytes(value),
            )
        )
        return self


class Delete(Mutation):
    """
    Delete cells of a single row.

    - ``delete_column``: one version of a column (the latest by default)
    - ``delete_columns``: all versions of a column up to a timestamp
    - ``delete_family``: all columns of a family up to a timestamp
    """

    def delete_column(
        self, family: str, qualifier: str | bytes | None, timestamp: int | None = None
    ) -> "Delete":
        self._add(
            KeyValue(
                row=self.row,
                family=family,
                qualifier=_to_bytes(qualifier),
                timestamp=self._timestamp(timestamp),
                type=KeyValueType.DELETE,
            )
        )
        return self

    def delete_columns(
        self, family: str, qualifier: str | bytes | None, timestamp: int | None = None
    ) -> "Delete":
        self._add(
            KeyValue(
                row=self.row,
                family=family,
                qualifier=_to_bytes(qualifier),
                timestamp=self._timestamp(timestamp),
                type=KeyValueType.DELETE_COLUMN,
            )
        )
        return self

    def delete_family(self, family: str, timestamp: int | None = None) -> "Delete":
        self._add(
            KeyValue(
                row=self.row,
                family=family,
                qualifier=None,
                timestamp=self._timestamp(timestamp),
                type=KeyValueType.DELETE_FAMILY,
            )
        )
        return self


class Increment:
    """
    Atomically add amounts to 64-bit counter columns of a single row.
    """

    def __init__(self, row: str | bytes):
        _check_argument(row is not None, "row is null")
        self.row: bytes = _to_bytes(row)  # type: ignore[assignment]
        self.time_range: TimeRange | None = None
        self.write_to_wal = True
        self.family_map: dict[str, dict[bytes, int]] = OrderedDict()

    def add_column(
        self, family: str, qualifier: str | bytes, amount: int
    ) -> "Increment":
        self.family_map.setdefault(family, OrderedDict())[_to_bytes(qualifier)] = amount  # type: ignore[index]
        return self

    def set_time_range(self, min_stamp: int, max_stamp: int) -> "Increment":
        self.time_range = TimeRange(min_stamp, max_stamp)
        return self

    @property
    def families(self) -> list[str]:
        return list(self.family_map.keys())

    def is_empty(self) -> bool:
        return not self.family_map

    def __repr__(self):
        return f"Increment(row={self.row!r}, families={self.families})"
