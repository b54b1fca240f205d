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
"""
Request and response descriptors of the remote table-query protocol.

The remote model stores every cell of a family as one row of a physical
table ``<table>$<family>`` with primary key ``(K, Q, T)`` and value column
``V``. Ranges are expressed over that composite key.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence, Union

ROW_KEY_COLUMNS = ("K", "Q", "T")
V_COLUMNS = ("V",)
ALL_COLUMNS = ("K", "Q", "T", "V")
PRIMARY_INDEX = "PRIMARY"


class Extremum(enum.Enum):
    """Marker objects sorting before (MIN) or after (MAX) every real value"""

    MIN = -1
    MAX = 1


KeyComponent = Union[bytes, int, None, Extremum]


def _compare_component(left: KeyComponent, right: KeyComponent) -> int:
    if isinstance(left, Extremum) or isinstance(right, Extremum):
        left_rank = left.value if isinstance(left, Extremum) else 0
        right_rank = right.value if isinstance(right, Extremum) else 0
        return (left_rank > right_rank) - (left_rank < right_rank)
    return (left > right) - (left < right)  # type: ignore[operator]


@dataclass(frozen=True)
class CompositeKey:
    """A (row, qualifier, timestamp) point in the remote key space"""

    row: KeyComponent
    qualifier: KeyComponent = Extremum.MIN
    timestamp: KeyComponent = Extremum.MIN

    def compare(self, other: "CompositeKey") -> int:
        for left, right in zip(self.components, other.components):
            result = _compare_component(left, right)
            if result:
                return result
        return 0

    @property
    def components(self) -> tuple:
        return (self.row, self.qualifier, self.timestamp)


@dataclass(frozen=True)
class KeyRange:
    start: CompositeKey
    end: CompositeKey

    @classmethod
    def full(cls) -> "KeyRange":
        return cls(
            CompositeKey(Extremum.MIN, Extremum.MIN, Extremum.MIN),
            CompositeKey(Extremum.MAX, Extremum.MAX, Extremum.MAX),
        )

    def includes_row(self, row: bytes) -> bool:
        """
        True if the cells of ``row`` fall inside this range.

        Every real cell of a row sorts strictly between ``(row, MIN, MIN)``
        and ``(row, MAX, MAX)``, so the row is compared against each boundary
        with that in mind.
        """
        low = CompositeKey(row, Extremum.MIN, Extremum.MIN)
        high = CompositeKey(row, Extremum.MAX, Extremum.MAX)
        # a real cell is > start iff it is not <= start
        after_start = high.compare(self.start) > 0 and low.compare(self.start) >= 0
        before_end = low.compare(self.end) < 0 and high.compare(self.end) <= 0
        return after_start and before_end


@dataclass
class HTableFilter:
    filter_string: str | None = None
    min_stamp: int | None = None
    max_stamp: int | None = None
    max_versions: int = 1
    select_column_qualifiers: list[bytes] = field(default_factory=list)

    def add_select_column_qualifier(self, qualifier: bytes | None) -> None:
        # the bare column (no qualifier) is selected with an empty marker
        self.select_column_qualifiers.append(qualifier if qualifier is not None else b"")


@dataclass
class TableQuery:
    h_table_filter: HTableFilter
    key_ranges: list[KeyRange] = field(default_factory=list)
    select_columns: list[str] = field(default_factory=lambda: list(ALL_COLUMNS))
    index_name: str = PRIMARY_INDEX
    batch_size: int | None = None


class OperationType(enum.Enum):
    INSERT_OR_UPDATE = "insert_or_update"
    DEL = "del"
    APPEND = "append"
    INCREMENT = "increment"


@dataclass
class TableOperation:
    operation_type: OperationType
    row_key: tuple
    columns: Sequence[str] | None = None
    properties: Sequence[Any] | None = None

    @property
    def timestamp(self) -> int:
        return self.row_key[2]

    @property
    def qualifier(self) -> bytes | None:
        return self.row_key[1]


@dataclass
class BatchOperation:
    operations: list[TableOperation] = field(default_factory=list)
    same_type: bool = False
    same_properties_names: bool = False

    def add_table_operation(self, operation: TableOperation) -> None:
        self.operations.append(operation)

    def __len__(self) -> int:
        return len(self.operations)


class EntityType(enum.Enum):
    DYNAMIC = "dynamic"
    KV = "kv"
    HKV = "hkv"


@dataclass
class QueryRequest:
    table_name: str
    table_query: TableQuery
    entity_type: EntityType = EntityType.HKV


@dataclass
class BatchOperationRequest:
    table_name: str
    batch_operation: BatchOperation
    returning_affected_rows: bool = True
    entity_type: EntityType = EntityType.HKV


@dataclass
class QueryAndMutateRequest:
    table_name: str
    table_query: TableQuery
    mutations: BatchOperation
    entity_type: EntityType = EntityType.HKV


TableRequest = Union[QueryRequest, BatchOperationRequest, QueryAndMutateRequest]


@dataclass
class OperationResult:
    """Outcome of one entry of a batch operation. ``errno`` 0 means success"""

    errno: int = 0
    affected_rows: int = 0
    execute_host: str | None = None
    execute_port: int | None = None


@dataclass
class BatchOperationResult:
    results: list[OperationResult] = field(default_factory=list)

    @property
    def error_codes(self) -> list[int]:
        return [result.errno for result in self.results]


@dataclass
class QueryResult:
    """
    Rows returned by a query. Each row is ``(K, Q, T, V)`` in the order of
    ``ALL_COLUMNS``.
    """

    properties_rows: list[Sequence[Any]] = field(default_factory=list)

    def __iter__(self):
        return iter(self.properties_rows)


@dataclass
class QueryAndMutateResult:
    affected_rows: int = 0
    affected_entity: QueryResult | None = None


# a query request may return a fully cached QueryResult, or any iterable of
# rows that is consumed lazily
QueryStreamResult = Union[QueryResult, Iterable[Sequence[Any]]]
