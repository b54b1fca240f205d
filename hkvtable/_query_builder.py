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
Builds key ranges, filters and request envelopes for the table-query
protocol.
"""
from __future__ import annotations

from typing import Iterable

from hkvtable._helpers import _check_argument
from hkvtable.read_rows_query import EMPTY_END_ROW
from hkvtable.read_rows_query import TimeRange
from hkvtable.wire import ALL_COLUMNS
from hkvtable.wire import BatchOperation
from hkvtable.wire import BatchOperationRequest
from hkvtable.wire import CompositeKey
from hkvtable.wire import EntityType
from hkvtable.wire import Extremum
from hkvtable.wire import HTableFilter
from hkvtable.wire import KeyRange
from hkvtable.wire import QueryAndMutateRequest
from hkvtable.wire import QueryRequest
from hkvtable.wire import TableQuery


def build_filter(
    filter_string: str | None,
    time_range: TimeRange | None,
    max_versions: int,
    qualifiers: Iterable[bytes | None] | None = None,
) -> HTableFilter:
    """
    Build the filter descriptor of a query.

    Args:
      - filter_string: textual predicate passed through to the server
      - time_range: optional [min, max) timestamp window
      - max_versions: maximum versions returned per column
      - qualifiers: qualifiers to select. None or empty selects all columns.
          A None qualifier selects the bare column
    """
    h_filter = HTableFilter(max_versions=max_versions)
    if filter_string is not None:
        h_filter.filter_string = filter_string
    if time_range is not None:
        h_filter.min_stamp = time_range.min_stamp
        h_filter.max_stamp = time_range.max_stamp
    if qualifiers is not None:
        for qualifier in qualifiers:
            h_filter.add_select_column_qualifier(qualifier)
    return h_filter


def _quote(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="surrogateescape")
    return value


def build_check_and_mutate_filter_string(
    family: str, qualifier: bytes | None, value: bytes | None
) -> str:
    """
    Filter matching a row whose ``family:qualifier`` equals ``value``, or,
    when ``value`` is None, a row where that column does not exist.
    """
    if value is not None:
        return (
            f"CheckAndMutateFilter(=, 'binary:{_quote(value)}', "
            f"'{family}', '{_quote(qualifier)}', false)"
        )
    return (
        f"CheckAndMutateFilter(=, 'binary:', "
        f"'{family}', '{_quote(qualifier)}', true)"
    )


def build_key_range(
    start: bytes, include_start: bool, stop: bytes, include_stop: bool
) -> KeyRange:
    """
    Translate a row range into a range over (row, qualifier, timestamp).

    Inclusive boundaries cover every cell of the boundary row: the start is
    extended with MIN markers and the end with MAX markers. Exclusive
    boundaries do the opposite. An empty stop row means "no upper bound".
    """
    _check_argument(start is not None, "start row is null")
    _check_argument(stop is not None, "stop row is null")
    if include_start:
        start_key = CompositeKey(start, Extremum.MIN, Extremum.MIN)
    else:
        start_key = CompositeKey(start, Extremum.MAX, Extremum.MAX)

    if stop == EMPTY_END_ROW:
        end_key = CompositeKey(Extremum.MAX, Extremum.MAX, Extremum.MAX)
    elif include_stop:
        end_key = CompositeKey(stop, Extremum.MAX, Extremum.MAX)
    else:
        end_key = CompositeKey(stop, Extremum.MIN, Extremum.MIN)
    return KeyRange(start_key, end_key)


def _build_table_query(
    h_filter: HTableFilter, key_range: KeyRange, batch_size: int
) -> TableQuery:
    query = TableQuery(h_table_filter=h_filter, select_columns=list(ALL_COLUMNS))
    query.key_ranges.append(key_range)
    if batch_size > 0:
        query.batch_size = batch_size
    return query


def build_query(
    h_filter: HTableFilter,
    start: bytes,
    include_start: bool,
    stop: bytes,
    include_stop: bool,
    batch_size: int = -1,
) -> TableQuery:
    return _build_table_query(
        h_filter, build_key_range(start, include_start, stop, include_stop), batch_size
    )


def build_row_query(h_filter: HTableFilter, row: bytes) -> TableQuery:
    """
    Query covering every cell of a single row
    """
    _check_argument(row is not None, "row is null")
    return build_query(h_filter, row, True, row, True)


def build_full_query(h_filter: HTableFilter, batch_size: int = -1) -> TableQuery:
    """
    Query without row bounds
    """
    return _build_table_query(h_filter, KeyRange.full(), batch_size)


def build_query_request(query: TableQuery, target_table_name: str) -> QueryRequest:
    return QueryRequest(
        table_name=target_table_name,
        table_query=query,
        entity_type=EntityType.HKV,
    )


def build_batch_request(
    batch: BatchOperation, target_table_name: str
) -> BatchOperationRequest:
    return BatchOperationRequest(
        table_name=target_table_name,
        batch_operation=batch,
        returning_affected_rows=True,
        entity_type=EntityType.HKV,
    )


def build_query_and_mutate_request(
    query: TableQuery, batch: BatchOperation, target_table_name: str
) -> QueryAndMutateRequest:
    return QueryAndMutateRequest(
        table_name=target_table_name,
        table_query=query,
        mutations=batch,
        entity_type=EntityType.HKV,
    )
