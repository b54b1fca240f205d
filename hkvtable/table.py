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
"""Wide-column table on top of the table-query protocol."""
from __future__ import annotations

import concurrent.futures
import logging
from typing import Any, Iterable, Sequence

from hkvtable._execution import _BoundedExecutor
from hkvtable._execution import _ServerCallable
from hkvtable._helpers import _check_argument
from hkvtable._helpers import _is_blank
from hkvtable._helpers import _normal_target_table_name
from hkvtable._helpers import _test_load_target_table_name
from hkvtable._helpers import _to_bytes
from hkvtable._operations import build_batch_operation
from hkvtable._operations import build_increment_batch
from hkvtable._operations import check_family_violation
from hkvtable._operations import raise_for_batch_result
from hkvtable._query_builder import build_batch_request
from hkvtable._query_builder import build_check_and_mutate_filter_string
from hkvtable._query_builder import build_filter
from hkvtable._query_builder import build_full_query
from hkvtable._query_builder import build_query
from hkvtable._query_builder import build_query_and_mutate_request
from hkvtable._query_builder import build_query_request
from hkvtable._query_builder import build_row_query
from hkvtable.base_table import BaseTable
from hkvtable.client import ClientFactory
from hkvtable.client import ClientRegistry
from hkvtable.client import TableClient
from hkvtable.client import default_registry
from hkvtable.exceptions import FeatureNotSupportedError
from hkvtable.exceptions import TableIOError
from hkvtable.iterators import ResultScanner
from hkvtable.mutations import Append
from hkvtable.mutations import Delete
from hkvtable.mutations import Increment
from hkvtable.mutations import KeyValue
from hkvtable.mutations import Mutation
from hkvtable.mutations import Put
from hkvtable.options import TableOptions
from hkvtable.read_rows_query import Get
from hkvtable.read_rows_query import Scan
from hkvtable.row import Cell
from hkvtable.row import Row
from hkvtable.write_buffer import WriteBuffer

_LOGGER = logging.getLogger(__name__)


def _sorted_qualifiers(qualifiers: Iterable[bytes | None] | None):
    if qualifiers is None:
        return None
    return sorted(qualifiers, key=lambda q: q or b"")


class Table(BaseTable):
    """
    Wide-column table whose column families live in separate physical
    tables of the remote store.

    Every operation touches exactly one column family. Reads run inline, or
    on a private thread pool bounded by ``operation_timeout`` when
    ``execute_in_pool`` is enabled. Puts go through a client-side write
    buffer, flushed on every call unless auto-flush is turned off.

    Args:
      - table_name: logical table name
      - client: transport executing table-query requests
      - options: table configuration. Defaults to ``TableOptions()``
      - executor: thread pool to run pooled calls on. If None, a private
          pool is created on first use and shut down by :meth:`close`
    """

    def __init__(
        self,
        table_name: str,
        client: TableClient | None,
        options: TableOptions | None = None,
        executor: concurrent.futures.Executor | None = None,
    ):
        options = options if options is not None else TableOptions()
        super().__init__(
            table_name,
            client,
            test_load_enable=options.test_load_enable,
            test_load_suffix=options.test_load_suffix,
        )
        self._options = options
        self._executor = _BoundedExecutor(
            table_name,
            operation_timeout=options.operation_timeout,
            execute_in_pool=options.operation_execute_in_pool,
            max_threads=options.max_threads,
            keep_alive_time=options.keep_alive_time,
            executor=executor,
        )
        self._write_buffer = self._make_write_buffer(options)
        self._registry: ClientRegistry | None = None
        self._closed = False

    def _make_write_buffer(self, options: TableOptions) -> WriteBuffer:
        return WriteBuffer(
            self._send_put_batch,
            table_name=self.table_name,
            write_buffer_size=options.write_buffer_size,
            put_write_buffer_check=options.put_write_buffer_check,
            max_key_value_size=options.max_key_value_size,
        )

    @classmethod
    def from_options(
        cls,
        table_name: str,
        options: TableOptions,
        client_factory: ClientFactory,
        registry: ClientRegistry | None = None,
    ) -> "Table":
        """
        Open a table sharing its client with every other table opened with
        the same connection options.

        The client is taken from ``registry`` (the process-wide default
        registry if None) and released again by :meth:`close`.
        """
        registry = registry if registry is not None else default_registry()
        table = cls(table_name, None, options)
        table._client = registry.acquire(options, client_factory, table)
        table._registry = registry
        return table

    @property
    def options(self) -> TableOptions:
        return self._options

    @property
    def write_buffer(self) -> WriteBuffer:
        return self._write_buffer

    @property
    def operation_timeout(self) -> float | None:
        return self._options.operation_timeout

    def set_operation_timeout(self, operation_timeout: float | None) -> None:
        """
        Change the deadline of pooled calls, in seconds.

        Unless ``execute_in_pool`` was configured explicitly, pooled execution
        is turned on for any timeout and off for None.
        """
        self._options = self._options.with_overrides(operation_timeout=operation_timeout)
        self._executor.operation_timeout = operation_timeout
        self._executor.execute_in_pool = self._options.operation_execute_in_pool

    def _execute(self, server_callable: _ServerCallable):
        return self._executor.execute(server_callable)

    def _call_once(
        self,
        description: str,
        request: Any,
        start_row: bytes | None = None,
        stop_row: bytes | None = None,
    ):
        """
        Send a mutating request once, on the calling thread
        """
        return self._executor.call(
            _ServerCallable(
                description,
                lambda: self._client.execute(request),
                self.table_name,
                start_row,
                stop_row,
            )
        )

    # reads

    def get(self, get: Get) -> Row:
        """
        Read the cells of one row.

        Returns:
          - the matching cells. An empty Row if nothing matched
        Raises:
          - FeatureNotSupportedError: if ``get`` selects zero or several families
          - TableIOError: if the query failed
        """
        check_family_violation(get.families)
        family, qualifiers = next(iter(get.family_map.items()))
        h_filter = build_filter(
            get.filter_string,
            get.time_range,
            get.max_versions,
            _sorted_qualifiers(qualifiers),
        )
        query = build_row_query(h_filter, get.row)
        request = build_query_request(query, self.target_table_name(family))

        def attempt() -> Row:
            try:
                result = self._client.execute(request)
                return Row._from_wire_rows(list(result), family)
            except Exception as exc:
                _LOGGER.error(
                    "query table %s family %s failed",
                    self.table_name,
                    family,
                    exc_info=True,
                )
                raise TableIOError(
                    f"query table:{self.table_name} family {family} error."
                ) from exc

        return self._execute(
            _ServerCallable("get", attempt, self.table_name, get.row, get.row)
        )

    def get_many(self, gets: Sequence[Get]) -> list[Row]:
        """
        Read several rows, one request each, in the order given
        """
        return [self.get(get) for get in gets]

    def exists(self, get: Get) -> bool:
        return not self.get(get).is_empty()

    def get_scanner(self, scan: Scan) -> ResultScanner:
        """
        Scan a range of rows of one family.

        Leaving both the start and stop row empty scans the whole family.
        Reverse scans are not supported.

        Raises:
          - FeatureNotSupportedError: if ``scan`` selects zero or several families
          - TableIOError: if the query failed
        """
        check_family_violation(scan.families)
        family, qualifiers = next(iter(scan.family_map.items()))
        h_filter = build_filter(
            scan.filter_string,
            scan.time_range,
            scan.max_versions,
            _sorted_qualifiers(qualifiers),
        )
        if scan.is_full_scan():
            query = build_full_query(h_filter, scan.batch)
        else:
            query = build_query(
                h_filter,
                scan.start_row,
                scan.include_start_row,
                scan.stop_row,
                scan.include_stop_row,
                scan.batch,
            )
        request = build_query_request(query, self.target_table_name(family))

        def attempt() -> ResultScanner:
            try:
                stream = self._client.execute(request)
                return ResultScanner(stream, self.table_name, family)
            except Exception as exc:
                _LOGGER.error(
                    "scan table %s family %s failed",
                    self.table_name,
                    family,
                    exc_info=True,
                )
                raise TableIOError(
                    f"scan table:{self.table_name} family {family} error."
                ) from exc

        return self._execute(
            _ServerCallable(
                "scan", attempt, self.table_name, scan.start_row, scan.stop_row
            )
        )

    def get_scanner_for_family(
        self, family: str, qualifier: str | bytes | None = None
    ) -> ResultScanner:
        """
        Scan a whole family, or a single column of it
        """
        scan = Scan()
        if qualifier is None:
            scan.add_family(family)
        else:
            scan.add_column(family, qualifier)
        return self.get_scanner(scan)

    # writes

    def put(self, put: Put | Iterable[Put]) -> None:
        """
        Write one or more puts through the write buffer.

        With auto-flush on (the default) the puts are sent before returning.

        Raises:
          - ValueError: if a put is empty or holds a cell that is too large
          - FeatureNotSupportedError: if a put spans several families
          - TableIOError: if a flush failed
        """
        self._write_buffer.add(put)

    def flush_commits(self) -> None:
        self._write_buffer.flush()

    def _send_put_batch(self, family: str, key_values: list[KeyValue]) -> list[int]:
        batch = build_batch_operation(key_values)
        request = build_batch_request(batch, self.target_table_name(family))
        return raise_for_batch_result(self._call_once("put", request))

    @property
    def auto_flush(self) -> bool:
        return self._write_buffer.auto_flush

    def set_auto_flush(
        self, auto_flush: bool, clear_buffer_on_fail: bool | None = None
    ) -> None:
        self._write_buffer.set_auto_flush(auto_flush, clear_buffer_on_fail)

    @property
    def write_buffer_size(self) -> int:
        return self._write_buffer.write_buffer_size

    def set_write_buffer_size(self, write_buffer_size: int) -> None:
        self._write_buffer.set_write_buffer_size(write_buffer_size)

    def delete(self, delete: Delete | Iterable[Delete]) -> None:
        """
        Delete cells, one request per Delete.

        Raises:
          - ValueError: if a delete is empty
          - FeatureNotSupportedError: if a delete spans several families
          - TableIOError: if the server reported an error for any cell
        """
        if isinstance(delete, Delete):
            delete = [delete]
        for item in delete:
            self._delete_one(item)

    def _delete_one(self, delete: Delete) -> None:
        _check_argument(delete.row is not None, "row is null")
        _check_argument(not delete.is_empty(), "delete is empty")
        check_family_violation(delete.families)
        family, key_values = next(iter(delete.family_map.items()))
        request = build_batch_request(
            build_batch_operation(key_values), self.target_table_name(family)
        )
        error_codes: list[int] = []
        try:
            result = self._call_once("delete", request, delete.row, delete.row)
            error_codes = result.error_codes
            raise_for_batch_result(result)
        except Exception as exc:
            _LOGGER.error(
                "delete table %s error codes %s",
                self.table_name,
                error_codes,
                exc_info=True,
            )
            raise TableIOError(
                f"delete table {self.table_name} error codes {error_codes}"
            ) from exc

    # atomic single-row operations

    def check_and_put(
        self,
        row: str | bytes,
        family: str,
        qualifier: str | bytes | None,
        value: str | bytes | None,
        put: Put,
    ) -> bool:
        """
        Apply ``put`` only if ``family:qualifier`` of ``row`` equals ``value``.
        A None ``value`` means the column must not exist.

        Returns:
          - True if the put was applied
        """
        return self._check_and_mutate(row, family, qualifier, value, put)

    def check_and_delete(
        self,
        row: str | bytes,
        family: str,
        qualifier: str | bytes | None,
        value: str | bytes | None,
        delete: Delete,
    ) -> bool:
        """
        Apply ``delete`` only if ``family:qualifier`` of ``row`` equals
        ``value``. A None ``value`` means the column must not exist.

        Returns:
          - True if the delete was applied
        """
        return self._check_and_mutate(row, family, qualifier, value, delete)

    def _check_and_mutate(
        self,
        row: str | bytes,
        family: str,
        qualifier: str | bytes | None,
        value: str | bytes | None,
        mutation: Mutation,
    ) -> bool:
        _check_argument(row is not None, "row is null")
        _check_argument(not _is_blank(family), "family is blank")
        row = _to_bytes(row)
        _check_argument(row == mutation.row, "mutation row is not equal check row")
        _check_argument(not mutation.is_empty(), "mutation is empty")
        qualifier = _to_bytes(qualifier)

        filter_string = build_check_and_mutate_filter_string(
            family, qualifier, _to_bytes(value)
        )
        h_filter = build_filter(filter_string, None, 1, [qualifier])

        check_family_violation(mutation.families)
        mutation_family, key_values = next(iter(mutation.family_map.items()))
        _check_argument(
            family == mutation_family, "mutation family is not equal check family"
        )

        query = build_row_query(h_filter, row)
        batch = build_batch_operation(key_values)
        request = build_query_and_mutate_request(
            query, batch, self.target_table_name(mutation_family)
        )
        mutation_type = mutation.__class__.__name__
        try:
            result = self._call_once(
                "check_and_mutate", request, row, row
            )
        except Exception as exc:
            _LOGGER.error(
                "check and mutate type %s table %s failed",
                mutation_type,
                self.table_name,
                exc_info=True,
            )
            raise TableIOError(
                f"checkAndMutation type {mutation_type} table {self.table_name} error."
            ) from exc
        return result.affected_rows > 0

    def append(self, append: Append) -> Row:
        """
        Atomically append to cell values of one row.

        Returns:
          - the appended cells with their new values
        """
        check_family_violation(append.families)
        _check_argument(not append.is_empty(), "append is empty.")
        family, key_values = next(iter(append.family_map.items()))
        qualifiers: list[bytes | None] = []
        batch = build_batch_operation(key_values, put_to_append=True, qualifiers=qualifiers)
        h_filter = build_filter(None, None, 1, qualifiers)
        query = build_row_query(h_filter, append.row)
        request = build_query_and_mutate_request(
            query, batch, self.target_table_name(family)
        )
        try:
            result = self._call_once("append", request, append.row, append.row)
            return Row._from_wire_rows(_affected_rows(result), family)
        except Exception as exc:
            _LOGGER.error("append table %s failed", self.table_name, exc_info=True)
            raise TableIOError(f"append table {self.table_name} error.") from exc

    def increment(self, increment: Increment) -> Row:
        """
        Atomically add to 64-bit counter columns of one row.

        Returns:
          - the incremented cells with their new values
        """
        check_family_violation(increment.families)
        family, amounts = next(iter(increment.family_map.items()))
        qualifiers: list[bytes | None] = []
        batch = build_increment_batch(increment.row, amounts, qualifiers)
        h_filter = build_filter(None, increment.time_range, 1, qualifiers)
        query = build_row_query(h_filter, increment.row)
        request = build_query_and_mutate_request(
            query, batch, self.target_table_name(family)
        )
        try:
            result = self._call_once(
                "increment", request, increment.row, increment.row
            )
            return Row._from_wire_rows(_affected_rows(result), family)
        except Exception as exc:
            _LOGGER.error("increment table %s failed", self.table_name, exc_info=True)
            raise TableIOError(f"increment table {self.table_name} error.") from exc

    def increment_column_value(
        self,
        row: str | bytes,
        family: str,
        qualifier: str | bytes,
        amount: int,
        write_to_wal: bool = True,
    ) -> int:
        """
        Atomically add ``amount`` to one counter column and return the new
        value. ``write_to_wal`` is accepted and ignored.

        Raises:
          - ValueError: if the server did not return exactly one cell
          - TableIOError: if the request failed
        """
        _check_argument(row is not None, "row is null")
        _check_argument(not _is_blank(family), "family is blank")
        row = _to_bytes(row)
        qualifiers: list[bytes | None] = []
        batch = build_increment_batch(row, {_to_bytes(qualifier): amount}, qualifiers)
        h_filter = build_filter(None, None, 1, qualifiers)
        query = build_row_query(h_filter, row)
        request = build_query_and_mutate_request(
            query, batch, self.target_table_name(family)
        )
        try:
            result = self._call_once("increment", request, row, row)
            rows = _affected_rows(result)
        except Exception as exc:
            _LOGGER.error("increment table %s failed", self.table_name, exc_info=True)
            raise TableIOError(f"increment table {self.table_name} error.") from exc
        if len(rows) != 1:
            raise ValueError(f"the increment result size illegal {len(rows)}")
        return int(Cell._from_wire_row(rows[0], family))

    # unsupported

    def batch(self, actions):
        raise FeatureNotSupportedError()

    def get_row_or_before(self, row, family):
        raise FeatureNotSupportedError()

    def mutate_row(self, row_mutations):
        raise FeatureNotSupportedError()

    def lock_row(self, row):
        raise FeatureNotSupportedError()

    def unlock_row(self, row_lock):
        raise FeatureNotSupportedError()

    def coprocessor_proxy(self, protocol, row):
        raise FeatureNotSupportedError()

    def coprocessor_exec(self, protocol, start_key, end_key, callable_):
        raise FeatureNotSupportedError()

    def get_table_descriptor(self):
        raise FeatureNotSupportedError()

    # lifecycle

    def refresh_table_entry(self, family: str, has_test_load: bool = False) -> None:
        """
        Ask the client to reload routing information of the physical table
        holding ``family``, and of its shadow table if ``has_test_load``.
        """
        refresh = getattr(self._client, "refresh_table_entry", None)
        if not callable(refresh):
            raise FeatureNotSupportedError(
                "client does not support refreshing table entries."
            )
        refresh(_normal_target_table_name(self.table_name, family))
        if has_test_load:
            refresh(
                _test_load_target_table_name(
                    self.table_name, family, self._options.test_load_suffix
                )
            )

    def close(self) -> None:
        """
        Flush buffered puts, then release the resources owned by this table:
        the private pool, and the client if it came from a registry.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._write_buffer.flush()
        finally:
            self._executor.shutdown()
            if self._registry is not None:
                self._registry.release(self._options, self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()

    def __repr__(self):
        return f"Table(table_name={self.table_name!r})"


def _affected_rows(result: Any) -> list[Sequence[Any]]:
    entity = result.affected_entity
    return list(entity) if entity is not None else []
