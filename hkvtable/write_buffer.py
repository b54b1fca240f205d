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
"""Client-side buffer of Put requests, flushed per column family."""
from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Callable, Iterable

from hkvtable._operations import check_family_violation
from hkvtable.exceptions import TableIOError
from hkvtable.mutations import KeyValue
from hkvtable.mutations import Put
from hkvtable.options import DEFAULT_KEY_VALUE_MAX_SIZE
from hkvtable.options import DEFAULT_PUT_WRITE_BUFFER_CHECK
from hkvtable.options import DEFAULT_WRITE_BUFFER_SIZE

_LOGGER = logging.getLogger(__name__)


class WriteBuffer:
    """
    Stores :class:`Put` requests in memory until the buffer grows past
    ``write_buffer_size`` or :meth:`flush` is called. In auto-flush mode
    (the default) every :meth:`add` call flushes before returning.

    A flush sends one batch per column family. Puts of families whose
    batch succeeded are dropped from the buffer. Puts of failed families
    stay buffered unless ``clear_buffer_on_fail`` is set, in which case the
    whole buffer is discarded after every flush attempt.

    Note on thread safety: a WriteBuffer must not be shared by concurrent
    writers. ``add``, ``flush`` and ``set_write_buffer_size`` update the
    buffer and its size without locking.

    :type send_batch: Callable[[str, list[KeyValue]], object]
    :param send_batch: sends the cells of one family as a single batch.
        Raises if any entry of the batch failed.
    """

    def __init__(
        self,
        send_batch: Callable[[str, list[KeyValue]], object],
        table_name: str = "",
        write_buffer_size: int = DEFAULT_WRITE_BUFFER_SIZE,
        put_write_buffer_check: int = DEFAULT_PUT_WRITE_BUFFER_CHECK,
        max_key_value_size: int = DEFAULT_KEY_VALUE_MAX_SIZE,
        auto_flush: bool = True,
        clear_buffer_on_fail: bool = True,
    ):
        if put_write_buffer_check < 1:
            raise ValueError("put_write_buffer_check must be greater than 0")
        self._send_batch = send_batch
        self.table_name = table_name
        self._write_buffer_size = write_buffer_size
        self.put_write_buffer_check = put_write_buffer_check
        self.max_key_value_size = max_key_value_size
        self._auto_flush = auto_flush
        self._clear_buffer_on_fail = auto_flush or clear_buffer_on_fail
        self._entries: list[Put] = []
        self._current_size = 0

    @property
    def entries(self) -> list[Put]:
        """Buffered puts, oldest first"""
        return list(self._entries)

    @property
    def current_size(self) -> int:
        """Sum of the size estimates of the buffered puts"""
        return self._current_size

    @property
    def write_buffer_size(self) -> int:
        return self._write_buffer_size

    @property
    def auto_flush(self) -> bool:
        return self._auto_flush

    @property
    def clear_buffer_on_fail(self) -> bool:
        return self._clear_buffer_on_fail

    def __len__(self) -> int:
        return len(self._entries)

    def set_auto_flush(
        self, auto_flush: bool, clear_buffer_on_fail: bool | None = None
    ) -> None:
        """
        Turn auto-flush on or off.

        With auto-flush off, puts accumulate until the buffer is full or
        :meth:`flush` is called. Failed puts are then kept for the next
        flush unless ``clear_buffer_on_fail`` is set. Auto-flush always
        clears the buffer on failure.
        """
        if clear_buffer_on_fail is None:
            clear_buffer_on_fail = auto_flush
        self._auto_flush = auto_flush
        self._clear_buffer_on_fail = auto_flush or clear_buffer_on_fail

    def set_write_buffer_size(self, write_buffer_size: int) -> None:
        """
        Change the flush threshold. Flushes if the buffer already holds more
        than the new size.
        """
        self._write_buffer_size = write_buffer_size
        if self._current_size > write_buffer_size:
            self.flush()

    def _validate(self, put: Put) -> None:
        if put.is_empty():
            raise ValueError("No columns to insert")
        check_family_violation(put.families)
        if self.max_key_value_size > 0:
            for key_value in put.cells():
                if key_value.length > self.max_key_value_size:
                    raise ValueError("KeyValue size too large")

    def add(self, puts: Put | Iterable[Put]) -> None:
        """
        Buffer one or more puts, flushing when the buffer is full.

        The size is checked every ``put_write_buffer_check`` puts, so a long
        list does not grow the buffer unbounded before the final check.

        Raises:
          - ValueError: if a put is empty, has a blank family, or holds a
              cell larger than ``max_key_value_size``
          - FeatureNotSupportedError: if a put spans several families
          - TableIOError: if a triggered flush failed
        """
        if isinstance(puts, Put):
            puts = [puts]
        count = 0
        for put in puts:
            self._validate(put)
            self._entries.append(put)
            self._current_size += put.size()
            count += 1
            if (
                count % self.put_write_buffer_check == 0
                and self._current_size > self._write_buffer_size
            ):
                self.flush()
        if self._auto_flush or self._current_size > self._write_buffer_size:
            self.flush()

    def _group_by_family(self) -> dict[str, tuple[list[int], list[KeyValue]]]:
        """
        Group the cells of the buffered puts by family, remembering the
        buffer index each group came from
        """
        family_map: dict[str, tuple[list[int], list[KeyValue]]] = OrderedDict()
        for idx, put in enumerate(self._entries):
            for family, key_values in put.family_map.items():
                indices, cells = family_map.setdefault(family, ([], []))
                indices.append(idx)
                cells.extend(key_values)
        return family_map

    def flush(self) -> None:
        """
        Send every buffered put, one batch per family.

        Every family is attempted even if an earlier one failed. Afterwards
        the puts of successful families are removed from the buffer.

        Raises:
          - TableIOError: if any family batch failed. The error of the first
              failed family is raised, caused by the remote error
        """
        if not self._entries:
            return
        result_success = [False] * len(self._entries)
        failure: tuple[str, Exception] | None = None
        try:
            for family, (indices, key_values) in self._group_by_family().items():
                try:
                    self._send_batch(family, key_values)
                except Exception as exc:
                    _LOGGER.error(
                        "put table %s family %s failed, auto_flush=%s, buffered puts=%d",
                        self.table_name,
                        family,
                        self._auto_flush,
                        len(self._entries),
                        exc_info=True,
                    )
                    if failure is None:
                        failure = (family, exc)
                    continue
                for idx in indices:
                    result_success[idx] = True
        finally:
            # walk backwards so removals do not shift unvisited indices
            for idx in range(len(result_success) - 1, -1, -1):
                if result_success[idx]:
                    del self._entries[idx]
            if self._clear_buffer_on_fail:
                self._entries.clear()
                self._current_size = 0
            else:
                self._current_size = sum(put.size() for put in self._entries)
        if failure is not None:
            family, exc = failure
            error_codes = getattr(exc, "error_codes", None)
            raise TableIOError(
                f"put table {self.table_name} family {family} error codes "
                f"{error_codes} auto flush {self._auto_flush} "
                f"current buffer size {len(self._entries)}"
            ) from exc
        _LOGGER.debug("flushed write buffer of table %s", self.table_name)
