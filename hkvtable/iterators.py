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

import logging
from typing import Any, Iterable, Iterator, Sequence

from hkvtable.exceptions import TableIOError
from hkvtable.row import Row
from hkvtable.row import _group_wire_rows

_LOGGER = logging.getLogger(__name__)


class ResultScanner(Iterator[Row]):
    """
    Iterator over the rows of a scan.

    Rows are assembled lazily from the stream returned by the server, one
    Row per row key.
    """

    def __init__(
        self, stream: Iterable[Sequence[Any]], table_name: str, family: str
    ):
        self._stream = stream
        self._rows = _group_wire_rows(stream, family)
        self.table_name = table_name
        self.family = family
        self._closed = False

    @property
    def active(self) -> bool:
        return not self._closed

    def __iter__(self):
        return self

    def __next__(self) -> Row:
        if self._closed:
            raise StopIteration
        try:
            return next(self._rows)
        except StopIteration:
            self.close()
            raise
        except Exception as exc:
            self.close()
            _LOGGER.error(
                "scan table %s family %s failed while streaming",
                self.table_name,
                self.family,
                exc_info=True,
            )
            raise TableIOError(
                f"scan table:{self.table_name} family {self.family} error."
            ) from exc

    def next_row(self) -> Row | None:
        """
        Return the next row, or None once the scan is exhausted
        """
        return next(self, None)

    def next_rows(self, count: int) -> list[Row]:
        """
        Return up to ``count`` rows. An empty list means the scan is exhausted
        """
        rows = []
        for _ in range(count):
            row = self.next_row()
            if row is None:
                break
            rows.append(row)
        return rows

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        close_fn = getattr(self._stream, "close", None)
        if callable(close_fn):
            close_fn()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()
