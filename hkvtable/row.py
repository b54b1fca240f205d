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
from functools import total_ordering
from typing import Any, Generator, Iterable, Sequence, overload

from hkvtable._helpers import _to_bytes

# Type aliases used internally for readability.
row_key = bytes
family_id = str
qualifier = bytes
row_value = bytes


class Row(Sequence["Cell"]):
    """
    Row-oriented result of a read, append or increment.

    Holds only the cells returned by the request, not the full row.
    An empty Row (no cells) is returned for lookups that matched nothing.

    Can be indexed:
    cells = row["family", "qualifier"]
    """

    def __init__(self, key: row_key | None, cells: list[Cell]):
        self.row_key = key
        self._cells_map: dict[family_id, dict[qualifier, list[Cell]]] = OrderedDict()
        self._cells_list: list[Cell] = []
        for cell in cells:
            columns = self._cells_map.setdefault(cell.family, OrderedDict())
            columns.setdefault(cell.column_qualifier, []).append(cell)
            self._cells_list.append(cell)

    @classmethod
    def _from_wire_rows(
        cls, rows: Iterable[Sequence[Any]], family: family_id
    ) -> Row:
        """
        Rebuild a row from ``(K, Q, T, V)`` tuples returned for ``family``.

        All tuples are expected to share one row key. An empty input gives
        an empty Row.
        """
        cells = [Cell._from_wire_row(wire_row, family) for wire_row in rows]
        key = cells[0].row_key if cells else None
        return cls(key, cells)

    def is_empty(self) -> bool:
        return not self._cells_list

    def get_cells(
        self, family: str | None = None, qualifier: str | bytes | None = None
    ) -> list[Cell]:
        """
        Returns cells in the order they were returned by the server.

        If family or qualifier not passed, will include all. Unlike
        :meth:`get_value`, a None qualifier here means "every column of the
        family". Pass ``b""`` to select the bare column.
        """
        if family is None:
            if qualifier is not None:
                raise ValueError("Qualifier passed without family")
            return self._cells_list
        if qualifier is None:
            return list(self._get_all_from_family(family))
        qualifier = _to_bytes(qualifier)
        if family not in self._cells_map:
            raise ValueError(f"Family '{family}' not found in row '{self.row_key!r}'")
        if qualifier not in self._cells_map[family]:
            raise ValueError(
                f"Qualifier '{qualifier!r}' not found in family '{family}' in row '{self.row_key!r}'"
            )
        return self._cells_map[family][qualifier]

    def _get_all_from_family(self, family: family_id) -> Generator[Cell, None, None]:
        if family not in self._cells_map:
            raise ValueError(f"Family '{family}' not found in row '{self.row_key!r}'")
        for cell_batch in self._cells_map[family].values():
            yield from cell_batch

    def get_value(self, family: str, qualifier: str | bytes | None) -> bytes | None:
        """
        Value of the newest version of a column, or None if absent
        """
        qualifier = _to_bytes(qualifier) or b""
        cells = self._cells_map.get(family, {}).get(qualifier)
        if not cells:
            return None
        return max(cells, key=lambda c: c.timestamp).value

    def get_column_components(self) -> list[tuple[family_id, qualifier]]:
        return [
            (family, qualifier)
            for family, columns in self._cells_map.items()
            for qualifier in columns
        ]

    def __iter__(self):
        return iter(self._cells_list)

    def __contains__(self, item):
        if isinstance(item, family_id):
            return item in self._cells_map
        if isinstance(item, tuple) and isinstance(item[0], family_id):
            qualifier = _to_bytes(item[1]) or b""
            return qualifier in self._cells_map.get(item[0], {})
        return item in self._cells_list

    @overload
    def __getitem__(
        self,
        index: family_id | tuple[family_id, qualifier | str],
    ) -> list[Cell]:
        pass

    @overload
    def __getitem__(self, index: int) -> Cell:
        pass

    @overload
    def __getitem__(self, index: slice) -> list[Cell]:
        pass

    def __getitem__(self, index):
        if isinstance(index, family_id):
            return self.get_cells(family=index)
        elif isinstance(index, tuple) and isinstance(index[0], family_id):
            return self.get_cells(family=index[0], qualifier=index[1])
        elif isinstance(index, (int, slice)):
            return self._cells_list[index]
        raise TypeError("Index must be family_id, (family_id, qualifier), int, or slice")

    def __len__(self):
        return len(self._cells_list)

    def __eq__(self, other):
        if not isinstance(other, Row):
            return False
        return self.row_key == other.row_key and self._cells_list == other._cells_list

    def __ne__(self, other) -> bool:
        return not self == other

    def __repr__(self):
        return f"Row(key={self.row_key!r}, cells={self._cells_list!r})"


@total_ordering
class Cell:
    """
    Model class for a versioned cell returned by the server
    """

    def __init__(
        self,
        value: row_value,
        row: row_key,
        family: family_id,
        column_qualifier: qualifier | str | None,
        timestamp: int,
    ):
        self.value = value
        self.row_key = row
        self.family = family
        self.column_qualifier: bytes = _to_bytes(column_qualifier) or b""
        self.timestamp = timestamp

    @classmethod
    def _from_wire_row(cls, wire_row: Sequence[Any], family: family_id) -> Cell:
        key, column_qualifier, timestamp, value = wire_row[:4]
        return cls(
            value=value,
            row=key,
            family=family,
            column_qualifier=column_qualifier,
            timestamp=int(timestamp),
        )

    def __int__(self) -> int:
        """
        Interprets value as a 64-bit big-endian signed integer, the format
        written by increments
        """
        return int.from_bytes(self.value, byteorder="big", signed=True)

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row_key,
            "family": self.family,
            "qualifier": self.column_qualifier,
            "timestamp": self.timestamp,
            "value": self.value,
        }

    def __repr__(self):
        return (
            f"Cell(value={self.value!r}, row={self.row_key!r}, family='{self.family}', "
            f"column_qualifier={self.column_qualifier!r}, timestamp={self.timestamp})"
        )

    """For native ordering: family, qualifier, newest version first"""

    def __lt__(self, other) -> bool:
        if not isinstance(other, Cell):
            return NotImplemented
        return (
            self.family,
            self.column_qualifier,
            -self.timestamp,
            self.value,
        ) < (
            other.family,
            other.column_qualifier,
            -other.timestamp,
            other.value,
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, Cell):
            return NotImplemented
        return (
            self.row_key == other.row_key
            and self.family == other.family
            and self.column_qualifier == other.column_qualifier
            and self.value == other.value
            and self.timestamp == other.timestamp
        )

    def __hash__(self):
        return hash(
            (
                self.row_key,
                self.family,
                self.column_qualifier,
                self.value,
                self.timestamp,
            )
        )


def _group_wire_rows(
    rows: Iterable[Sequence[Any]], family: family_id
) -> Generator[Row, None, None]:
    """
    Assemble a stream of ``(K, Q, T, V)`` tuples into one Row per row key.

    The server returns the cells of a row contiguously, so a new Row starts
    whenever the row key changes.
    """
    current_key: bytes | None = None
    current_cells: list[Cell] = []
    for wire_row in rows:
        cell = Cell._from_wire_row(wire_row, family)
        if current_cells and cell.row_key != current_key:
            yield Row(current_key, current_cells)
            current_cells = []
        current_key = cell.row_key
        current_cells.append(cell)
    if current_cells:
        yield Row(current_key, current_cells)
