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

from typing import Any

"""
Helper functions used in various places in the library.
"""

# separates the table name from the family in physical table names
TABLE_FAMILY_SEPARATOR = "$"


def _check_argument(condition: Any, message: str) -> None:
    """
    Raise ValueError with ``message`` if ``condition`` is falsy
    """
    if not condition:
        raise ValueError(message)


def _to_bytes(value: str | bytes | None) -> bytes | None:
    """
    Convert a row key, qualifier or value into bytes. Strings are
    encoded as UTF-8. None is passed through.
    """
    if value is None or isinstance(value, bytes):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return value.encode("utf-8")
    raise TypeError(f"expected str or bytes, got {type(value).__name__}")


def _is_blank(value: str | bytes | None) -> bool:
    """
    True for None, empty, or whitespace-only strings
    """
    if value is None:
        return True
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return not value.strip()


def _normal_target_table_name(table_name: str, family: str) -> str:
    return f"{table_name}{TABLE_FAMILY_SEPARATOR}{family}"


def _test_load_target_table_name(table_name: str, family: str, suffix: str) -> str:
    return f"{table_name}{suffix}{TABLE_FAMILY_SEPARATOR}{family}"


def _target_table_name(
    table_name: str,
    family: str,
    test_load_enable: bool = False,
    test_load_suffix: str = "",
) -> str:
    """
    Build the physical table name that holds ``family`` of ``table_name``.

    When test load is enabled, the suffix is inserted before the separator,
    so shadow traffic lands in ``<table><suffix>$<family>``.
    """
    _check_argument(table_name is not None, "table_name is null")
    _check_argument(family is not None, "family is null")
    if test_load_enable:
        return _test_load_target_table_name(table_name, family, test_load_suffix)
    return _normal_target_table_name(table_name, family)
