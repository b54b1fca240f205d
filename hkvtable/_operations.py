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
Translation of cell mutations into table-query batch operations.
"""
from __future__ import annotations

import struct
from typing import Collection, Iterable

from hkvtable._helpers import _check_argument
from hkvtable._helpers import _is_blank
from hkvtable.exceptions import FeatureNotSupportedError
from hkvtable.exceptions import TableOperationError
from hkvtable.mutations import KeyValue
from hkvtable.mutations import KeyValueType
from hkvtable.mutations import LATEST_TIMESTAMP
from hkvtable.wire import BatchOperation
from hkvtable.wire import BatchOperationResult
from hkvtable.wire import OperationType
from hkvtable.wire import TableOperation
from hkvtable.wire import V_COLUMNS

_PACK_I64 = struct.Struct(">q").pack
_MIN_I64 = -(2**63)
_MAX_I64 = 2**63 - 1


def check_family_violation(families: Collection[str] | None) -> None:
    """
    Only single-family operations are supported.

    Raises:
      - FeatureNotSupportedError: if there is no family, or more than one
      - ValueError: if the family name is blank
    """
    if not families:
        raise FeatureNotSupportedError("family is empty.")
    if len(families) > 1:
        raise FeatureNotSupportedError("multi family is not supported yet.")
    for family in families:
        if _is_blank(family):
            raise ValueError("family is blank")


def build_operation(key_value: KeyValue, put_to_append: bool = False) -> TableOperation:
    """
    Convert one cell mutation into one wire operation.

    Column and family tombstones are sent with a negated timestamp, meaning
    "every version up to |timestamp|".
    """
    kv_type = key_value.type
    if kv_type is KeyValueType.PUT:
        operation_type = (
            OperationType.APPEND if put_to_append else OperationType.INSERT_OR_UPDATE
        )
        return TableOperation(
            operation_type,
            (key_value.row, key_value.qualifier, key_value.timestamp),
            V_COLUMNS,
            (key_value.value,),
        )
    elif kv_type is KeyValueType.DELETE:
        return TableOperation(
            OperationType.DEL,
            (key_value.row, key_value.qualifier, key_value.timestamp),
        )
    elif kv_type is KeyValueType.DELETE_COLUMN:
        return TableOperation(
            OperationType.DEL,
            (key_value.row, key_value.qualifier, -key_value.timestamp),
        )
    elif kv_type is KeyValueType.DELETE_FAMILY:
        return TableOperation(
            OperationType.DEL,
            (key_value.row, None, -key_value.timestamp),
        )
    raise ValueError(f"illegal mutation type {kv_type}")


def build_increment_operation(row: bytes, qualifier: bytes, amount: int) -> TableOperation:
    """
    Increment the latest version of a counter column by ``amount``
    """
    _check_argument(
        _MIN_I64 <= amount <= _MAX_I64, f"increment amount {amount} out of range"
    )
    return TableOperation(
        OperationType.INCREMENT,
        (row, qualifier, LATEST_TIMESTAMP),
        V_COLUMNS,
        (_PACK_I64(amount),),
    )


def _mark_homogeneous(batch: BatchOperation) -> BatchOperation:
    if batch.operations:
        first = batch.operations[0]
        batch.same_type = all(
            op.operation_type is first.operation_type for op in batch.operations
        )
        batch.same_properties_names = all(
            op.columns == first.columns for op in batch.operations
        )
    return batch


def build_batch_operation(
    key_values: Iterable[KeyValue],
    put_to_append: bool = False,
    qualifiers: list[bytes | None] | None = None,
) -> BatchOperation:
    """
    Translate the cells of a single family into one batch operation.

    Args:
      - key_values: cells to translate, in order
      - put_to_append: translate puts into append operations
      - qualifiers: if given, every translated qualifier is appended to it
    """
    batch = BatchOperation()
    for key_value in key_values:
        if qualifiers is not None:
            qualifiers.append(key_value.qualifier)
        batch.add_table_operation(build_operation(key_value, put_to_append))
    return _mark_homogeneous(batch)


def build_increment_batch(
    row: bytes,
    amounts: dict[bytes, int],
    qualifiers: list[bytes | None] | None = None,
) -> BatchOperation:
    batch = BatchOperation()
    for qualifier, amount in amounts.items():
        if qualifiers is not None:
            qualifiers.append(qualifier)
        batch.add_table_operation(build_increment_operation(row, qualifier, amount))
    return _mark_homogeneous(batch)


def raise_for_batch_result(result: BatchOperationResult) -> list[int]:
    """
    Inspect the per-entry error codes of a batch result.

    Returns the list of codes. If any entry failed, raises a
    TableOperationError carrying the first non-zero code and the full list.
    """
    error_codes = result.error_codes
    for operation_result in result.results:
        if operation_result.errno != 0:
            raise TableOperationError(
                operation_result.errno,
                error_codes,
                execute_host=operation_result.execute_host,
                execute_port=operation_result.execute_port,
            )
    return error_codes
