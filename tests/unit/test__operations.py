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

import pytest

import hkvtable._operations as _operations
from hkvtable.exceptions import FeatureNotSupportedError
from hkvtable.exceptions import TableOperationError
from hkvtable.mutations import Delete
from hkvtable.mutations import KeyValue
from hkvtable.mutations import KeyValueType
from hkvtable.mutations import LATEST_TIMESTAMP
from hkvtable.mutations import Put
from hkvtable.wire import BatchOperationResult
from hkvtable.wire import OperationResult
from hkvtable.wire import OperationType


class TestCheckFamilyViolation:
    def test_single_family(self):
        assert _operations.check_family_violation(["cf"]) is None

    @pytest.mark.parametrize("families", [[], None])
    def test_no_family(self, families):
        with pytest.raises(FeatureNotSupportedError) as e:
            _operations.check_family_violation(families)
        assert str(e.value) == "family is empty."

    def test_multi_family(self):
        with pytest.raises(FeatureNotSupportedError) as e:
            _operations.check_family_violation(["cf1", "cf2"])
        assert str(e.value) == "multi family is not supported yet."

    @pytest.mark.parametrize("family", ["", "  "])
    def test_blank_family(self, family):
        with pytest.raises(ValueError) as e:
            _operations.check_family_violation([family])
        assert str(e.value) == "family is blank"


class TestBuildOperation:
    def _key_value(self, kv_type, qualifier=b"q", timestamp=5, value=None):
        return KeyValue(b"row", "cf", qualifier, timestamp, kv_type, value)

    def test_put(self):
        operation = _operations.build_operation(
            self._key_value(KeyValueType.PUT, value=b"v")
        )
        assert operation.operation_type is OperationType.INSERT_OR_UPDATE
        assert operation.row_key == (b"row", b"q", 5)
        assert operation.columns == ("V",)
        assert operation.properties == (b"v",)

    def test_put_to_append(self):
        operation = _operations.build_operation(
            self._key_value(KeyValueType.PUT, value=b"v"), put_to_append=True
        )
        assert operation.operation_type is OperationType.APPEND
        assert operation.row_key == (b"row", b"q", 5)

    def test_delete_keeps_timestamp(self):
        operation = _operations.build_operation(self._key_value(KeyValueType.DELETE))
        assert operation.operation_type is OperationType.DEL
        assert operation.row_key == (b"row", b"q", 5)
        assert operation.columns is None

    def test_delete_column_negates_timestamp(self):
        operation = _operations.build_operation(
            self._key_value(KeyValueType.DELETE_COLUMN)
        )
        assert operation.operation_type is OperationType.DEL
        assert operation.row_key == (b"row", b"q", -5)

    def test_delete_family(self):
        operation = _operations.build_operation(
            self._key_value(KeyValueType.DELETE_FAMILY, qualifier=None)
        )
        assert operation.operation_type is OperationType.DEL
        assert operation.row_key == (b"row", None, -5)

    def test_delete_family_ignores_qualifier(self):
        operation = _operations.build_operation(
            self._key_value(KeyValueType.DELETE_FAMILY, qualifier=b"q")
        )
        assert operation.qualifier is None

    def test_deletion_sentinel_from_delete(self):
        delete = Delete(b"row").delete_family("cf", 100).delete_columns("cf", "c", 7)
        batch = _operations.build_batch_operation(delete.cells())
        assert [op.row_key for op in batch.operations] == [
            (b"row", None, -100),
            (b"row", b"c", -7),
        ]
        assert all(op.operation_type is OperationType.DEL for op in batch.operations)


class TestBuildIncrementOperation:
    def test_increment(self):
        operation = _operations.build_increment_operation(b"row", b"c", 2)
        assert operation.operation_type is OperationType.INCREMENT
        assert operation.row_key == (b"row", b"c", LATEST_TIMESTAMP)
        assert operation.columns == ("V",)
        assert operation.properties == ((2).to_bytes(8, "big", signed=True),)

    def test_negative_amount(self):
        operation = _operations.build_increment_operation(b"row", b"c", -1)
        assert operation.properties == (b"\xff" * 8,)

    @pytest.mark.parametrize("amount", [2**63 - 1, -(2**63)])
    def test_amount_limits(self, amount):
        operation = _operations.build_increment_operation(b"row", b"c", amount)
        assert operation.properties == (amount.to_bytes(8, "big", signed=True),)

    @pytest.mark.parametrize("amount", [2**63, -(2**63) - 1])
    def test_amount_out_of_range(self, amount):
        with pytest.raises(ValueError) as e:
            _operations.build_increment_operation(b"row", b"c", amount)
        assert str(e.value) == f"increment amount {amount} out of range"


class TestBuildBatchOperation:
    def test_homogeneous_puts(self):
        put = Put(b"row").add_column("cf", "a", "1").add_column("cf", "b", "2")
        batch = _operations.build_batch_operation(put.cells())
        assert len(batch) == 2
        assert batch.same_type is True
        assert batch.same_properties_names is True

    def test_mixed_types(self):
        cells = [
            KeyValue(b"r", "cf", b"a", 1, KeyValueType.PUT, b"v"),
            KeyValue(b"r", "cf", b"a", 1, KeyValueType.DELETE),
        ]
        batch = _operations.build_batch_operation(cells)
        assert batch.same_type is False
        assert batch.same_properties_names is False

    def test_empty(self):
        batch = _operations.build_batch_operation([])
        assert len(batch) == 0
        assert batch.same_type is False

    def test_collects_qualifiers(self):
        put = Put(b"row").add_column("cf", "a", "1").add_column("cf", None, "2")
        qualifiers = []
        _operations.build_batch_operation(put.cells(), True, qualifiers)
        assert qualifiers == [b"a", None]

    def test_increment_batch(self):
        qualifiers = []
        batch = _operations.build_increment_batch(
            b"row", {b"c1": 1, b"c2": 2}, qualifiers
        )
        assert qualifiers == [b"c1", b"c2"]
        assert [op.qualifier for op in batch.operations] == [b"c1", b"c2"]
        assert batch.same_type is True


class TestRaiseForBatchResult:
    def test_success(self):
        result = BatchOperationResult([OperationResult(), OperationResult()])
        assert _operations.raise_for_batch_result(result) == [0, 0]

    def test_first_error_wins(self):
        result = BatchOperationResult(
            [
                OperationResult(),
                OperationResult(errno=5, execute_host="h", execute_port=1),
                OperationResult(errno=6),
            ]
        )
        with pytest.raises(TableOperationError) as e:
            _operations.raise_for_batch_result(result)
        assert e.value.error_code == 5
        assert e.value.error_codes == [0, 5, 6]
        assert e.value.execute_host == "h"
        assert e.value.failed_indices == [1, 2]
