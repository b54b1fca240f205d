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

import logging

import mock
import pytest

from hkvtable.exceptions import FeatureNotSupportedError
from hkvtable.exceptions import TableIOError
from hkvtable.exceptions import TableOperationError
from hkvtable.mutations import Put


def _make_put(row=b"r", family="cf", value_size=16):
    """Put of a single cell. With defaults, its size is 40 bytes"""
    return Put(row).add_column(family, b"q", b"x" * value_size)


class TestWriteBuffer:
    @staticmethod
    def _get_target_class():
        from hkvtable.write_buffer import WriteBuffer

        return WriteBuffer

    def _make_one(self, send_batch=None, **kwargs):
        if send_batch is None:
            send_batch = mock.Mock(return_value=[0])
        kwargs.setdefault("table_name", "t")
        return self._get_target_class()(send_batch, **kwargs)

    def test_ctor_defaults(self):
        instance = self._make_one()
        assert instance.write_buffer_size == 2097152
        assert instance.put_write_buffer_check == 10
        assert instance.max_key_value_size == 10485760
        assert instance.auto_flush is True
        assert instance.clear_buffer_on_fail is True
        assert instance.current_size == 0
        assert len(instance) == 0
        assert instance.entries == []

    def test_ctor_invalid_check(self):
        with pytest.raises(ValueError):
            self._make_one(put_write_buffer_check=0)

    def test_ctor_auto_flush_forces_clear(self):
        instance = self._make_one(auto_flush=True, clear_buffer_on_fail=False)
        assert instance.clear_buffer_on_fail is True

    def test_add_auto_flush(self):
        send_batch = mock.Mock(return_value=[0])
        instance = self._make_one(send_batch)
        put = _make_put()
        instance.add(put)
        send_batch.assert_called_once_with("cf", put.cells())
        assert len(instance) == 0
        assert instance.current_size == 0

    def test_add_list_groups_by_family(self):
        send_batch = mock.Mock(return_value=[0])
        instance = self._make_one(send_batch)
        p1 = _make_put(b"a", "cf1")
        p2 = _make_put(b"b", "cf2")
        p3 = _make_put(b"c", "cf1")
        instance.add([p1, p2, p3])
        assert send_batch.call_args_list == [
            mock.call("cf1", p1.cells() + p3.cells()),
            mock.call("cf2", p2.cells()),
        ]
        assert len(instance) == 0

    def test_add_empty_put(self):
        instance = self._make_one()
        with pytest.raises(ValueError) as e:
            instance.add(Put(b"r"))
        assert str(e.value) == "No columns to insert"

    def test_add_multi_family(self):
        instance = self._make_one()
        put = Put(b"r").add_column("cf1", b"q", b"v").add_column("cf2", b"q", b"v")
        with pytest.raises(FeatureNotSupportedError):
            instance.add(put)

    def test_add_blank_family(self):
        instance = self._make_one(max_key_value_size=0)
        with pytest.raises(ValueError) as e:
            instance.add(_make_put(family=" "))
        assert str(e.value) == "family is blank"

    def test_add_oversized_cell(self):
        instance = self._make_one(max_key_value_size=39)
        with pytest.raises(ValueError) as e:
            instance.add(_make_put())
        assert str(e.value) == "KeyValue size too large"

    def test_add_size_check_disabled(self):
        send_batch = mock.Mock(return_value=[0])
        instance = self._make_one(send_batch, max_key_value_size=0)
        instance.add(_make_put(value_size=1024))
        send_batch.assert_called_once()

    def test_validation_error_keeps_earlier_puts(self):
        send_batch = mock.Mock(return_value=[0])
        instance = self._make_one(send_batch, auto_flush=False)
        good = _make_put()
        with pytest.raises(ValueError):
            instance.add([good, Put(b"r")])
        assert instance.entries == [good]
        assert instance.current_size == good.size()
        send_batch.assert_not_called()

    def test_occupancy_tracks_entries(self):
        instance = self._make_one(auto_flush=False)
        puts = [_make_put(value_size=n) for n in (1, 10, 100)]
        for put in puts:
            instance.add(put)
            assert instance.current_size == sum(p.size() for p in instance.entries)
        assert instance.entries == puts

    def test_flush_empty_is_noop(self):
        send_batch = mock.Mock()
        instance = self._make_one(send_batch, auto_flush=False)
        instance.flush()
        instance.flush()
        send_batch.assert_not_called()
        assert instance.current_size == 0

    def test_flush_twice_sends_once(self):
        send_batch = mock.Mock(return_value=[0])
        instance = self._make_one(send_batch, auto_flush=False)
        instance.add(_make_put())
        instance.flush()
        instance.flush()
        assert send_batch.call_count == 1

    def test_flush_when_third_put_exceeds_buffer(self):
        send_batch = mock.Mock(return_value=[0, 0, 0])
        instance = self._make_one(
            send_batch,
            auto_flush=False,
            write_buffer_size=100,
            put_write_buffer_check=1,
        )
        puts = [_make_put(bytes([i])) for i in range(3)]
        assert [p.size() for p in puts] == [40, 40, 40]
        instance.add(puts[0])
        assert instance.current_size == 40
        instance.add(puts[1])
        assert instance.current_size == 80
        send_batch.assert_not_called()
        instance.add(puts[2])
        send_batch.assert_called_once_with(
            "cf", [kv for p in puts for kv in p.cells()]
        )
        assert instance.current_size == 0
        assert len(instance) == 0

    def test_periodic_check_within_list(self):
        send_batch = mock.Mock(return_value=[0])
        instance = self._make_one(
            send_batch,
            auto_flush=False,
            write_buffer_size=30,
            put_write_buffer_check=2,
        )
        puts = [_make_put(bytes([i])) for i in range(5)]
        instance.add(puts)
        # checked after the 2nd and 4th put, then once more after the list
        assert send_batch.call_count == 3
        assert [len(c.args[1]) for c in send_batch.call_args_list] == [2, 2, 1]
        assert instance.current_size == 0

    def test_below_threshold_without_auto_flush(self):
        send_batch = mock.Mock()
        instance = self._make_one(send_batch, auto_flush=False, write_buffer_size=100)
        instance.add([_make_put(), _make_put()])
        send_batch.assert_not_called()
        assert len(instance) == 2

    def test_partial_failure_keeps_failed_family(self):
        def send_batch(family, key_values):
            if family == "cf1":
                raise TableOperationError(5, [0, 5])
            return [0] * len(key_values)

        send_batch = mock.Mock(side_effect=send_batch)
        instance = self._make_one(send_batch, auto_flush=True)
        instance.set_auto_flush(False, False)
        p1 = _make_put(b"a", "cf1")
        p2 = _make_put(b"b", "cf2", value_size=1)
        p3 = _make_put(b"c", "cf1", value_size=2)
        instance.add([p1, p2, p3])
        with pytest.raises(TableIOError) as e:
            instance.flush()
        assert isinstance(e.value.__cause__, TableOperationError)
        assert e.value.__cause__.error_codes == [0, 5]
        assert "family cf1" in e.value.message
        # every family was attempted
        assert [c.args[0] for c in send_batch.call_args_list] == ["cf1", "cf2"]
        assert instance.entries == [p1, p3]
        assert instance.current_size == p1.size() + p3.size()

    def test_partial_failure_retried_on_next_flush(self):
        send_batch = mock.Mock(side_effect=[RuntimeError("unavailable"), [0]])
        instance = self._make_one(send_batch, auto_flush=False, clear_buffer_on_fail=False)
        put = _make_put()
        instance.add(put)
        with pytest.raises(TableIOError):
            instance.flush()
        assert instance.entries == [put]
        instance.flush()
        assert instance.entries == []
        assert send_batch.call_args_list[1] == mock.call("cf", put.cells())

    def test_failure_clears_buffer_by_default(self):
        send_batch = mock.Mock(side_effect=TableOperationError(5, [5]))
        instance = self._make_one(send_batch, auto_flush=False)
        assert instance.clear_buffer_on_fail is True
        instance.add(_make_put())
        with pytest.raises(TableIOError):
            instance.flush()
        assert instance.entries == []
        assert instance.current_size == 0

    def test_auto_flush_failure_clears_buffer(self):
        send_batch = mock.Mock(side_effect=TableOperationError(5, [5]))
        instance = self._make_one(send_batch)
        with pytest.raises(TableIOError):
            instance.add(_make_put())
        assert len(instance) == 0
        assert instance.current_size == 0

    def test_failure_is_logged(self, caplog):
        send_batch = mock.Mock(side_effect=TableOperationError(5, [5]))
        instance = self._make_one(send_batch, table_name="my_table")
        with caplog.at_level(logging.ERROR, logger="hkvtable.write_buffer"):
            with pytest.raises(TableIOError):
                instance.add(_make_put())
        assert "my_table" in caplog.text
        assert "cf" in caplog.text

    def test_set_write_buffer_size_flushes(self):
        send_batch = mock.Mock(return_value=[0])
        instance = self._make_one(send_batch, auto_flush=False, write_buffer_size=100)
        instance.add(_make_put())
        send_batch.assert_not_called()
        instance.set_write_buffer_size(50)
        send_batch.assert_not_called()
        instance.set_write_buffer_size(10)
        send_batch.assert_called_once()
        assert instance.write_buffer_size == 10
        assert len(instance) == 0

    @pytest.mark.parametrize(
        "auto_flush,clear_buffer_on_fail,expected",
        [
            (True, None, True),
            (True, False, True),
            (False, None, False),
            (False, False, False),
            (False, True, True),
        ],
    )
    def test_set_auto_flush(self, auto_flush, clear_buffer_on_fail, expected):
        instance = self._make_one()
        instance.set_auto_flush(auto_flush, clear_buffer_on_fail)
        assert instance.auto_flush is auto_flush
        assert instance.clear_buffer_on_fail is expected
