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


class TestTableOptions:
    @staticmethod
    def _get_target_class():
        from hkvtable.options import TableOptions

        return TableOptions

    def _make_one(self, *args, **kwargs):
        return self._get_target_class()(*args, **kwargs)

    def test_defaults(self):
        options = self._make_one()
        assert options.operation_timeout is None
        assert options.execute_in_pool is None
        assert options.operation_execute_in_pool is False
        assert options.max_threads == 16
        assert options.keep_alive_time == 60
        assert options.write_buffer_size == 2097152
        assert options.put_write_buffer_check == 10
        assert options.max_key_value_size == 10485760
        assert options.test_load_enable is False
        assert options.test_load_suffix == "_t"

    def test_execute_in_pool_follows_timeout(self):
        assert self._make_one(operation_timeout=2.0).operation_execute_in_pool is True

    def test_execute_in_pool_explicit(self):
        options = self._make_one(operation_timeout=2.0, execute_in_pool=False)
        assert options.operation_execute_in_pool is False
        options = self._make_one(execute_in_pool=True)
        assert options.operation_execute_in_pool is True

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_threads": 0},
            {"put_write_buffer_check": 0},
            {"operation_timeout": 0},
            {"operation_timeout": -1.0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            self._make_one(**kwargs)

    def test_connection_key(self):
        options = self._make_one(
            param_url="http://config/url",
            full_user_name="user@tenant#cluster",
            password="secret",
            sys_user_name="root",
            sys_password="sys",
            write_buffer_size=1,
        )
        assert options.connection_key() == (
            "http://config/url",
            "user@tenant#cluster",
            "secret",
            "root",
            "sys",
        )
        other = options.with_overrides(write_buffer_size=100)
        assert other.connection_key() == options.connection_key()
        assert other.write_buffer_size == 100
        assert options.write_buffer_size == 1

    def test_with_overrides_validates(self):
        with pytest.raises(ValueError):
            self._make_one().with_overrides(max_threads=0)

    def test_from_dict_hbase_keys(self):
        from hkvtable import options as options_module

        options = self._get_target_class().from_dict(
            {
                options_module.OPERATION_TIMEOUT_KEY: "1500",
                options_module.MAX_THREADS_KEY: "4",
                options_module.KEEP_ALIVE_TIME_KEY: "30",
                options_module.WRITE_BUFFER_KEY: 100,
                options_module.PUT_WRITE_BUFFER_CHECK_KEY: "1",
                options_module.KEY_VALUE_MAX_SIZE_KEY: "0",
                options_module.TEST_LOAD_ENABLE_KEY: "true",
                options_module.TEST_LOAD_SUFFIX_KEY: "_shadow",
                options_module.PARAM_URL_KEY: "http://config/url",
                options_module.FULL_USER_NAME_KEY: "user",
                options_module.PASSWORD_KEY: "pw",
                "unknown.key": "ignored",
            }
        )
        assert options.operation_timeout == 1.5
        assert options.operation_execute_in_pool is True
        assert options.max_threads == 4
        assert options.keep_alive_time == 30.0
        assert options.write_buffer_size == 100
        assert options.put_write_buffer_check == 1
        assert options.max_key_value_size == 0
        assert options.test_load_enable is True
        assert options.test_load_suffix == "_shadow"
        assert options.param_url == "http://config/url"
        assert options.full_user_name == "user"
        assert options.password == "pw"

    def test_from_dict_unbounded_timeout(self):
        from hkvtable import options as options_module

        options = self._get_target_class().from_dict(
            {
                options_module.OPERATION_TIMEOUT_KEY: options_module.UNBOUNDED_OPERATION_TIMEOUT_MS
            }
        )
        assert options.operation_timeout is None
        assert options.operation_execute_in_pool is False

    @pytest.mark.parametrize(
        "value,expected",
        [("true", True), ("False", False), ("1", True), ("no", False), (True, True)],
    )
    def test_from_dict_execute_in_pool(self, value, expected):
        from hkvtable import options as options_module

        options = self._get_target_class().from_dict(
            {options_module.EXECUTE_IN_POOL_KEY: value}
        )
        assert options.operation_execute_in_pool is expected

    def test_from_dict_field_names(self):
        options = self._get_target_class().from_dict(
            {"write_buffer_size": 10, "max_threads": 2}
        )
        assert options.write_buffer_size == 10
        assert options.max_threads == 2

    def test_from_dict_invalid(self):
        from hkvtable import options as options_module

        with pytest.raises(ValueError):
            self._get_target_class().from_dict({options_module.MAX_THREADS_KEY: "0"})
