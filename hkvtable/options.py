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

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping

# used to make more readable default values
MB_SIZE = 1024 * 1024

OPERATION_TIMEOUT_KEY = "hbase.client.operation.timeout"
EXECUTE_IN_POOL_KEY = "hbase.client.operation.executeinpool"
MAX_THREADS_KEY = "hbase.htable.threads.max"
KEEP_ALIVE_TIME_KEY = "hbase.htable.threads.keepalivetime"
WRITE_BUFFER_KEY = "hbase.client.write.buffer"
PUT_WRITE_BUFFER_CHECK_KEY = "hbase.htable.put.write.buffer.check"
KEY_VALUE_MAX_SIZE_KEY = "hbase.client.keyvalue.maxsize"
TEST_LOAD_ENABLE_KEY = "hbase.htable.test.load.enable"
TEST_LOAD_SUFFIX_KEY = "hbase.htable.test.load.suffix"
PARAM_URL_KEY = "hbase.oceanbase.paramURL"
FULL_USER_NAME_KEY = "hbase.oceanbase.fullUserName"
PASSWORD_KEY = "hbase.oceanbase.password"
SYS_USER_NAME_KEY = "hbase.oceanbase.sysUserName"
SYS_PASSWORD_KEY = "hbase.oceanbase.sysPassword"

# timeout value, in ms, that means "no client-side deadline"
UNBOUNDED_OPERATION_TIMEOUT_MS = 2**31 - 1
DEFAULT_MAX_THREADS = 16
DEFAULT_KEEP_ALIVE_TIME = 60
DEFAULT_WRITE_BUFFER_SIZE = 2 * MB_SIZE
DEFAULT_PUT_WRITE_BUFFER_CHECK = 10
DEFAULT_KEY_VALUE_MAX_SIZE = 10 * MB_SIZE
DEFAULT_TEST_LOAD_SUFFIX = "_t"


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "on")
    return bool(value)


@dataclass
class TableOptions:
    # deadline for calls executed in the private pool, in seconds.
    # None means no client-side deadline
    operation_timeout: float | None = None
    # run reads in the private pool. None derives it from operation_timeout
    execute_in_pool: bool | None = None
    # maximum threads in the private pool
    max_threads: int = DEFAULT_MAX_THREADS
    # idle time before an extra pool thread exits, in seconds
    keep_alive_time: float = DEFAULT_KEEP_ALIVE_TIME
    # buffered puts are flushed once they exceed this many bytes
    write_buffer_size: int = DEFAULT_WRITE_BUFFER_SIZE
    # check the buffer size after this many buffered puts
    put_write_buffer_check: int = DEFAULT_PUT_WRITE_BUFFER_CHECK
    # reject cells larger than this. 0 or less disables the check
    max_key_value_size: int = DEFAULT_KEY_VALUE_MAX_SIZE
    # route traffic to shadow tables named <table><suffix>$<family>
    test_load_enable: bool = False
    test_load_suffix: str = DEFAULT_TEST_LOAD_SUFFIX
    # connection identity, used as the client registry key
    param_url: str | None = None
    full_user_name: str | None = None
    password: str | None = None
    sys_user_name: str | None = None
    sys_password: str | None = None

    def __post_init__(self):
        if self.max_threads < 1:
            raise ValueError("max_threads must be greater than 0")
        if self.put_write_buffer_check < 1:
            raise ValueError("put_write_buffer_check must be greater than 0")
        if self.operation_timeout is not None and self.operation_timeout <= 0:
            raise ValueError("operation_timeout must be greater than 0")

    @property
    def operation_execute_in_pool(self) -> bool:
        """
        Whether reads run in the private pool. Unless set explicitly, this is
        enabled whenever a non-default operation timeout is configured.
        """
        if self.execute_in_pool is not None:
            return self.execute_in_pool
        return self.operation_timeout is not None

    def connection_key(self) -> tuple:
        """
        Identity of the remote connection described by these options.
        Tables with equal keys share one client.
        """
        return (
            self.param_url,
            self.full_user_name,
            self.password,
            self.sys_user_name,
            self.sys_password,
        )

    def with_overrides(self, **kwargs: Any) -> "TableOptions":
        return replace(self, **kwargs)

    @classmethod
    def from_dict(cls, configuration: Mapping[str, Any]) -> "TableOptions":
        """
        Create options from a mapping of HBase-style configuration keys.

        Field names are accepted as keys as well. Unknown keys are ignored.
        Timeouts under ``hbase.client.operation.timeout`` are in milliseconds.
        """
        field_names = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {
            k: v for k, v in configuration.items() if k in field_names
        }
        if OPERATION_TIMEOUT_KEY in configuration:
            timeout_ms = configuration[OPERATION_TIMEOUT_KEY]
            if timeout_ms is None or int(timeout_ms) == UNBOUNDED_OPERATION_TIMEOUT_MS:
                kwargs["operation_timeout"] = None
            else:
                kwargs["operation_timeout"] = int(timeout_ms) / 1000.0
        if EXECUTE_IN_POOL_KEY in configuration:
            kwargs["execute_in_pool"] = _as_bool(configuration[EXECUTE_IN_POOL_KEY])
        if TEST_LOAD_ENABLE_KEY in configuration:
            kwargs["test_load_enable"] = _as_bool(configuration[TEST_LOAD_ENABLE_KEY])
        int_keys = {
            MAX_THREADS_KEY: "max_threads",
            WRITE_BUFFER_KEY: "write_buffer_size",
            PUT_WRITE_BUFFER_CHECK_KEY: "put_write_buffer_check",
            KEY_VALUE_MAX_SIZE_KEY: "max_key_value_size",
        }
        for key, name in int_keys.items():
            if key in configuration:
                kwargs[name] = int(configuration[key])
        if KEEP_ALIVE_TIME_KEY in configuration:
            kwargs["keep_alive_time"] = float(configuration[KEEP_ALIVE_TIME_KEY])
        str_keys = {
            TEST_LOAD_SUFFIX_KEY: "test_load_suffix",
            PARAM_URL_KEY: "param_url",
            FULL_USER_NAME_KEY: "full_user_name",
            PASSWORD_KEY: "password",
            SYS_USER_NAME_KEY: "sys_user_name",
            SYS_PASSWORD_KEY: "sys_password",
        }
        for key, name in str_keys.items():
            if key in configuration:
                kwargs[name] = configuration[key]
        return cls(**kwargs)
