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

from typing import Sequence

from google.api_core import exceptions as core_exceptions


class FeatureNotSupportedError(NotImplementedError):
    """
    Raised for table capabilities that are not available on top of the
    table-query protocol, such as row locks, coprocessors, or operations that
    span more than one column family.
    """

    def __init__(self, message: str = "not supported yet."):
        super().__init__(message)


class TableIOError(core_exceptions.GoogleAPICallError):
    """
    Failure of a public table operation.

    The underlying remote error, if any, is attached as ``__cause__``.
    """


class TableOperationError(core_exceptions.GoogleAPICallError):
    """
    One or more entries of a batch operation returned a non-zero error code.

    Only the first non-zero code is used as the representative code of the
    whole batch. The full per-entry list is kept in ``error_codes`` so callers
    can tell a partially failed batch from a fully failed one.
    """

    def __init__(
        self,
        error_code: int,
        error_codes: Sequence[int] = (),
        execute_host: str | None = None,
        execute_port: int | None = None,
        message: str | None = None,
    ):
        self.error_code = error_code
        self.error_codes = list(error_codes)
        self.execute_host = execute_host
        self.execute_port = execute_port
        if message is None:
            failed = sum(1 for code in self.error_codes if code != 0)
            entry_str = "entry" if failed == 1 else "entries"
            message = (
                f"error code {error_code}: {failed} failed {entry_str} "
                f"from {len(self.error_codes)} attempted"
            )
            if execute_host is not None:
                message += f" (server={execute_host}:{execute_port})"
        super().__init__(message)

    @property
    def failed_indices(self) -> list[int]:
        """Positions of the batch entries that reported a non-zero code"""
        return [idx for idx, code in enumerate(self.error_codes) if code != 0]


class OperationTimeoutError(core_exceptions.DeadlineExceeded):
    """
    Raised when a call executed in the private pool did not finish within
    the configured operation timeout.

    This is a client-side observation. The remote call may still complete
    after the pending task has been asked to cancel.
    """

    def __init__(
        self,
        table_name: str,
        operation_timeout: float | None,
        wait_time: float,
    ):
        self.table_name = table_name
        self.operation_timeout = operation_timeout
        self.wait_time = wait_time
        message = (
            f"Failed executing operation for table '{table_name}' on server "
            f"unknown,region=unknown,operation_timeout={operation_timeout},"
            f"wait_time={wait_time:.3f}s"
        )
        super().__init__(message)
