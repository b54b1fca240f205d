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

import concurrent.futures
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from google.api_core import exceptions as core_exceptions
from google.api_core import retry as retries

from hkvtable.exceptions import TableIOError
from hkvtable.exceptions import OperationTimeoutError

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

# retry settings for transient errors of a single call
_RETRY_INITIAL = 0.1
_RETRY_MAXIMUM = 2.0
_RETRY_MULTIPLIER = 2.0
_RETRY_TIMEOUT = 30.0


def _is_retryable(exc: Exception) -> bool:
    """
    Transient server unavailability is retried, including when it was
    wrapped into a TableIOError by the call site.
    """
    if isinstance(exc, core_exceptions.ServiceUnavailable):
        return True
    return isinstance(exc, TableIOError) and isinstance(
        exc.__cause__, core_exceptions.ServiceUnavailable
    )


def _remaining(deadline: float | None) -> float | None:
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


@dataclass
class _ServerCallable(Generic[T]):
    """
    One remote call of a table operation.

    ``attempt`` performs a single try and returns the result or raises.
    The remaining fields describe the inputs for logging and errors.
    """

    description: str
    attempt: Callable[[], T]
    table_name: str
    start_row: bytes | None = None
    stop_row: bytes | None = None

    def __call__(self) -> T:
        return self.attempt()

    def with_retries(self, timeout: float | None = None) -> T:
        """
        Run the attempt, retrying transient errors until ``timeout``
        seconds have passed
        """
        retry = retries.Retry(
            predicate=_is_retryable,
            initial=_RETRY_INITIAL,
            maximum=_RETRY_MAXIMUM,
            multiplier=_RETRY_MULTIPLIER,
            timeout=timeout if timeout is not None else _RETRY_TIMEOUT,
        )
        try:
            return retry(self.attempt)()
        except core_exceptions.RetryError as exc:
            raise TableIOError(
                f"{self.description} table {self.table_name} retries exhausted"
            ) from exc.cause

    def __repr__(self):
        return (
            f"_ServerCallable({self.description!r}, table={self.table_name!r}, "
            f"start_row={self.start_row!r}, stop_row={self.stop_row!r})"
        )


class _BoundedExecutor:
    """
    Runs server callables either inline, or on a private bounded pool with
    a hard deadline.

    The pool hands work directly to a thread: once ``max_threads`` calls are
    in flight, further submissions block until a thread frees up or the
    deadline passes, instead of queueing.
    """

    def __init__(
        self,
        table_name: str,
        operation_timeout: float | None = None,
        execute_in_pool: bool = False,
        max_threads: int = 1,
        keep_alive_time: float = 60,
        executor: concurrent.futures.Executor | None = None,
    ):
        self.table_name = table_name
        self.operation_timeout = operation_timeout
        self.execute_in_pool = execute_in_pool
        self.max_threads = max_threads
        # kept for configuration parity. ThreadPoolExecutor threads live
        # until shutdown
        self.keep_alive_time = keep_alive_time
        self._executor = executor
        self._owns_executor = executor is None
        self._slots = threading.BoundedSemaphore(max_threads)
        self._lock = threading.Lock()

    @property
    def executor(self) -> concurrent.futures.Executor:
        """
        Return the pool, creating the private one on first use
        """
        with self._lock:
            if self._executor is None:
                self._executor = concurrent.futures.ThreadPoolExecutor(
                    max_workers=self.max_threads,
                    thread_name_prefix="hkvtable-execute",
                )
            return self._executor

    def execute(self, server_callable: _ServerCallable[T]) -> T:
        """
        Run ``server_callable`` and return its result.

        Raises:
          - OperationTimeoutError: the pool call did not finish in time
          - TableIOError: the wait was interrupted, or the call failed with a
              non-API error
          - GoogleAPICallError: the call failed with an API error, re-raised
              as is
        """
        if not self.execute_in_pool:
            return server_callable.with_retries()

        start_time = time.monotonic()
        deadline = (
            None
            if self.operation_timeout is None
            else start_time + self.operation_timeout
        )
        # waiting for a free thread counts against the same deadline
        if not self._slots.acquire(timeout=_remaining(deadline)):
            raise self._timeout_error(server_callable, start_time)
        try:
            future = self.executor.submit(
                server_callable.with_retries, _remaining(deadline)
            )
        except BaseException:
            self._slots.release()
            raise
        future.add_done_callback(lambda _: self._slots.release())
        try:
            return future.result(timeout=_remaining(deadline))
        except (concurrent.futures.CancelledError, InterruptedError) as exc:
            future.cancel()
            raise TableIOError("Interrupted") from exc
        except concurrent.futures.TimeoutError as exc:
            if future.done():
                # raised by the call itself, not by the wait
                raise TableIOError(
                    f"{server_callable.description} table {self.table_name} error."
                ) from exc
            future.cancel()
            raise self._timeout_error(server_callable, start_time) from None
        except core_exceptions.GoogleAPICallError:
            raise
        except Exception as exc:
            raise TableIOError(
                f"{server_callable.description} table {self.table_name} error."
            ) from exc

    def call(self, server_callable: _ServerCallable[T]) -> T:
        """
        Run a single attempt of ``server_callable`` on the calling thread.

        No retries and no deadline. Errors propagate unchanged.
        """
        return server_callable()

    def _timeout_error(
        self, server_callable: _ServerCallable, start_time: float
    ) -> OperationTimeoutError:
        wait_time = time.monotonic() - start_time
        _LOGGER.warning(
            "%s on table %s timed out after %.3fs",
            server_callable.description,
            self.table_name,
            wait_time,
        )
        return OperationTimeoutError(
            self.table_name, self.operation_timeout, wait_time
        )

    def shutdown(self, wait: bool = True) -> None:
        """
        Shut down the pool if it was created here. A caller-provided pool is
        left to its owner.
        """
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=True)
