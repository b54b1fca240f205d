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
import threading
from typing import Any, Callable, Protocol, Set

from hkvtable.options import TableOptions
from hkvtable.wire import TableRequest

_LOGGER = logging.getLogger(__name__)


class TableClient(Protocol):
    """
    Transport executing table-query requests.

    ``execute`` returns:
      - a QueryResult, or any iterable of ``(K, Q, T, V)`` rows, for a
        QueryRequest
      - a BatchOperationResult for a BatchOperationRequest
      - a QueryAndMutateResult for a QueryAndMutateRequest

    Transports may also provide ``refresh_table_entry(table_name)`` to reload
    routing information, and ``close()`` to release connections.
    """

    def execute(self, request: TableRequest) -> Any:
        ...


ClientFactory = Callable[[TableOptions], TableClient]


class ClientRegistry:
    """
    Shares one client between every table opened with the same connection
    identity (see :meth:`TableOptions.connection_key`).

    Owners are tracked per connection, and a client is only closed when all
    owners have released it.
    """

    def __init__(self):
        self._clients: dict[tuple, TableClient] = {}
        self._owners: dict[tuple, Set[int]] = {}
        self._lock = threading.Lock()

    def acquire(
        self, options: TableOptions, factory: ClientFactory, owner: object
    ) -> TableClient:
        """
        Return the client for ``options``, creating it with ``factory`` on
        first use.

        Args:
          - options: options of the table being opened
          - factory: creates a client from options
          - owner: object holding the client until it calls :meth:`release`
        """
        key = options.connection_key()
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = factory(options)
                self._clients[key] = client
                _LOGGER.debug("created client for %s", options.param_url)
            self._owners.setdefault(key, set()).add(id(owner))
            return client

    def release(self, options: TableOptions, owner: object) -> bool:
        """
        Drop ``owner``'s hold on the client for ``options``.

        The client is closed and evicted once no owner is left.

        Returns:
          - True if the client was closed
        """
        key = options.connection_key()
        with self._lock:
            owners = self._owners.get(key, set())
            owners.discard(id(owner))
            if owners or key not in self._clients:
                return False
            client = self._clients.pop(key)
            self._owners.pop(key, None)
        _close_client(client)
        return True

    def clear(self) -> None:
        """
        Close and evict every client, regardless of owners
        """
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
            self._owners.clear()
        for client in clients:
            _close_client(client)

    def __len__(self) -> int:
        return len(self._clients)

    def __contains__(self, options: object) -> bool:
        if not isinstance(options, TableOptions):
            return False
        return options.connection_key() in self._clients


def _close_client(client: TableClient) -> None:
    close_fn = getattr(client, "close", None)
    if callable(close_fn):
        close_fn()


_DEFAULT_REGISTRY = ClientRegistry()


def default_registry() -> ClientRegistry:
    """
    Process-wide registry used by :meth:`Table.from_options`
    """
    return _DEFAULT_REGISTRY
