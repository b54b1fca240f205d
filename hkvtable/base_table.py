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

"""Capability set shared by wide-column table implementations."""

from hkvtable._helpers import _target_table_name


class BaseTable(object):
    """Representation of a wide-column table.

    .. note::

        A table holds no schema locally. Every column family is stored in
        its own physical table named ``{table_name}${family}``.

    We can use a :class:`Table` to:

    * :meth:`get`, :meth:`exists` and scan rows
    * :meth:`put` and :meth:`delete` cells
    * atomically :meth:`append`, :meth:`increment` and
      :meth:`check_and_put` cells of a single row

    :type table_name: str
    :param table_name: The logical name of the table.

    :type client: :class:`~hkvtable.client.TableClient`
    :param client: The client executing table-query requests.

    :type test_load_enable: bool
    :param test_load_enable: (Optional) Route requests to the shadow tables
                             named ``{table_name}{test_load_suffix}${family}``.
    """

    def __init__(self, table_name, client, test_load_enable=False, test_load_suffix=""):
        if not table_name or not table_name.strip():
            raise ValueError("table name is blank")
        self.table_name = table_name
        self._client = client
        self.test_load_enable = test_load_enable
        self.test_load_suffix = test_load_suffix

    @property
    def name(self):
        """Logical table name.

        :rtype: str
        :returns: The table name.
        """
        return self.table_name

    @property
    def client(self):
        return self._client

    def target_table_name(self, family):
        """Physical table holding ``family``.

        :type family: str
        :param family: The column family.

        :rtype: str
        :returns: ``{table_name}${family}``, or the shadow table name when
                  test load is enabled.
        """
        return _target_table_name(
            self.table_name, family, self.test_load_enable, self.test_load_suffix
        )

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return NotImplemented
        return other.table_name == self.table_name and other._client == self._client

    def __ne__(self, other):
        return not self == other

    def get(self, get):
        raise NotImplementedError

    def get_many(self, gets):
        raise NotImplementedError

    def exists(self, get):
        raise NotImplementedError

    def get_scanner(self, scan):
        raise NotImplementedError

    def get_scanner_for_family(self, family, qualifier=None):
        raise NotImplementedError

    def put(self, put):
        raise NotImplementedError

    def flush_commits(self):
        raise NotImplementedError

    def delete(self, delete):
        raise NotImplementedError

    def check_and_put(self, row, family, qualifier, value, put):
        raise NotImplementedError

    def check_and_delete(self, row, family, qualifier, value, delete):
        raise NotImplementedError

    def append(self, append):
        raise NotImplementedError

    def increment(self, increment):
        raise NotImplementedError

    def increment_column_value(self, row, family, qualifier, amount, write_to_wal=True):
        raise NotImplementedError

    def batch(self, actions):
        raise NotImplementedError

    def get_row_or_before(self, row, family):
        raise NotImplementedError

    def mutate_row(self, row_mutations):
        raise NotImplementedError

    def lock_row(self, row):
        raise NotImplementedError

    def unlock_row(self, row_lock):
        raise NotImplementedError

    def coprocessor_proxy(self, protocol, row):
        raise NotImplementedError

    def coprocessor_exec(self, protocol, start_key, end_key, callable_):
        raise NotImplementedError

    def get_table_descriptor(self):
        raise NotImplementedError

    def close(self):
        raise NotImplementedError
