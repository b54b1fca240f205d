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
from hkvtable.client import ClientRegistry
from hkvtable.client import TableClient
from hkvtable.client import default_registry
from hkvtable.exceptions import FeatureNotSupportedError
from hkvtable.exceptions import OperationTimeoutError
from hkvtable.exceptions import TableIOError
from hkvtable.exceptions import TableOperationError
from hkvtable.iterators import ResultScanner
from hkvtable.mutations import Append
from hkvtable.mutations import Delete
from hkvtable.mutations import Increment
from hkvtable.mutations import KeyValue
from hkvtable.mutations import KeyValueType
from hkvtable.mutations import LATEST_TIMESTAMP
from hkvtable.mutations import Put
from hkvtable.options import TableOptions
from hkvtable.read_rows_query import Get
from hkvtable.read_rows_query import Scan
from hkvtable.read_rows_query import TimeRange
from hkvtable.row import Cell
from hkvtable.row import Row
from hkvtable.table import Table
from hkvtable.write_buffer import WriteBuffer

__version__ = "0.1.0"

__all__ = (
    "Table",
    "TableOptions",
    "TableClient",
    "ClientRegistry",
    "default_registry",
    "Get",
    "Scan",
    "TimeRange",
    "Put",
    "Delete",
    "Append",
    "Increment",
    "KeyValue",
    "KeyValueType",
    "LATEST_TIMESTAMP",
    "Row",
    "Cell",
    "ResultScanner",
    "WriteBuffer",
    "FeatureNotSupportedError",
    "TableIOError",
    "TableOperationError",
    "OperationTimeoutError",
)
