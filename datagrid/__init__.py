"""datagrid - a generic data-grid engine.

Search, filter, sort and paginate tabular data; persist per-table column
customizations; export to csv, excel, word, pdf, html and print.
"""

from . import cells, export
from .callbacks import CallbackFunc, EventRegistry, TableEvent
from .cells import Badge, CellVisitor, Group, Image, Opaque, Text, badge, group, image, opaque, text
from .columns import ColumnConfigStore, merge_settings
from .config import (
    DataGridSettings,
    ExportSettings,
    LogSettings,
    StorageSettings,
    TableSettings,
    get_settings,
)
from .contrast import contrast_color, hover_color
from .engine import (
    ComputeResult,
    DataState,
    PageWindow,
    apply_filters,
    apply_search,
    apply_sort,
    compare_values,
    compute,
    paginate,
)
from .exceptions import (
    CellRenderError,
    ConfigurationError,
    DataGridException,
    ExportCancelledError,
    ExportError,
    StoreError,
    UnsupportedFormatError,
)
from .export import ExportController, ExportOptions, ExportPayload, ExportResult, prepare_export
from .models import (
    ColumnDef,
    ColumnSetting,
    FilterDescriptor,
    FilterOptionItem,
    SortState,
    TableStyle,
)
from .selection import SelectionTracker
from .state import FileKeyValueStore, KeyValueStore, MemoryKeyValueStore, get_key_value_store
from .table import DataTable


__version__ = "1.0.0"

__all__ = [
    "Badge",
    "CallbackFunc",
    "CellRenderError",
    "CellVisitor",
    "ColumnConfigStore",
    "ColumnDef",
    "ColumnSetting",
    "ComputeResult",
    "ConfigurationError",
    "DataGridException",
    "DataGridSettings",
    "DataState",
    "DataTable",
    "EventRegistry",
    "ExportCancelledError",
    "ExportController",
    "ExportError",
    "ExportOptions",
    "ExportPayload",
    "ExportResult",
    "ExportSettings",
    "FileKeyValueStore",
    "FilterDescriptor",
    "FilterOptionItem",
    "Group",
    "Image",
    "KeyValueStore",
    "LogSettings",
    "MemoryKeyValueStore",
    "Opaque",
    "PageWindow",
    "SelectionTracker",
    "SortState",
    "StorageSettings",
    "StoreError",
    "TableEvent",
    "TableSettings",
    "TableStyle",
    "Text",
    "UnsupportedFormatError",
    "__version__",
    "apply_filters",
    "apply_search",
    "apply_sort",
    "badge",
    "cells",
    "compare_values",
    "compute",
    "contrast_color",
    "export",
    "get_key_value_store",
    "get_settings",
    "group",
    "hover_color",
    "image",
    "merge_settings",
    "opaque",
    "paginate",
    "prepare_export",
    "text",
]
