"""Utility functions and helpers."""

from .helpers import (
    async_to_sync,
    now_ts,
    ordered_group,
)
from .menu import (
    multi_select_menu,
    pick_entry,
    select_menu,
)
from .output import (
    check_mark,
    confirm,
    console,
    create_table,
    format_timestamp,
    print_cancelled,
    print_error,
    print_info,
    print_success,
    print_warning,
    prompt,
    truncate,
)

__all__ = [
    "async_to_sync",
    "check_mark",
    "confirm",
    "console",
    "create_table",
    "format_timestamp",
    "multi_select_menu",
    "now_ts",
    "ordered_group",
    "pick_entry",
    "print_cancelled",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "prompt",
    "select_menu",
    "truncate",
]
