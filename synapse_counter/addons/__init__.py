"""
Add-ons package for the synapse counter.

Collaborators around the analysis core:
- persisted defaults (JSON settings file)
- export of per-channel masks as TIFF
- CSV / text rendering of the results table
"""

# ---- Settings ----
from .settings import (
    RunOptions,
    Settings,
    DEFAULT_SETTINGS_PATH,
    load_settings,
    save_settings,
    reset_settings,
)

# ---- Mask export ----
from .export import ChannelExporter, channel_tiff_path

# ---- Results table export ----
from .csv_ext import write_csv, format_table


__all__ = [
    # settings
    "RunOptions", "Settings", "DEFAULT_SETTINGS_PATH", "load_settings", "save_settings", "reset_settings",
    # export
    "ChannelExporter", "channel_tiff_path",
    # csv
    "write_csv", "format_table",
]
