"""File export helpers."""

from .tabular import (
    read_trial_details_csv,
    write_log_entries_csv,
    write_trial_details_csv,
    write_ttl_entries_csv,
)

__all__ = [
    "read_trial_details_csv",
    "write_log_entries_csv",
    "write_trial_details_csv",
    "write_ttl_entries_csv",
]
