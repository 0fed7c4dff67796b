"""Background jobs."""

from swingbuddy.jobs.sweeper import ExpiredStateSweeper

__all__ = ["ExpiredStateSweeper"]
