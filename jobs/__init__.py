"""Async job lifecycle: orchestration, view-state reconciliation and the error log."""
