"""Function call tracking used across the engine."""

from .runtime import call_counts, flush_counts, reset_counts, restore_counts, t

__all__ = ["t", "call_counts", "flush_counts", "reset_counts", "restore_counts"]
