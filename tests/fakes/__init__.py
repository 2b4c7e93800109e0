"""Shared test doubles — re-export memory backends."""

from __future__ import annotations

from hrdocs.persistence.memory_backend import (
    MemoryFileStore,
    MemoryPayslipStore,
    MemoryUserStore,
)

__all__ = ["MemoryFileStore", "MemoryPayslipStore", "MemoryUserStore"]
