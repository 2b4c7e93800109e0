"""Re-export persistence protocols from core for convenience."""

from __future__ import annotations

from hrdocs.core.protocols import (
    IFileStore,
    IPayslipStore,
    IUserStore,
    IUserTransaction,
)

__all__ = ["IFileStore", "IPayslipStore", "IUserStore", "IUserTransaction"]
