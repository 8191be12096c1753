# kirana_khata/modules/dashboard/__init__.py
"""
Dashboard module: today's takings, credit movement, recent activity and
low stock, bound to the LedgerStore.
"""

from .controller import DashboardController

__all__ = ["DashboardController"]
