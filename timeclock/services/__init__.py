from .ledger_service import LedgerService
from .console_service import ConsoleService
from .maintenance_service import MaintenanceService

__all__ = [
    "LedgerService",
    "ConsoleService",
    "MaintenanceService"
]
