from .contexts import ContextsMixin
from .errors import ContextConflictError, StoreError, StoreUnavailableError
from .memory import MemoryLedgerMixin
from .models import ContextRecord, MemoryStats
from .preferences import PreferencesMixin, pick_model
from .schema import StoreSchemaMixin
from .store import BotStore

__all__ = [
    "BotStore",
    "ContextConflictError",
    "ContextRecord",
    "ContextsMixin",
    "MemoryLedgerMixin",
    "MemoryStats",
    "PreferencesMixin",
    "StoreError",
    "StoreSchemaMixin",
    "StoreUnavailableError",
    "pick_model",
]
