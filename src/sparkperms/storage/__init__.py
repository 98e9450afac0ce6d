from .persist_worker import PersistWorker
from .perm_store import PermissionStore

__all__ = ["PermissionStore", "PersistWorker"]
