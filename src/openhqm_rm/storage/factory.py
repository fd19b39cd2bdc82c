"""Factory for creating rule storage instances."""

from openhqm_rm.config import settings
from openhqm_rm.storage.file_storage import FileRuleStorage
from openhqm_rm.storage.interface import RuleStorageInterface
from openhqm_rm.storage.memory import MemoryRuleStorage


def create_storage() -> RuleStorageInterface:
    """
    Create a rule storage instance based on configuration.

    Returns:
        Storage instance
    """
    storage_type = settings.storage.type.lower()

    if storage_type == "file":
        return FileRuleStorage(settings.storage.file_path)
    elif storage_type == "memory":
        return MemoryRuleStorage()
    else:
        raise ValueError(f"Unsupported storage type: {storage_type}")
