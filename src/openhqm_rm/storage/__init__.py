"""Rule persistence layer."""

from openhqm_rm.storage.factory import create_storage
from openhqm_rm.storage.file_storage import FileRuleStorage
from openhqm_rm.storage.interface import RuleStorageInterface
from openhqm_rm.storage.memory import MemoryRuleStorage

__all__ = ["RuleStorageInterface", "FileRuleStorage", "MemoryRuleStorage", "create_storage"]
