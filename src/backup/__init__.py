"""
Gist backup and restore of the local service document.
"""

from .orchestrator import BackupAction, BackupOrchestrator

__all__ = ["BackupAction", "BackupOrchestrator"]
