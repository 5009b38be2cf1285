"""Loading, saving and importing configuration against the device."""

from src.sync.controller import PanelController
from src.sync.orchestrator import SaveOrchestrator, SaveResult

__all__ = ["PanelController", "SaveOrchestrator", "SaveResult"]
