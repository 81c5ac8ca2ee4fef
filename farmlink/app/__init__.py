from .config import FarmLinkConfig
from .controller import FarmController
from .runner import AppRun, start_run

__all__ = ["AppRun", "FarmController", "FarmLinkConfig", "start_run"]
