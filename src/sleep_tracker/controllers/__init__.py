"""Screen state holders."""

from .quality_recorder import NO_SESSION, QualityRecorder
from .session_controller import SessionController

__all__ = ["NO_SESSION", "QualityRecorder", "SessionController"]
