"""Core modules for contentflow."""

from contentflow.core.config import EngineConfig
from contentflow.core.logging import configure_logging, LogLevel, LogComponent

__all__ = [
    'EngineConfig',
    'configure_logging',
    'LogLevel',
    'LogComponent'
]
