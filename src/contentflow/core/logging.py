"""Logging Configuration with pretty formatting for contentflow."""

import json
import logging
from typing import Optional, Dict, Any
from enum import Enum, IntEnum
from datetime import datetime
from pydantic import BaseModel, Field

# ANSI Color Codes
class Colors:
    """ANSI color codes for pretty terminal output."""
    HEADER = '\033[95m'      # Pink
    INFO = '\033[94m'        # Blue
    SUCCESS = '\033[92m'     # Green
    WARNING = '\033[93m'     # Yellow
    ERROR = '\033[91m'       # Red
    RESET = '\033[0m'        # Reset
    BOLD = '\033[1m'         # Bold
    DIM = '\033[2m'          # Dim

# Pretty format strings
PRETTY_FORMAT = (
    "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"
)

DETAILED_FORMAT = (
    f"{Colors.DIM}%(asctime)s{Colors.RESET} │ "
    f"%(colored_level)-40s │ "
    f"{Colors.DIM}%(name)s{Colors.RESET} │ "
    f"%(message)s"
)

class PrettyFormatter(logging.Formatter):
    """Custom formatter with colors and symbols."""

    level_colors = {
        'DEBUG': (Colors.DIM, '·'),
        'VERBOSE': (Colors.DIM, '…'),
        'INFO': (Colors.INFO, 'ℹ️'),
        'NODE': (Colors.SUCCESS, '▶'),   # node transitions
        'TOOL': (Colors.HEADER, '🔧'),   # collaborator calls
        'WARNING': (Colors.WARNING, '⚠️'),
        'ERROR': (Colors.ERROR, '❌'),
        'CRITICAL': (Colors.ERROR + Colors.BOLD, '🚨'),
    }

    def format(self, record):
        color, symbol = self.level_colors.get(record.levelname, (Colors.RESET, '•'))
        record.colored_level = f"{color}{symbol} {record.levelname}{Colors.RESET}"

        message = super().format(record)

        if record.levelno >= logging.WARNING:
            message = f"{message}\n{Colors.DIM}{'─' * 80}{Colors.RESET}"

        return message

class PrettyLogHandler(logging.StreamHandler):
    """Stream handler that stamps a short wall-clock time before formatting."""

    def format(self, record):
        record.asctime = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        return super().format(record)

class LogComponent(str, Enum):
    """Components that can be logged."""
    GRAPH = "contentflow.core.graph"
    STORE = "contentflow.core.graph.store"
    RUNNER = "contentflow.core.graph.runner"
    EXECUTOR = "contentflow.core.graph.executor"
    NODES = "contentflow.core.graph.nodes"
    TOOLS = "contentflow.core.tools"

class LogLevel(IntEnum):
    """Log levels mapped to logging module levels."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL
    NODE = 25  # Custom level for node transitions
    TOOL = 26  # Custom level for collaborator calls

class VerbosityLevel(IntEnum):
    """Custom verbosity levels for more granular control."""
    DEBUG = logging.DEBUG
    VERBOSE = 15  # Custom lower-than-INFO level
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

# Register custom log levels
logging.addLevelName(LogLevel.NODE, "NODE")
logging.addLevelName(LogLevel.TOOL, "TOOL")
logging.addLevelName(VerbosityLevel.VERBOSE, "VERBOSE")

class ContentflowLoggingConfig(BaseModel):
    """Configuration for engine logging behavior."""
    show_payloads: bool = Field(default=False)
    show_node_transitions: bool = Field(default=True)
    show_tool_calls: bool = Field(default=True)

def configure_logging(
    default_level: LogLevel = LogLevel.INFO,
    component_levels: Optional[Dict[LogComponent, LogLevel]] = None,
    pretty: bool = True,
    log_file: Optional[str] = None
) -> None:
    """Configure logging with pretty formatting.

    Args:
        default_level: Level for the root logger
        component_levels: Per-component overrides
        pretty: Use colored console output
        log_file: Optional path for an uncolored file log
    """
    handlers = []

    console_handler = PrettyLogHandler() if pretty else logging.StreamHandler()
    console_handler.setFormatter(
        PrettyFormatter(DETAILED_FORMAT) if pretty else logging.Formatter(PRETTY_FORMAT)
    )
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(PRETTY_FORMAT))
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(default_level.value)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in handlers:
        root_logger.addHandler(handler)

    if not component_levels:
        component_levels = {
            LogComponent.GRAPH: LogLevel.INFO,
            LogComponent.RUNNER: LogLevel.NODE,
            LogComponent.EXECUTOR: LogLevel.NODE,
            LogComponent.TOOLS: LogLevel.TOOL,
        }

    for component, level in component_levels.items():
        logging.getLogger(component.value).setLevel(level.value)

def get_logger(component: LogComponent) -> logging.Logger:
    """Get a logger for a specific component.

    The returned logger carries two helpers: ``logger.node(msg)`` for node
    transitions and ``logger.tool(msg)`` for collaborator calls.
    """
    logger = logging.getLogger(component.value)

    def log_node(self, msg: str) -> None:
        self.log(LogLevel.NODE, msg)

    def log_tool(self, msg: str) -> None:
        self.log(LogLevel.TOOL, msg)

    logger.node = lambda msg: log_node(logger, msg)
    logger.tool = lambda msg: log_tool(logger, msg)

    return logger

def log_verbose(logger: logging.Logger, message: str) -> None:
    """Log a message at VERBOSE level."""
    if logger.isEnabledFor(VerbosityLevel.VERBOSE):
        logger.log(VerbosityLevel.VERBOSE, message)

def log_payload(logger: logging.Logger, payload: Dict[str, Any], prefix: str = "") -> None:
    """Log a payload at DEBUG level, truncating long values."""
    if not logger.isEnabledFor(logging.DEBUG):
        return
    for key, value in payload.items():
        if isinstance(value, dict):
            logger.debug(f"{prefix}{key}:")
            log_payload(logger, value, prefix + "  ")
            continue
        try:
            rendered = json.dumps(value, default=str)
        except (TypeError, ValueError):
            rendered = repr(value)
        if len(rendered) > 200:
            rendered = rendered[:200] + "…"
        logger.debug(f"{prefix}{key}: {rendered}")
