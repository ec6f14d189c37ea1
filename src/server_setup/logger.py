# --- Standard library imports ---
import sys
import logging

# --- Project imports ---
from .config import Config


# --- Custom log levels ---
TIMING = 25   # Between INFO (20) and WARNING (30)
logging.addLevelName(TIMING, "TIME")

def timing(self, message, *args, **kwargs):
    """Add `timing` method to Logger for TIMING-level logs."""
    if self.isEnabledFor(TIMING):
        self._log(TIMING, message, args, stacklevel=2, **kwargs)

logging.Logger.timing = timing

# --- Filters ---
class TimingFilter(logging.Filter):
    """Drop TIMING logs unless step timing is switched on."""
    def __init__(self, enabled: bool):
        super().__init__()
        self.enabled = enabled

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno == TIMING:
            return self.enabled
        return True

# --- Format configuration constants ---
LOG_LEVEL_EMOJIS = {
    logging.DEBUG: "🧱",
    logging.INFO: "🟢",
    TIMING: "⚡️",
    logging.WARNING: "⚠️ ",
    logging.ERROR: "❌",
    logging.CRITICAL: "🔥",
}

# --- Formatters ---
class EmojiFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        """Prefix each line with a per-level emoji."""
        record.levelemoji = LOG_LEVEL_EMOJIS.get(record.levelno, "")
        return super().format(record)

# --- Public logging setup API ---
def setup_logging(level=logging.INFO, timing_enabled: bool | None = None) -> None:
    """
    Configure root logging for a provisioning run.

    Args:
        level: Root log level.
        timing_enabled: Show TIMING lines; defaults to Config.LOG_TIMING.
    """
    if timing_enabled is None:
        timing_enabled = Config.LOG_TIMING

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = EmojiFormatter(
        fmt="%(asctime)s %(levelemoji)s %(name)s:%(funcName)s → %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)
    handler.addFilter(TimingFilter(enabled=timing_enabled))
    root.addHandler(handler)

def get_logger(name: str) -> logging.Logger:
    """
    Return a logger namespaced under server_setup.
    """
    return logging.getLogger(f"server_setup.{name}")
