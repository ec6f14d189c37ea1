# --- Standard library imports ---
import os
import time
import socket
import subprocess
from typing import Sequence

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config
from .errors import CommandError
from .logger import get_logger


# Define the logger once for the entire module
logger = get_logger("utils")

IP_SERVICES = (
    "https://api.ipify.org",
    "https://ifconfig.me/ip",
    "https://ipv4.icanhazip.com",
    "https://ipecho.net/plain",
)

def is_valid_ip(ip: str) -> bool:
    """
    Validate an IPv4 address using socket.

    Args:
        ip: IPv4 address string to validate.

    Returns:
        True if the IPv4 address is valid, False otherwise.
    """
    if not isinstance(ip, str):
        return False

    try:
        socket.inet_pton(socket.AF_INET, ip)
        return True
    except (socket.error, ValueError):
        return False

def get_ip() -> str | None:
    """
    Resolve the server's current public IPv4 address.

    Tries multiple plaintext IP services in priority order.
    Returns the first valid IP or None if all sources fail.
    """
    for url in IP_SERVICES:
        try:
            resp = requests.get(url, timeout=Config.API_TIMEOUT)
            resp.raise_for_status()

            ip = resp.text.strip()
            if is_valid_ip(ip):
                logger.debug(f"🌐 External IP acquired ({url})")
                return ip

            logger.warning(f"Invalid IP returned from {url}: {ip!r}")

        except requests.RequestException as e:
            logger.warning(f"IP lookup failed via {url} ({e.__class__.__name__})")

    return None

# ============================================================
# OS command helpers
# ============================================================

def is_root() -> bool:
    return os.geteuid() == 0

def privileged(cmd: Sequence[str]) -> list[str]:
    """Prefix a command with sudo unless we already run as root."""
    cmd = list(cmd)
    if is_root():
        return cmd
    return ["sudo", *cmd]

def run_command(
    cmd: Sequence[str],
    capture_output: bool = False,
    input: str | None = None,
) -> subprocess.CompletedProcess:
    """
    Run an OS command and fail the provisioning run on non-zero exit.

    Args:
        cmd: Argument vector (no shell interpolation).
        capture_output: Capture stdout/stderr instead of streaming them.
        input: Text fed to the command's stdin.

    Raises:
        CommandError: The command exited non-zero or could not be started.
    """
    cmd = list(cmd)
    cmd_str = " ".join(cmd)
    logger.debug(f"Executing: {cmd_str}")

    try:
        return subprocess.run(
            cmd,
            check=True,
            capture_output=capture_output,
            text=True,
            input=input,
        )
    except subprocess.CalledProcessError as e:
        logger.error(f"Command failed: {cmd_str} with exit code {e.returncode}")
        logger.debug(f"Error: {getattr(e, 'stderr', 'N/A')}")
        raise CommandError(cmd, e.returncode) from e
    except FileNotFoundError as e:
        logger.error(f"Command not found: {cmd[0]}")
        raise CommandError(cmd, 127) from e

# ============================================================
# Performance Timing Utilities (optional instrumentation)
# ============================================================

class Timer:
    def __init__(self, logger):
        self.logger = logger
        self.run_start = None
        self.lap_start = None

    def start(self):
        """Call once at the beginning of a provisioning run."""
        now = time.perf_counter()
        self.run_start = now
        self.lap_start = now

    def lap(self, label: str):
        """Measure time since last lap."""
        if self.lap_start is None:
            return

        now = time.perf_counter()
        delta_ms = (now - self.lap_start) * 1000
        self.logger.timing(f"Timing | {label:<34} [{delta_ms:8.1f} ms]")
        self.lap_start = now

    def end(self):
        """End-to-end duration."""
        if self.run_start is None:
            return
        total_ms = (time.perf_counter() - self.run_start) * 1000
        self.logger.timing(f"Timing | {'Total provisioning run':<34} [{total_ms:8.1f} ms]")
        self.run_start = None
        self.lap_start = None
