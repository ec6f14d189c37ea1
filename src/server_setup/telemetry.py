# --- Standard library imports ---
import logging


def tlog(
    logger: logging.Logger,
    emoji: str,
    step: str,
    state: str,
    primary: str = "—--",
    meta: str | None = None,
) -> None:
    """
    Emit a standardized provisioning log "tlog" line.

    Format:
        STEP STATE PRIMARY | meta data
    """
    msg = f"{step:<16} {state:<10} {primary:<16}"
    if meta:
        msg += f" | {meta}"

    logger.info(f"{emoji} {msg}", stacklevel=2)
