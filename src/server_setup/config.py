# --- Standard library imports ---
import os

# --- Third-party imports ---
from dotenv import load_dotenv


# Load .env once
load_dotenv()

class Config:
    """Centralized config for provisioning and Cloudflare parameters"""

    # --- Cloudflare ---
    CLOUDFLARE_API_BASE_URL = os.getenv(
        "CLOUDFLARE_API_BASE_URL", "https://api.cloudflare.com/client/v4"
    )
    CLOUDFLARE_API_TOKEN = os.getenv("CLOUDFLARE_API_TOKEN")

    # --- Network Policy (NOT user configurable) ---
    API_TIMEOUT = 8   # seconds (safe, balanced)

    # --- Observability Policy ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_TIMING = os.getenv("LOG_TIMING", "false").lower() == "true"

    # --- Operator prompts ---
    ASSUME_YES = os.getenv("ASSUME_YES", "false").lower() == "true"

    # --- Swap ---
    SWAP_FILE = os.getenv("SWAP_FILE", "/swapfile")
    SWAP_SIZE = os.getenv("SWAP_SIZE", "2G")

    try:
        SWAPPINESS = int(os.getenv("SWAPPINESS", 20))
    except ValueError:
        SWAPPINESS = 20

    SWAPPINESS_CONF = "/etc/sysctl.d/99-swappiness.conf"
    FSTAB = "/etc/fstab"

    # --- Packages ---
    PACKAGES = (
        "nano",
        "vnstat",
        "curl",
        "jq",
        "netfilter-persistent",
        "iptables-persistent",
    )

    # --- Third-party installer ---
    HIDDIFY_INSTALLER_URL = os.getenv(
        "HIDDIFY_INSTALLER_URL", "https://i.hiddify.com/custom"
    )
