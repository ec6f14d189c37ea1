# --- Standard library imports ---
import os
import json
from enum import Enum
from dataclasses import dataclass
from typing import Callable, Iterable

# --- Project imports ---
from .config import Config
from .telemetry import tlog
from .logger import get_logger
from .errors import ZoneNotFound
from .reconciler import reconcile
from .utils import Timer, get_ip, privileged, run_command


logger = get_logger("provision")


class StepStatus(Enum):
    SUCCESS = "OK"
    SKIPPED = "SKIPPED"
    FAILED = "FAILED"


STATUS_EMOJI = {
    StepStatus.SUCCESS: "✅",
    StepStatus.SKIPPED: "⏭️ ",
    StepStatus.FAILED: "❌",
}


@dataclass(frozen=True)
class StepResult:
    name: str
    status: StepStatus
    detail: str = ""


def confirm(message: str, assume_yes: bool) -> None:
    """Block until the operator presses Enter, unless prompts are disabled."""
    if assume_yes:
        logger.debug(f"Auto-confirmed: {message}")
        return
    input(f"{message} ")


# ============================================================
# Steps
# ============================================================

def update_packages() -> StepResult:
    """Refresh apt metadata, upgrade, then install the base toolset."""
    # Set after sudo so env_reset cannot strip it
    apt = ["env", "DEBIAN_FRONTEND=noninteractive", "apt"]

    run_command(privileged([*apt, "update"]))
    run_command(privileged([*apt, "-y", "upgrade"]))
    run_command(privileged([*apt, "install", "-y", *Config.PACKAGES]))

    return StepResult("packages", StepStatus.SUCCESS, "Package installation complete")


def create_swap(
    swap_file: str | None = None,
    size: str | None = None,
    swappiness: int | None = None,
) -> StepResult:
    """
    Create and enable a swap file, then pin vm.swappiness.

    An existing swap file is left untouched; swappiness is always rewritten.
    """
    swap_file = swap_file or Config.SWAP_FILE
    size = size or Config.SWAP_SIZE
    swappiness = Config.SWAPPINESS if swappiness is None else swappiness

    if os.path.exists(swap_file):
        logger.info("Swap file already exists. Skipping creation.")
        detail = f"{swap_file} already present"
    else:
        run_command(privileged(["fallocate", "-l", size, swap_file]))
        run_command(privileged(["chmod", "600", swap_file]))
        run_command(privileged(["mkswap", swap_file]))
        run_command(privileged(["swapon", swap_file]))

        # Persist across reboots
        run_command(
            privileged(["tee", "-a", Config.FSTAB]),
            capture_output=True,
            input=f"{swap_file} swap swap defaults 0 0\n",
        )
        detail = f"{swap_file} ({size}) created"

    # Reduce swap usage on idle systems
    run_command(
        privileged(["tee", Config.SWAPPINESS_CONF]),
        capture_output=True,
        input=f"vm.swappiness = {swappiness}\n",
    )
    run_command(privileged(["sysctl", "-p", Config.SWAPPINESS_CONF]))

    memory = run_command(["free", "-h"], capture_output=True)
    logger.info(f"Current memory status:\n{memory.stdout}")

    return StepResult("swap", StepStatus.SUCCESS, detail)


def flush_firewall(assume_yes: bool = False) -> StepResult:
    """Flush all iptables rules and persist the empty ruleset."""
    logger.warning(
        "You might be asked to save the current firewall rules for "
        "netfilter-persistent. Without a custom configuration, accept the defaults."
    )
    confirm("Press Enter to continue when you are ready...", assume_yes)

    run_command(privileged(["iptables", "-F"]))
    run_command(privileged(["iptables", "-X"]))
    run_command(privileged(["netfilter-persistent", "save"]))
    run_command(privileged(["netfilter-persistent", "reload"]))

    return StepResult("firewall", StepStatus.SUCCESS, "Firewall rules have been flushed")


def update_dns(hostname: str, api_token: str) -> StepResult:
    """
    Point the hostname's Cloudflare A record at this server.

    A missing public IP skips the step without touching Cloudflare; a
    missing zone fails the step but lets provisioning continue.
    """
    current_ip = get_ip()
    if not current_ip:
        logger.error(
            "Failed to retrieve the current server IP address. Skipping DNS update."
        )
        return StepResult("dns", StepStatus.SKIPPED, "public IP unavailable")

    try:
        result = reconcile(hostname, api_token, current_ip)
    except ZoneNotFound as e:
        logger.error(str(e))
        return StepResult("dns", StepStatus.FAILED, str(e))

    # Raw provider response for the operator
    print(json.dumps(result.response, indent=2))

    return StepResult(
        "dns",
        StepStatus.SUCCESS,
        f"{hostname} → {current_ip} ({result.action.value})",
    )


def install_hiddify(assume_yes: bool = False, url: str | None = None) -> StepResult:
    """Hand the terminal over to the interactive Hiddify installer."""
    url = url or Config.HIDDIFY_INSTALLER_URL

    logger.warning(
        "The Hiddify installation script will now be executed. "
        "You will need to respond to its prompts directly."
    )
    confirm("Press Enter to begin the Hiddify installation...", assume_yes)

    run_command(["bash", "-c", f"bash <(curl {url})"])

    return StepResult("hiddify", StepStatus.SUCCESS, "Installer finished")


# ============================================================
# Orchestration
# ============================================================

STEP_NAMES = ("packages", "swap", "firewall", "dns", "hiddify")


class Provisioner:
    """
    Runs the provisioning steps in their fixed order.

    A step raising aborts the whole run; skipped and soft-failed steps are
    reported in the returned results.
    """

    def __init__(
        self,
        api_token: str,
        hostname: str,
        assume_yes: bool = False,
        skip: Iterable[str] = (),
    ):
        self.api_token = api_token
        self.hostname = hostname
        self.assume_yes = assume_yes
        self.skip = set(skip)

        unknown = self.skip - set(STEP_NAMES)
        if unknown:
            raise ValueError(f"Unknown step(s): {', '.join(sorted(unknown))}")

        self.timer = Timer(logger)

    def _steps(self) -> list[tuple[str, Callable[[], StepResult]]]:
        return [
            ("packages", update_packages),
            ("swap", create_swap),
            ("firewall", lambda: flush_firewall(self.assume_yes)),
            ("dns", lambda: update_dns(self.hostname, self.api_token)),
            ("hiddify", lambda: install_hiddify(self.assume_yes)),
        ]

    def run(self) -> list[StepResult]:
        steps = self._steps()
        total = len(steps)
        results = []

        self.timer.start()
        for index, (name, step) in enumerate(steps, start=1):
            progress = f"{index}/{total}"

            if name in self.skip:
                result = StepResult(name, StepStatus.SKIPPED, "skipped by operator")
            else:
                tlog(logger, "🔧", name.upper(), "START", progress)
                result = step()
                self.timer.lap(name)

            tlog(
                logger,
                STATUS_EMOJI[result.status],
                name.upper(),
                result.status.value,
                progress,
                result.detail or None,
            )
            results.append(result)

        self.timer.end()
        return results
