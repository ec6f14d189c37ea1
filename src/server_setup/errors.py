"""
Error kinds raised by a provisioning run.

Every error is terminal for the attempt that raised it; nothing here is
retried internally. The CLI decides how to present them.
"""


class ServerSetupError(Exception):
    """Base class for all provisioning failures."""


class InvalidHostname(ServerSetupError):
    """Hostname has no parent domain to derive a zone from."""

    def __init__(self, hostname: str):
        self.hostname = hostname
        super().__init__(
            f"Invalid hostname {hostname!r}: expected at least two labels "
            f"(e.g. sub.example.com)"
        )


class AddressUnavailable(ServerSetupError):
    """Current public address is missing or not an IPv4 literal."""

    def __init__(self, address=None):
        self.address = address
        super().__init__(f"Current public IPv4 address unavailable: {address!r}")


class ZoneNotFound(ServerSetupError):
    """Cloudflare has no zone matching the derived root domain."""

    def __init__(self, zone_name: str):
        self.zone_name = zone_name
        super().__init__(
            f"Could not find Zone ID on Cloudflare for '{zone_name}'. "
            f"Please check your domain name and API token."
        )


class ProviderError(ServerSetupError):
    """Non-success response (or transport failure) from the Cloudflare API."""

    def __init__(self, message: str, status_code: int | None = None, errors=None):
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(message)


class CommandError(ServerSetupError):
    """An OS command exited with a non-zero status."""

    def __init__(self, cmd, returncode: int):
        self.cmd = cmd
        self.returncode = returncode
        super().__init__(f"Command failed ({returncode}): {' '.join(cmd)}")
