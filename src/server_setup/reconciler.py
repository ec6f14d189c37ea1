# --- Standard library imports ---
from enum import Enum
from dataclasses import dataclass

# --- Project imports ---
from .logger import get_logger
from .utils import is_valid_ip
from .cloudflare import CloudflareClient
from .errors import InvalidHostname, AddressUnavailable, ZoneNotFound


logger = get_logger("reconciler")


class ReconcileAction(Enum):
    CREATED = "created"
    UPDATED = "updated"


@dataclass(frozen=True)
class ReconcileResult:
    """
    Outcome of one DNS reconciliation.

    `response` is the raw Cloudflare body of the final create/update call,
    kept for operator visibility only.
    """
    hostname: str
    zone_id: str
    record_id: str | None
    action: ReconcileAction
    response: dict


def root_domain(hostname: str) -> str:
    """
    Derive the zone name by dropping the leftmost label.

    `sub.example.com` → `example.com`. Multi-label public suffixes
    (`foo.co.uk` → `co.uk`) are not special-cased.

    Raises:
        InvalidHostname: fewer than two labels, or an empty label.
    """
    if not isinstance(hostname, str):
        raise InvalidHostname(hostname)

    name = hostname[:-1] if hostname.endswith(".") else hostname
    labels = name.split(".")
    if len(labels) < 2 or not all(labels):
        raise InvalidHostname(hostname)

    return ".".join(labels[1:])


def reconcile(
    hostname: str,
    api_token: str,
    current_address: str,
    client: CloudflareClient | None = None,
) -> ReconcileResult:
    """
    Ensure an A record for hostname points at current_address.

    Looks up the zone, then the record, then issues exactly one of
    create (record absent) or update (record present).

    Args:
        hostname: FQDN with at least one subdomain label.
        api_token: Cloudflare API bearer token.
        current_address: The server's public IPv4 address.
        client: Pre-built client; one is created from api_token otherwise.

    Raises:
        InvalidHostname: hostname has no parent domain.
        AddressUnavailable: current_address is empty or not IPv4.
        ZoneNotFound: Cloudflare has no zone for the root domain.
        ProviderError: any failed Cloudflare call.
    """
    zone_name = root_domain(hostname)
    if not current_address or not is_valid_ip(current_address):
        raise AddressUnavailable(current_address)

    if hostname.endswith("."):
        hostname = hostname[:-1]

    client = client or CloudflareClient(api_token)

    zone_id = client.find_zone_id(zone_name)
    if not zone_id:
        raise ZoneNotFound(zone_name)
    logger.debug(f"Zone '{zone_name}' → {zone_id}")

    record_id = client.find_record_id(zone_id, hostname)

    if record_id is None:
        logger.info(f"No existing A record found. Creating a new A record for '{hostname}'...")
        response = client.create_record(zone_id, hostname, current_address)
        action = ReconcileAction.CREATED
        result = response.get("result")
        record_id = result.get("id") if isinstance(result, dict) else None
    else:
        logger.info(f"Updating existing A record to IP: {current_address}...")
        response = client.update_record(zone_id, record_id, hostname, current_address)
        action = ReconcileAction.UPDATED

    logger.info(f"✅ {hostname} → {current_address} ({action.value})")

    return ReconcileResult(
        hostname=hostname,
        zone_id=zone_id,
        record_id=record_id,
        action=action,
        response=response,
    )
