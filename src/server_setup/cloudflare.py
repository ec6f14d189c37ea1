# --- Standard library imports ---
import json

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config
from .errors import ProviderError
from .logger import get_logger


class CloudflareClient:
    """
    Handles all communication specific to the Cloudflare DNS API.

    Each method maps to exactly one HTTP request. Any transport failure,
    non-2xx status or `success: false` body is raised as ProviderError.
    """

    def __init__(
        self,
        api_token: str,
        api_base_url: str | None = None,
        session: requests.Session | None = None,
    ):
        self.logger = get_logger("cloudflare")

        # Configuration
        self.api_base_url = (api_base_url or Config.CLOUDFLARE_API_BASE_URL).rstrip("/")
        self.api_token = api_token
        self.session = session or requests.Session()

        self.headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }
        self.record_type = "A"   # Fixed type

        # Time To Live (TTL) of the DNS record in seconds. Setting to 1 means 'automatic'.
        self.ttl = 1
        self.proxied = False     # Grey cloud icon (not proxied thru Cloudflare)

    # Private helper for URL construction
    def _build_resource_url(
        self,
        zone_id: str,
        record_id: str | None = None,
    ) -> str:
        """
        Constructs the Cloudflare DNS record URL for a zone.

        Args:
            zone_id: Zone that owns the records.
            record_id: Target record for single resource operations (PUT);
                       omit for the collection endpoint (GET/POST).

        Returns:
            The complete API endpoint URL.
        """
        if not zone_id:
            raise ValueError("zone_id must be provided for DNS record operations")

        base_path = f"{self.api_base_url}/zones/{zone_id}/dns_records"

        if record_id is None:
            return base_path
        return base_path + f"/{record_id}"

    def _payload(self, hostname: str, ip: str) -> dict:
        return {
            "type": self.record_type,
            "name": hostname,
            "content": ip,
            "proxied": self.proxied,
            "ttl": self.ttl,
        }

    def _request(
        self,
        method: str,
        url: str,
        payload: dict | None = None,
        params: dict | None = None,
    ) -> dict:
        """
        Issue one API request and return the decoded JSON body.

        Raises:
            ProviderError: Transport failure, HTTP error, invalid JSON or
                           an unsuccessful Cloudflare envelope.
        """
        self.logger.debug(f"{method} → {url}")

        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                headers=self.headers,
                json=payload,
                timeout=Config.API_TIMEOUT,
            )
        except requests.RequestException as e:
            raise ProviderError(
                f"Cloudflare {method} request failed for {url}: {e}"
            ) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ProviderError(
                f"Cloudflare {method} returned invalid JSON (HTTP {resp.status_code})",
                status_code=resp.status_code,
            ) from e

        if not resp.ok or not isinstance(data, dict) or not data.get("success", False):
            errors = data.get("errors", []) if isinstance(data, dict) else []
            raise ProviderError(
                f"Cloudflare {method} failed (HTTP {resp.status_code}): {errors}",
                status_code=resp.status_code,
                errors=errors,
            )

        self.logger.debug(f"{method} JSON response:\n{json.dumps(data, indent=2)}")
        return data

    @staticmethod
    def _first_id(data: dict) -> str | None:
        results = data.get("result") or []
        if not results:
            return None
        return results[0].get("id") or None

    def find_zone_id(self, zone_name: str) -> str | None:
        """
        Look up the zone ID for a root domain.

        Returns:
            The first matching zone's ID, or None if Cloudflare has none.
        """
        url = f"{self.api_base_url}/zones"
        return self._first_id(
            self._request("GET", url, params={"name": zone_name})
        )

    def find_record_id(self, zone_id: str, hostname: str) -> str | None:
        """
        Look up the A record for hostname within a zone.

        Returns:
            The first matching record's ID, or None if absent.
        """
        url = self._build_resource_url(zone_id)
        params = {"type": self.record_type, "name": hostname}
        return self._first_id(self._request("GET", url, params=params))

    def create_record(self, zone_id: str, hostname: str, ip: str) -> dict:
        """Create a new A record and return the raw response body."""
        url = self._build_resource_url(zone_id)
        return self._request("POST", url, self._payload(hostname, ip))

    def update_record(self, zone_id: str, record_id: str, hostname: str, ip: str) -> dict:
        """Overwrite an existing A record and return the raw response body."""
        url = self._build_resource_url(zone_id, record_id)
        return self._request("PUT", url, self._payload(hostname, ip))
