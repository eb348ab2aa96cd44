# powerwall_exporter/services/device_client.py

from __future__ import annotations

from typing import Any, Optional

import requests
import urllib3

from powerwall_exporter.config import DeviceConfig
from powerwall_exporter.exceptions import DecodeError, TransportError
from powerwall_exporter.models.energy import StateOfEnergyReading, StatusSnapshot


AGGREGATES_PATH = "/api/meters/aggregates"
SOE_PATH = "/api/system_status/soe"


class DeviceClient:
    """Reads the local status API of a Powerwall gateway.

    The gateway serves HTTPS with a self-signed certificate, so verification
    is off unless ``verify_tls`` or ``ca_bundle`` is configured.
    """

    def __init__(self, cfg: DeviceConfig, log, session: Optional[requests.Session] = None):
        self.cfg = cfg
        self.log = log
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.verify = cfg.verify
        if self.verify is False:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def __enter__(self) -> DeviceClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    # ------------------------------------------------------------------
    def _build_url(self, target: str, path: str) -> str:
        return f"https://{target}{path}"

    def _get_json(self, target: str, path: str) -> Any:
        url = self._build_url(target, path)
        try:
            resp = self.session.get(url, timeout=self.cfg.timeout, verify=self.verify)
        except requests.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc

        if resp.status_code != 200:
            raise TransportError(f"GET {url} returned HTTP {resp.status_code}")

        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError(f"GET {url} returned non-JSON payload") from exc

    # ------------------------------------------------------------------
    def fetch_aggregate_meters(self, target: str) -> StatusSnapshot:
        payload = self._get_json(target, AGGREGATES_PATH)
        status = StatusSnapshot.from_dict(payload)
        self.log.debug("%s meters: %s", target, status)
        return status

    def fetch_state_of_energy(self, target: str) -> StateOfEnergyReading:
        payload = self._get_json(target, SOE_PATH)
        soe = StateOfEnergyReading.from_dict(payload)
        self.log.debug("%s state of energy: %s", target, soe)
        return soe
