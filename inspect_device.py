#!/usr/bin/env python3
"""Quick helper to inspect what a Powerwall gateway reports."""

import sys

from powerwall_exporter.config import Config
from powerwall_exporter.exceptions import DeviceError
from powerwall_exporter.logging import ConsoleLog
from powerwall_exporter.services.device_client import DeviceClient
from powerwall_exporter.services.metric_translator import build_metric_set


def main() -> int:
    if len(sys.argv) < 2:
        print(f"usage: {sys.argv[0]} <gateway-host> [config]")
        return 1

    target = sys.argv[1]
    cfg = Config.load(sys.argv[2] if len(sys.argv) > 2 else None)
    log = ConsoleLog(level="DEBUG").setup()

    with DeviceClient(cfg.device, log) as client:
        try:
            status = client.fetch_aggregate_meters(target)
            soe = client.fetch_state_of_energy(target)
        except DeviceError as exc:
            print(f"Device error: {exc}")
            return 2

    print("Meters:")
    for source, record in status.records():
        print(
            f" - {source:<8} power={record.instant_power:.1f}W "
            f"V={record.instant_average_voltage:.1f} A={record.instant_total_current:.2f} "
            f"last_comm={record.last_communication_time}"
        )
    print(f"Battery: {soe.percentage:.1f}%")

    body, _ = build_metric_set(status, soe, field_mapping=cfg.device.field_mapping).render()
    print("\n=== EXPOSITION ===")
    print(body.decode())
    return 0


if __name__ == "__main__":
    sys.exit(main())
