# tests/test_server.py

from concurrent.futures import ThreadPoolExecutor
from wsgiref.util import setup_testing_defaults

import requests

from powerwall_exporter.config import AppConfig
from powerwall_exporter.logging import ConsoleLog, get_logger
from powerwall_exporter.server import ProbeApp
from powerwall_exporter.services.device_client import DeviceClient
from .device_payloads import FakeSession, aggregates, device_responses


ConsoleLog(level="INFO", quiet=True).setup()
LOG = get_logger("server-test")


def _app(session):
    cfg = AppConfig()
    return ProbeApp(cfg, LOG, client_factory=lambda: DeviceClient(cfg.device, LOG, session=session))


def _call(app, path="/", query="", accept=None):
    environ = {"PATH_INFO": path, "QUERY_STRING": query}
    if accept:
        environ["HTTP_ACCEPT"] = accept
    setup_testing_defaults(environ)
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b"".join(app(environ, start_response))
    return captured["status"], captured["headers"], body


def test_probe_returns_metrics():
    session = FakeSession(device_responses("pw.local"))

    status, headers, body = _call(_app(session), "/probe", "target=pw.local")

    assert status == "200 OK"
    assert headers["Content-Type"].startswith("text/plain")
    assert b'tesla_powerwall_instant_power{source="battery"} -1850.0' in body
    assert b"tesla_powerwall_battery_percentage 69.1675" in body
    assert [c["url"] for c in session.calls] == [
        "https://pw.local/api/meters/aggregates",
        "https://pw.local/api/system_status/soe",
    ]


def test_probe_honours_openmetrics_accept():
    session = FakeSession(device_responses("pw.local"))

    status, headers, body = _call(
        _app(session),
        "/probe",
        "target=pw.local",
        accept="application/openmetrics-text; version=1.0.0",
    )

    assert status == "200 OK"
    assert headers["Content-Type"].startswith("application/openmetrics-text")
    assert body.endswith(b"# EOF\n")


def test_missing_target_is_bad_request_without_device_calls():
    session = FakeSession(device_responses("pw.local"))
    app = _app(session)

    for query in ("", "target=", "other=1"):
        status, _, body = _call(app, "/probe", query)
        assert status == "400 Bad Request"
        assert body == b"You must provide a target parameter.\n"

    assert session.calls == []


def test_malformed_meters_json_is_server_error_without_metrics():
    session = FakeSession(device_responses("pw.local", meters="{not json"))

    status, _, body = _call(_app(session), "/probe", "target=pw.local")

    assert status == "500 Internal Server Error"
    assert b"tesla_powerwall" not in body
    # fails fast: the state of energy endpoint is never asked
    assert len(session.calls) == 1


def test_malformed_soe_json_is_server_error_without_metrics():
    session = FakeSession(device_responses("pw.local", soe="]"))

    status, _, body = _call(_app(session), "/probe", "target=pw.local")

    assert status == "500 Internal Server Error"
    assert b"tesla_powerwall" not in body


def test_unreachable_device_is_server_error_and_detail_is_not_leaked():
    session = FakeSession({
        "https://pw.local/api/meters/aggregates": (requests.ConnectionError("secret detail"), None),
    })

    status, _, body = _call(_app(session), "/probe", "target=pw.local")

    assert status == "500 Internal Server Error"
    assert b"secret detail" not in body


def test_root_is_always_ok():
    session = FakeSession({})

    status, _, body = _call(_app(session), "/")

    assert status == "200 OK"
    assert body == b""
    assert session.calls == []


def test_concurrent_scrapes_do_not_share_values():
    responses = {}
    for idx in range(8):
        host = f"pw{idx}.local"
        meters = aggregates(battery={"instant_power": float(idx * 100 + 1)})
        responses.update(device_responses(host, meters=meters, soe={"percentage": float(idx)}))

    cfg = AppConfig()
    # one session per scrape, as in production
    app = ProbeApp(cfg, LOG, client_factory=lambda: DeviceClient(cfg.device, LOG, session=FakeSession(responses)))

    def scrape(idx):
        return idx, _call(app, "/probe", f"target=pw{idx}.local")

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(scrape, range(8)))

    for idx, (status, _, body) in results:
        assert status == "200 OK"
        text = body.decode()
        assert f'tesla_powerwall_instant_power{{source="battery"}} {float(idx * 100 + 1)}' in text
        assert f"tesla_powerwall_battery_percentage {float(idx)}" in text
        assert text.count('tesla_powerwall_instant_power{source="battery"}') == 1
