# powerwall_exporter/server.py

from __future__ import annotations

from typing import Callable, Optional
from urllib.parse import parse_qs
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client.exposition import ThreadingWSGIServer

from powerwall_exporter.config import AppConfig
from powerwall_exporter.exceptions import DeviceError, MissingParameter
from powerwall_exporter.logging import get_logger
from powerwall_exporter.services.device_client import DeviceClient
from powerwall_exporter.services.metric_translator import build_metric_set


TEXT_PLAIN = "text/plain; charset=utf-8"


class ProbeApp:
    """WSGI application serving ``/probe?target=<host>``.

    Each scrape owns its device client and metric registry; nothing is
    shared between requests.
    """

    def __init__(self, cfg: AppConfig, log, client_factory: Optional[Callable[[], DeviceClient]] = None):
        self.cfg = cfg
        self.log = log
        self.client_factory = client_factory or (lambda: DeviceClient(cfg.device, log))

    def __call__(self, environ, start_response):
        path = environ.get("PATH_INFO") or "/"
        if path == "/probe":
            status, headers, body = self.probe(environ)
        else:
            status, headers, body = "200 OK", [("Content-Type", TEXT_PLAIN)], b""
        start_response(status, headers + [("Content-Length", str(len(body)))])
        return [body]

    # ------------------------------------------------------------------
    def _target(self, environ) -> str:
        query = parse_qs(environ.get("QUERY_STRING", ""))
        target = (query.get("target") or [""])[0].strip()
        if not target:
            raise MissingParameter("target")
        return target

    def scrape(self, target: str, accept_header: str | None = None) -> tuple[bytes, str]:
        with self.client_factory() as client:
            status = client.fetch_aggregate_meters(target)
            soe = client.fetch_state_of_energy(target)
        registry = build_metric_set(status, soe, field_mapping=self.cfg.device.field_mapping)
        return registry.render(accept_header)

    def probe(self, environ) -> tuple[str, list[tuple[str, str]], bytes]:
        try:
            target = self._target(environ)
        except MissingParameter:
            return (
                "400 Bad Request",
                [("Content-Type", TEXT_PLAIN)],
                b"You must provide a target parameter.\n",
            )

        try:
            body, content_type = self.scrape(target, environ.get("HTTP_ACCEPT"))
        except DeviceError as exc:
            self.log.error("Scrape of %s failed: %s", target, exc)
            return self._server_error()
        except Exception:
            self.log.exception("Unexpected error scraping %s", target)
            return self._server_error()

        self.log.debug("Scrape of %s returned %d bytes", target, len(body))
        return "200 OK", [("Content-Type", content_type)], body

    def _server_error(self) -> tuple[str, list[tuple[str, str]], bytes]:
        return (
            "500 Internal Server Error",
            [("Content-Type", TEXT_PLAIN)],
            b"Error collecting metrics from target.\n",
        )


class _LoggingRequestHandler(WSGIRequestHandler):
    """Send access lines to the ``powerwall.http`` logger, not stderr."""

    def log_message(self, format, *args):
        get_logger("powerwall.http").debug("%s - %s", self.address_string(), format % args)


def make_probe_server(app: ProbeApp, host: str, port: int):
    return make_server(host, port, app, ThreadingWSGIServer, handler_class=_LoggingRequestHandler)


def serve(cfg: AppConfig, log) -> None:
    httpd = make_probe_server(ProbeApp(cfg, log), cfg.server.listen_address, cfg.server.port)
    log.info("Listening on %s:%s", cfg.server.listen_address, cfg.server.port)
    try:
        httpd.serve_forever()
    finally:
        httpd.server_close()
