# powerwall_exporter/cli.py
import argparse

def build_parser():
    parser = argparse.ArgumentParser(
        prog="powerwall-exporter",
        description="Prometheus exporter for the Tesla Powerwall local API"
    )

    parser.add_argument(
        "--config",
        default=None,
        help="Path to configuration file (defaults apply when omitted)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress stdout output"
    )

    parser.add_argument(
        "--listen-address",
        help="Address to bind (overrides [server] listen_address)"
    )

    parser.add_argument(
        "--port",
        type=int,
        help="Port to bind (overrides [server] port)"
    )

    return parser
