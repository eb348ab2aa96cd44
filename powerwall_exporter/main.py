# powerwall_exporter/main.py

from .cli import build_parser
from .config import Config
from .logging import ConsoleLog
from .server import serve


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    app_cfg = Config.load(args.config)
    if args.listen_address:
        app_cfg.server.listen_address = args.listen_address
    if args.port is not None:
        app_cfg.server.port = args.port

    log = ConsoleLog(
        level="DEBUG" if args.debug else app_cfg.logging.console_level,
        quiet=args.quiet or app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
    ).setup()

    try:
        serve(app_cfg, log)
    except KeyboardInterrupt:
        log.info("Interrupted; shutting down.")


if __name__ == "__main__":
    main()
