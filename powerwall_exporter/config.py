# powerwall_exporter/config.py
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
import configparser


class FieldMapping(str, Enum):
    """How per-source record fields map onto the exported gauges."""

    STRICT = "strict"
    # apparent power published from the reactive power reading, as the
    # first exporter releases did
    LEGACY = "legacy"


@dataclass
class ServerConfig:
    listen_address: str = "0.0.0.0"
    port: int = 8080


@dataclass
class DeviceConfig:
    timeout: float = 10.0
    verify_tls: bool = False
    ca_bundle: str | None = None
    field_mapping: FieldMapping = FieldMapping.STRICT

    @property
    def verify(self) -> bool | str:
        """Value handed to ``requests`` as ``verify=``."""
        if self.ca_bundle:
            return self.ca_bundle
        return self.verify_tls


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)


@dataclass
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    device: DeviceConfig = field(default_factory=DeviceConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


class Config:
    def __init__(self, path: str):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",))
        read = self.parser.read(self.path)
        if not read:
            raise FileNotFoundError(f"Config file not found: {self.path}")

    @classmethod
    def load(cls, path: str | None) -> AppConfig:
        if path is None:
            return AppConfig()

        cfg = cls(path)

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        # --- Server ---
        server_kwargs = {}
        if "server" in p:
            server_sec = p["server"]
            if "listen_address" in server_sec:
                server_kwargs["listen_address"] = server_sec["listen_address"].strip()
            if "port" in server_sec:
                server_kwargs["port"] = int(server_sec["port"])
        server_cfg = ServerConfig(**server_kwargs)

        # --- Device ---
        device_kwargs = {}
        if "device" in p:
            device_sec = p["device"]
            if "timeout" in device_sec:
                device_kwargs["timeout"] = float(device_sec["timeout"])
            if "verify_tls" in device_sec:
                device_kwargs["verify_tls"] = _as_bool(device_sec["verify_tls"])
            ca_bundle = (device_sec.get("ca_bundle") or "").strip()
            if ca_bundle:
                device_kwargs["ca_bundle"] = str(Path(ca_bundle).expanduser())
            if "field_mapping" in device_sec:
                raw = device_sec["field_mapping"].strip().lower()
                try:
                    device_kwargs["field_mapping"] = FieldMapping(raw)
                except ValueError:
                    raise ValueError(
                        f"[device] field_mapping must be 'strict' or 'legacy', got '{raw}'"
                    ) from None
        device_cfg = DeviceConfig(**device_kwargs)

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            server=server_cfg,
            device=device_cfg,
            logging=logging_cfg,
        )
