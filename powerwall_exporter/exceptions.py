# powerwall_exporter/exceptions.py


class ExporterError(Exception):
    """Base class for errors raised by the exporter."""


class DeviceError(ExporterError):
    """The Powerwall could not produce a usable reading."""


class TransportError(DeviceError):
    """The request to the device did not complete."""


class DecodeError(DeviceError):
    """The device answered with a body we cannot interpret."""


class RegistrationConflict(ExporterError):
    """A metric name was redefined with a different kind or label set."""


class MissingParameter(ExporterError):
    """A required query parameter was absent from the scrape request."""

    def __init__(self, name: str):
        super().__init__(f"missing required query parameter: {name}")
        self.name = name
