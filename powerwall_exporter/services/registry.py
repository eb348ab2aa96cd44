# powerwall_exporter/services/registry.py

from __future__ import annotations

from typing import Iterable

from prometheus_client import CollectorRegistry
from prometheus_client.exposition import choose_encoder

from powerwall_exporter.exceptions import RegistrationConflict


class MetricRegistry:
    """A scrape-scoped set of instruments.

    Each scrape builds its own instance, so nothing is shared between
    concurrent requests. Defining a name twice hands back the collector
    created the first time.
    """

    def __init__(self):
        self._registry = CollectorRegistry(auto_describe=True)
        self._instruments: dict[str, tuple[type, tuple[str, ...], object]] = {}

    @property
    def collector_registry(self) -> CollectorRegistry:
        return self._registry

    def names(self) -> list[str]:
        return list(self._instruments)

    def define_or_get(self, name: str, kind: type, documentation: str, labelnames: Iterable[str] = ()):
        labels = tuple(labelnames)
        existing = self._instruments.get(name)
        if existing is not None:
            existing_kind, existing_labels, collector = existing
            if existing_kind is not kind or existing_labels != labels:
                raise RegistrationConflict(
                    f"{name} already defined as {existing_kind.__name__}{list(existing_labels)}, "
                    f"not {kind.__name__}{list(labels)}"
                )
            return collector

        collector = kind(name, documentation, labelnames=labels, registry=self._registry)
        self._instruments[name] = (kind, labels, collector)
        return collector

    def render(self, accept_header: str | None = None) -> tuple[bytes, str]:
        """Serialize for the client, honouring an OpenMetrics ``Accept``."""
        encoder, content_type = choose_encoder(accept_header or "")
        return encoder(self._registry), content_type
