"""Prometheus text exposition source: scrape over HTTP and decode samples."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import httpx
from prometheus_client.parser import text_string_to_metric_families

from ..errors import BadPayloadError, TransportError

logger = logging.getLogger(__name__)

_ACCEPTED_CONTENT_TYPES = ("text/plain", "application/openmetrics-text")
_name_re = re.compile(r"^[ \t]*([a-zA-Z_:][a-zA-Z0-9_:]*)", re.MULTILINE)


@dataclass(frozen=True)
class Sample:
    """One decoded sample: metric name, label set and value."""

    name: str
    value: float
    labels: Mapping[str, str] = field(default_factory=dict)

    def label(self, key: str, default: str = "") -> str:
        return self.labels.get(key, default)


class Series(list):
    """A list of :class:`Sample` with name lookups."""

    def find_by_name(self, name: str) -> Series:
        return Series(s for s in self if s.name == name)

    def find_by_names(self, *names: str) -> Series:
        wanted = set(names)
        return Series(s for s in self if s.name in wanted)

    def find_by_prefix(self, prefix: str) -> Series:
        return Series(s for s in self if s.name.startswith(prefix))

    def names(self) -> set[str]:
        return {s.name for s in self}


def parse_text(text: str) -> Series:
    """Decode a text exposition document.

    Sample names are kept as written: the parser appends ``_total`` to
    counters that lack it, which is undone here.

    Raises BadPayloadError if any line cannot be decoded.
    """
    written = set(_name_re.findall(text))
    series = Series()
    try:
        for family in text_string_to_metric_families(text):
            for s in family.samples:
                name = s.name
                if family.type == "counter" and name not in written and name.endswith("_total"):
                    name = name[:-len("_total")]
                series.append(Sample(name=name, value=float(s.value), labels=dict(s.labels)))
    except (ValueError, IndexError, KeyError, TypeError) as e:
        raise BadPayloadError(f"decode exposition text: {e}") from e
    return series


def series_from(samples: Iterable[tuple[str, Mapping[str, str], float]]) -> Series:
    return Series(Sample(name=n, labels=dict(lbs), value=float(v)) for n, lbs, v in samples)


class PrometheusClient:
    """Scrapes one metrics endpoint with a bounded timeout."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = 5.0,
        headers: Mapping[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.url = url
        self._client = httpx.Client(timeout=timeout, headers=dict(headers or {}), transport=transport)

    def scrape(self) -> Series:
        try:
            response = self._client.get(self.url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(f"'{self.url}' returned HTTP status code {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"error on request to '{self.url}': {e}") from e

        content_type = response.headers.get("content-type", "")
        media_type = content_type.split(";", 1)[0].strip().lower()
        if media_type and media_type not in _ACCEPTED_CONTENT_TYPES:
            raise BadPayloadError(f"'{self.url}' returned unexpected content type '{media_type}'")

        series = parse_text(response.text)
        logger.debug("Scraped %d samples of %d metrics from %s", len(series), len(series.names()), self.url)
        return series

    def close(self) -> None:
        self._client.close()
