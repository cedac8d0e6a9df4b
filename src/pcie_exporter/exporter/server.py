"""HTTP server exposing /metrics, /pcie-tree and /healthz."""

from __future__ import annotations

import logging
from functools import partial
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, ClassVar
from urllib.parse import urlsplit

from prometheus_client import CONTENT_TYPE_LATEST

from pcie_exporter import __version__
from pcie_exporter.backends import SysfsAccess
from pcie_exporter.config import ExporterConfig, parse_listen_address
from pcie_exporter.exporter.metrics import ScrapeCounters, render_metrics, scrape_devices
from pcie_exporter.exporter.tree import CONTENT_TYPE as JSON_CONTENT_TYPE
from pcie_exporter.exporter.tree import render_tree

logger = logging.getLogger(__name__)


class Exporter:
    """Per-server state: configuration, filesystem backend and counters."""

    def __init__(self, config: ExporterConfig, fs: SysfsAccess | None = None) -> None:
        self.config = config
        self.fs = fs
        self.counters = ScrapeCounters()

    def metrics(self) -> bytes:
        result = scrape_devices(
            self.config.sysfs_root,
            self.counters,
            self.fs,
            speed_tolerance=self.config.speed_tolerance,
        )
        return render_metrics(result, self.counters)

    def tree(self) -> tuple[HTTPStatus, bytes]:
        return render_tree(self.config.sysfs_root, self.fs)


class ExporterRequestHandler(BaseHTTPRequestHandler):
    """Route GET requests to the exporter endpoints."""

    server_version: ClassVar[str] = f"pcie-exporter/{__version__}"

    def __init__(self, *args: Any, exporter: Exporter, **kwargs: Any) -> None:
        self._exporter = exporter
        super().__init__(*args, **kwargs)

    def do_GET(self) -> None:  # noqa: N802
        path = urlsplit(self.path).path
        if path == "/metrics":
            self._send(HTTPStatus.OK, CONTENT_TYPE_LATEST, self._exporter.metrics())
        elif path == "/pcie-tree":
            status, body = self._exporter.tree()
            self._send(status, JSON_CONTENT_TYPE, body)
        elif path == "/healthz":
            self._send(HTTPStatus.OK, "text/plain; charset=utf-8", b"ok\n")
        else:
            self._send(HTTPStatus.NOT_FOUND, "text/plain; charset=utf-8", b"not found\n")

    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        logger.debug("%s - %s", self.address_string(), format % args)

    def _send(self, status: HTTPStatus, content_type: str, body: bytes) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)


def make_server(config: ExporterConfig, fs: SysfsAccess | None = None) -> ThreadingHTTPServer:
    """Create (but don't start) an HTTP server for the given config.

    Raises:
        ValueError: If the listen address is malformed.
        OSError: If the address cannot be bound.
    """
    host, port = parse_listen_address(config.listen_address)
    handler = partial(ExporterRequestHandler, exporter=Exporter(config, fs))
    return ThreadingHTTPServer((host, port), handler)


def serve(config: ExporterConfig) -> None:
    """Run the exporter until interrupted."""
    server = make_server(config)
    logger.info(
        "Starting pcie-exporter on %s with sysfs root %s",
        config.listen_address,
        config.sysfs_root,
    )
    try:
        server.serve_forever()
    finally:
        server.server_close()
