"""Serve a generated tree directory over HTTP."""

from __future__ import annotations

import webbrowser
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path


DEFAULT_HOST = "127.0.0.1"


def parse_listen_address(value: str, default_host: str = DEFAULT_HOST) -> tuple[str, int]:
    """Parse "8080", ":8080" or "host:8080" into (host, port).

    Raises ValueError for a missing or non-numeric port.
    """
    host, sep, port_text = value.strip().rpartition(":")
    if not sep:
        host = ""
    if not port_text.isdigit():
        raise ValueError(f"Invalid listen address: {value!r}")
    port = int(port_text)
    if not 0 <= port <= 65535:
        raise ValueError(f"Port out of range: {port}")
    return host or default_host, port


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args) -> None:  # noqa: A002
        pass


def make_server(host: str, port: int, directory: Path) -> ThreadingHTTPServer:
    """Return a server for the static files in *directory*."""
    handler = partial(_QuietHandler, directory=str(directory))
    return ThreadingHTTPServer((host, port), handler)


def serve(
    directory: Path,
    *,
    host: str = DEFAULT_HOST,
    port: int = 8080,
    page: str = "index.html",
    open_browser: bool = False,
) -> None:
    server = make_server(host, port, directory)
    url = f"http://{host}:{server.server_address[1]}/{page}"
    print(f"Serving {directory} at {url}")
    print("Press Ctrl+C to stop the server")

    if open_browser:
        webbrowser.open(url)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
