"""Default dev server: serves the output directory over HTTP.

A stdlib ``ThreadingHTTPServer`` running in a daemon thread.  ``serve()``
returns once the socket is bound; bind errors surface as ``OSError`` and
are reported by the session as a serve failure.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer

from buildwatch.models.config import WatchConfig

logger = logging.getLogger(__name__)


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: object) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class StaticDevServer:
    """Serves ``config.dist`` on *host*:*port*."""

    def __init__(self, host: str = "localhost", port: int = 8081) -> None:
        self.host = host
        self.port = port
        self._httpd: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._httpd is not None

    @property
    def url(self) -> str:
        port = self._httpd.server_address[1] if self._httpd else self.port
        return f"http://{self.host}:{port}"

    async def serve(self, config: WatchConfig) -> None:
        if self._httpd is not None:
            raise RuntimeError(f"Dev server already running at {self.url}")

        handler = functools.partial(_QuietHandler, directory=str(config.dist))
        self._httpd = await asyncio.to_thread(
            ThreadingHTTPServer, (self.host, self.port), handler
        )
        self._thread = threading.Thread(
            target=self._httpd.serve_forever, name="buildwatch-serve", daemon=True
        )
        self._thread.start()
        logger.info("Serving %s at %s", config.dist, self.url)

    async def close(self) -> None:
        if self._httpd is None:
            return
        httpd, self._httpd = self._httpd, None
        await asyncio.to_thread(httpd.shutdown)
        httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
            self._thread = None
        logger.info("Dev server stopped")
