"""Fetch document bodies from HTTP(S) URLs or the local library."""

import logging
from pathlib import Path

import httpx

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0


class FetchFailure(RuntimeError):
    """Raised when a document body cannot be retrieved."""

    def __init__(self, location: str, message: str, status_code: int | None = None):
        super().__init__(f"Failed to fetch {location}: {message}")
        self.location = location
        self.status_code = status_code


def is_remote(location: str) -> bool:
    return location.startswith("http://") or location.startswith("https://")


class DocumentFetcher:
    """Read remote locations over HTTP and others from ``root``.

    Library-relative locations may start with ``/`` (as stored upload URLs
    do); they are always resolved under ``root``.
    """

    def __init__(
        self,
        root: Path | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.root = root or Path(".")
        self._timeout = timeout
        self._transport = transport
        self._headers = {"User-Agent": "folio/1.0"}

    def local_path(self, location: str) -> Path:
        path = Path(location)
        if path.is_absolute() and path.exists():
            return path
        return self.root / location.lstrip("/")

    def _open_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=dict(self._headers),
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    async def fetch_bytes(self, location: str) -> bytes:
        if not is_remote(location):
            path = self.local_path(location)
            try:
                return path.read_bytes()
            except OSError as e:
                raise FetchFailure(location, str(e)) from e

        try:
            async with self._open_client() as client:
                response = await client.get(location)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            raise FetchFailure(
                location, exc.response.reason_phrase or str(status), status_code=status
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchFailure(location, str(exc)) from exc

        log.debug("Fetched %d bytes from %s", len(response.content), location)
        return response.content

    async def fetch_text(self, location: str) -> str:
        data = await self.fetch_bytes(location)
        return data.decode("utf-8-sig", errors="replace")
