"""Runtime configuration."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from folio.core.fetcher import DEFAULT_TIMEOUT
from folio.core.position import SETTLE_DELAY
from folio.core.text_renderer import CHUNK_SIZE


@dataclass(frozen=True)
class FolioConfig:
    """Configuration shared by the CLI, the upload gate and the reader."""

    library_dir: Path = field(default_factory=lambda: Path("library"))
    upload_password: str | None = None  # None = uploads are open
    chunk_size: int = CHUNK_SIZE
    settle_delay: float = SETTLE_DELAY
    fetch_timeout: float = DEFAULT_TIMEOUT

    @property
    def uploads_dir(self) -> Path:
        return self.library_dir / "uploads"

    @classmethod
    def from_env(cls, library_dir: Path | None = None) -> "FolioConfig":
        """Read ``FOLIO_*`` environment variables, falling back to defaults."""
        env = os.environ
        return cls(
            library_dir=library_dir or Path(env.get("FOLIO_LIBRARY_DIR", "library")),
            upload_password=env.get("FOLIO_UPLOAD_PASSWORD") or None,
            chunk_size=int(env.get("FOLIO_CHUNK_SIZE", CHUNK_SIZE)),
            settle_delay=float(env.get("FOLIO_SETTLE_DELAY", SETTLE_DELAY)),
            fetch_timeout=float(env.get("FOLIO_FETCH_TIMEOUT", DEFAULT_TIMEOUT)),
        )
