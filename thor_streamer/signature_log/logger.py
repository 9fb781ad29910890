"""
Append-only signature log: one JSON object per accepted transaction.

Responsibilities:
- Create the target directory and open the file in append mode so restarts
  never truncate history.
- Serialize concurrent callers (threads or event-loop tasks) so every call
  writes exactly one complete line.
- Refuse writes after close() instead of dropping them silently.
"""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TextIO

from thor_streamer.core.exceptions import SignatureLogError, SignatureLoggerClosedError
from thor_streamer.stream.models import encode_key
from thor_streamer.streamer_logging import get_logger

logger = get_logger(__name__)


def _rfc3339_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    signature: str
    slot: int
    program_id: str
    success: bool

    def to_json(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"))

    @classmethod
    def from_json(cls, line: str) -> LogEntry:
        data: dict[str, Any] = json.loads(line)
        return cls(
            timestamp=str(data["timestamp"]),
            signature=str(data["signature"]),
            slot=int(data["slot"]),
            program_id=str(data["program_id"]),
            success=bool(data["success"]),
        )


class SignatureLogger:
    """
    JSON-lines signature log guarded by a single lock.

    Build record, serialize and append happen under the lock as one unit, so
    lines are totally ordered by lock acquisition and never interleave.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file: TextIO | None = open(self._path, "a", encoding="utf-8")
        except OSError as e:
            raise SignatureLogError(f"failed to open signature log {self._path}: {e}") from e
        self._lock = threading.Lock()
        logger.info("signature_log_opened", path=str(self._path))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def closed(self) -> bool:
        return self._file is None

    def log_signature(
        self,
        signature: bytes | str,
        slot: int,
        program_id: str,
        success: bool,
    ) -> LogEntry:
        """Append one record; return it. Raises SignatureLogError on I/O failure."""
        with self._lock:
            if self._file is None:
                raise SignatureLoggerClosedError(f"signature log {self._path} is closed")
            entry = LogEntry(
                timestamp=_rfc3339_now(),
                signature=signature if isinstance(signature, str) else encode_key(signature),
                slot=int(slot),
                program_id=program_id,
                success=bool(success),
            )
            try:
                self._file.write(entry.to_json() + "\n")
                self._file.flush()
            except OSError as e:
                raise SignatureLogError(f"failed to write signature: {e}") from e
            return entry

    def close(self) -> None:
        """Release the file handle. Later calls are no-ops."""
        with self._lock:
            if self._file is None:
                return
            f, self._file = self._file, None
            try:
                f.close()
            except OSError as e:
                raise SignatureLogError(f"failed to close signature log: {e}") from e
        logger.info("signature_log_closed", path=str(self._path))

    def __enter__(self) -> SignatureLogger:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
