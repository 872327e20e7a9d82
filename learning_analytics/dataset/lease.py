"""Cross-process leases.

A lease is the mutual-exclusion marker of one dataset key. Each claim of a
key writes a new generation file ``<generation>-<key>`` holding
{key, holder, expires_at, generation}. The file is written in full under a
temporary name and published with ``os.link``, which fails if the name
exists, so readers never see a partial lease. After publishing, a claimant
looks for any other live generation of the key and backs off if it finds
one: two claimants can both lose, but never both win.

Leases expire: a worker that crashed while holding one blocks the key for
at most ``ttl_seconds``. Expired generations are deleted by the next
successful claimant; a live lease file is only ever deleted by its holder.
"""

from __future__ import annotations

import json
import logging
import os
import socket
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from learning_analytics.core.ports.clock import Clock

LOGGER = logging.getLogger(__name__)

DEFAULT_LEASE_TTL_SECONDS = 3600

_GENERATION_DIGITS = 6


@dataclass(frozen=True, slots=True)
class Lease:
    key: str
    holder: str
    expires_at: int
    generation: int = 1


def default_holder_id() -> str:
    """Identify the current worker: host, pid and a per-call token."""
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"


class FileLeaseStore:
    """Lease records stored as files in a shared directory."""

    def __init__(
        self,
        root: str | Path,
        *,
        clock: Clock,
        ttl_seconds: int = DEFAULT_LEASE_TTL_SECONDS,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be > 0")
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._ttl = int(ttl_seconds)

    def acquire(self, key: str, holder: str) -> Lease | None:
        """Claim ``key`` for ``holder``; return None if someone else holds it."""
        now = self._clock.now()
        leases = self._generations(key)
        if any(lease.expires_at > now for lease in leases):
            return None

        generation = max((lease.generation for lease in leases), default=0) + 1
        lease = Lease(key=key, holder=holder, expires_at=now + self._ttl, generation=generation)
        if not self._publish(lease):
            return None

        # Someone may have claimed another generation while we were publishing.
        rivals = [
            other
            for other in self._generations(key)
            if other.generation != generation and other.expires_at > now
        ]
        if rivals:
            self._path(key, generation).unlink(missing_ok=True)
            LOGGER.info(
                "Lease claim lost to a concurrent claimant",
                extra={"key": key, "holder": holder, "rivals": [r.holder for r in rivals]},
            )
            return None

        for expired in leases:
            self._path(key, expired.generation).unlink(missing_ok=True)
            LOGGER.warning(
                "Expired lease broken",
                extra={"key": key, "holder": expired.holder, "expires_at": expired.expires_at},
            )
        return lease

    def release(self, lease: Lease) -> bool:
        """Release a lease; returns False if it is no longer ours."""
        path = self._path(lease.key, lease.generation)
        current = self._read(path)

        if current is None:
            LOGGER.warning("Lease already gone on release", extra={"key": lease.key})
            return False

        if current.holder != lease.holder:
            # Our lease expired and the generation number was reused.
            LOGGER.warning(
                "Lease taken over before release",
                extra={"key": lease.key, "holder": lease.holder, "current": current.holder},
            )
            return False

        path.unlink(missing_ok=True)
        return True

    def current(self, key: str) -> Lease | None:
        """The newest generation of ``key``, expired or not."""
        leases = self._generations(key)
        return leases[-1] if leases else None

    # ------------------------------------------------------------------

    def _path(self, key: str, generation: int) -> Path:
        return self._root / f"{generation:0{_GENERATION_DIGITS}d}-{key}"

    def _generations(self, key: str) -> list[Lease]:
        """Every readable generation of ``key``, oldest first."""
        suffix = f"-{key}"
        leases = []
        for path in self._root.iterdir():
            name = path.name
            if not name.endswith(suffix):
                continue
            head = name[: -len(suffix)]
            if len(head) != _GENERATION_DIGITS or not head.isdigit():
                continue
            lease = self._read(path)
            if lease is not None:
                leases.append(lease)
        leases.sort(key=lambda lease: lease.generation)
        return leases

    def _publish(self, lease: Lease) -> bool:
        """Create the generation file of ``lease``; False if it already exists."""
        tmp_path = self._root / f".{uuid.uuid4().hex}.tmp"
        tmp_path.write_text(json.dumps(asdict(lease)), encoding="utf-8")
        try:
            os.link(tmp_path, self._path(lease.key, lease.generation))
        except FileExistsError:
            return False
        finally:
            tmp_path.unlink(missing_ok=True)
        return True

    @staticmethod
    def _read(path: Path) -> Lease | None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

        data = json.loads(raw)
        return Lease(
            key=data["key"],
            holder=data["holder"],
            expires_at=int(data["expires_at"]),
            generation=int(data.get("generation", 1)),
        )
