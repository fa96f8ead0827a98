"""
Shard storage for analytics events.

A shard holds every event of one tenant for one UTC calendar day, one JSON
record per line, in append order. The shard name is the only index into
storage, so it must stay derivable from (tenant_id, day) alone:

    {tenant_id}_{YYYY-MM-DD}.jsonl

`ShardStore` is the contract the rest of the analytics code depends on;
`JsonlShardStore` keeps shards as files in one directory.
"""

from __future__ import annotations

import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import List, Optional

from app.core.errors import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)

SHARD_SUFFIX = ".jsonl"
_SHARD_NAME_RE = re.compile(r"^(.+)_(\d{4}-\d{2}-\d{2})\.jsonl$")
_UNSAFE_CHARS = ("/", "\\", "\x00")


def check_tenant_id(tenant_id: str) -> None:
    """Tenant ids become file names; refuse anything that could leave the shard directory."""
    if tenant_id in (".", "..") or any(ch in tenant_id for ch in _UNSAFE_CHARS):
        raise ValidationError(f"tenantId {tenant_id!r} is not a valid shard name")


@dataclass(frozen=True)
class ShardKey:
    tenant_id: str
    day: date

    @property
    def name(self) -> str:
        return f"{self.tenant_id}_{self.day.isoformat()}{SHARD_SUFFIX}"

    @classmethod
    def parse(cls, name: str) -> Optional["ShardKey"]:
        """None when the name carries no valid tenant/date pair."""
        m = _SHARD_NAME_RE.match(name)
        if not m:
            return None
        try:
            day = date.fromisoformat(m.group(2))
        except ValueError:
            return None
        return cls(tenant_id=m.group(1), day=day)


@dataclass(frozen=True)
class ShardInfo:
    name: str
    size: int
    last_modified: datetime


class ShardNotFound(NotFoundError):
    pass


class ShardStore(ABC):
    @abstractmethod
    def append(self, key: ShardKey, line: str) -> None:
        """Append one complete newline-terminated record, creating the shard if needed."""

    @abstractmethod
    def read_shard(self, name: str) -> List[bytes]:
        """Non-empty raw lines in append order. Raises ShardNotFound."""

    @abstractmethod
    def delete_shard(self, name: str) -> None:
        """Raises ShardNotFound."""

    @abstractmethod
    def list_shards(self) -> List[ShardInfo]:
        ...


class JsonlShardStore(ShardStore):
    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, name: str) -> Path:
        if os.sep in name or "/" in name or name in (".", ".."):
            raise ValidationError(f"invalid shard name {name!r}")
        return self.root / name

    def append(self, key: ShardKey, line: str) -> None:
        if not line.endswith("\n") or "\n" in line[:-1]:
            raise ValidationError("shard records must be exactly one line")
        payload = line.encode("utf-8")
        path = self._path(key.name)

        try:
            # checked on every append; the directory may be removed underneath us
            self.root.mkdir(parents=True, exist_ok=True)
            # One write() on an O_APPEND descriptor: concurrent appenders never interleave
            fd = os.open(path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
            try:
                written = os.write(fd, payload)
            finally:
                os.close(fd)
        except OSError as exc:
            raise StorageError(f"Failed to append to {key.name}: {exc}") from exc

        if written != len(payload):
            raise StorageError(
                f"Short write to {key.name}: {written} of {len(payload)} bytes"
            )

    def read_shard(self, name: str) -> List[bytes]:
        path = self._path(name)
        try:
            content = path.read_bytes()
        except FileNotFoundError as exc:
            raise ShardNotFound(f"Shard {name} not found") from exc
        except OSError as exc:
            raise StorageError(f"Failed to read {name}: {exc}") from exc

        return [line for line in content.split(b"\n") if line.strip()]

    def delete_shard(self, name: str) -> None:
        path = self._path(name)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise ShardNotFound(f"Shard {name} not found") from exc
        except OSError as exc:
            raise StorageError(f"Failed to delete {name}: {exc}") from exc

    def list_shards(self) -> List[ShardInfo]:
        if not self.root.exists():
            return []

        shards: List[ShardInfo] = []
        try:
            entries = list(os.scandir(self.root))
        except OSError as exc:
            raise StorageError(f"Failed to list {self.root}: {exc}") from exc

        for entry in entries:
            if not entry.name.endswith(SHARD_SUFFIX):
                continue
            try:
                if not entry.is_file():
                    continue
                st = entry.stat()
            except FileNotFoundError:
                # deleted between scandir and stat
                continue
            except OSError as exc:
                logger.warning("Cannot stat analytics file %s: %s", entry.name, exc)
                continue
            shards.append(
                ShardInfo(
                    name=entry.name,
                    size=st.st_size,
                    last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                )
            )

        shards.sort(key=lambda s: s.name)
        return shards
