"""Persistent peer identity of this node."""

from __future__ import annotations

import os
import secrets
from pathlib import Path

PEER_ID_SIZE = 20


def get_or_create_peer_id(path: str | Path) -> bytes:
    """Return the peer id stored at ``path``, creating a random one if missing."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        peer_id = secrets.token_bytes(PEER_ID_SIZE)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o755)
        with os.fdopen(fd, "wb") as out:
            out.write(peer_id)
        return peer_id
    return data[:PEER_ID_SIZE].ljust(PEER_ID_SIZE, b"\0")