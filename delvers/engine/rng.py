"""Seeded random streams for encounter resolution."""

from __future__ import annotations

import hashlib
import random


def derive_stream_seed(master_seed: int, stream_name: str) -> int:
    """Derive a deterministic child RNG seed from (master_seed, stream_name)."""
    digest = hashlib.sha256(f"{master_seed}:{stream_name}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], byteorder="big", signed=False)


def create_rng(seed: int | None, stream_name: str) -> random.Random:
    if seed is None:
        return random.Random()
    return random.Random(derive_stream_seed(seed, stream_name))
