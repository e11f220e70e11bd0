from __future__ import annotations

import hashlib
from random import Random


def derive_seed(base_seed: int, *, day: int, raid_seq: int, stream: str, purpose: str) -> int:
    payload = f"{base_seed}|{day}|{raid_seq}|{stream}|{purpose}".encode("utf-8")
    digest = hashlib.blake2b(payload, digest_size=8).digest()
    return int.from_bytes(digest, "big")


def raid_rng(base_seed: int, day: int, raid_seq: int, purpose: str) -> Random:
    return Random(derive_seed(base_seed, day=day, raid_seq=raid_seq, stream="raid", purpose=purpose))
