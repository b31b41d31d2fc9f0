"""Pure derivations from a scenario: slug, seed, ready marker, payload values.

Everything here is deterministic across processes so that repeated runs over
the same matrix generate byte-identical projects.
"""

from __future__ import annotations

import hashlib

from hotpatch_bench.scenarios.model import Cache, Codegen, Hotpatch, Linker, Scenario

MASK_64 = (1 << 64) - 1
GOLDEN_CONSTANT = 0x9E37_79B9_7F4A_7C15
MIX_CONSTANT = 0xA076_1D64_78BD_642F
FALLBACK_STEP = 0x9E37

READY_MARKER_PREFIX = "PAYLOAD_SYSTEM_IS_READY"
PAYLOAD_LINE_PREFIX = "PAYLOAD_RANDOM_VALUE="
SLUG_SEPARATOR = "-"

_SEED_PERSON = b"hpbench-seed"


def _linker_token(linker: Linker | None) -> str:
    if linker is Linker.RUST_LLD:
        return "rust-lld"
    return "default-linker"


def _cache_token(cache: Cache | None) -> str:
    if cache is Cache.DISABLE_INCREMENTAL:
        return "no-incremental"
    if cache is Cache.SCCACHE:
        return "sccache"
    return "incremental"


def _codegen_token(codegen: Codegen | None) -> str:
    if codegen is Codegen.DYNAMIC_LINKING:
        return "dynamic-linking"
    if codegen is Codegen.SHARE_GENERICS:
        return "share-generics"
    return "default-dynamic"


def _hotpatch_token(hotpatch: Hotpatch | None) -> str:
    if hotpatch is Hotpatch.DX:
        return "dx-hotpatch"
    return "no-hotpatch"


def slug(scenario: Scenario) -> str:
    return SLUG_SEPARATOR.join(
        [
            _linker_token(scenario.linker),
            _cache_token(scenario.cache),
            _codegen_token(scenario.codegen),
            _hotpatch_token(scenario.hotpatch),
        ]
    )


def _canonical_fields(scenario: Scenario) -> bytes:
    parts = [
        "none" if value is None else value.value
        for value in (scenario.linker, scenario.cache, scenario.codegen, scenario.hotpatch)
    ]
    return "|".join(parts).encode("utf-8")


def seed(scenario: Scenario) -> int:
    digest = hashlib.blake2b(_canonical_fields(scenario), digest_size=8, person=_SEED_PERSON)
    return int.from_bytes(digest.digest(), "big")


def _check_u64(value: int) -> int:
    if not 0 <= value <= MASK_64:
        raise ValueError(f"value out of 64-bit range: {value}")
    return value


def rotate_left(value: int, bits: int) -> int:
    value = _check_u64(value)
    bits %= 64
    return ((value << bits) | (value >> (64 - bits))) & MASK_64


def ready_marker(slug_text: str, seed_value: int) -> str:
    return f"{READY_MARKER_PREFIX}__{slug_text}__{_check_u64(seed_value):016x}"


def payload_value(seed_value: int) -> int:
    return rotate_left(seed_value, 17) ^ GOLDEN_CONSTANT


def next_payload_value(previous: int) -> int:
    """Return a value guaranteed to differ from ``previous``."""
    previous = _check_u64(previous)
    candidate = previous ^ MIX_CONSTANT
    if candidate != previous:
        return candidate
    return (previous + FALLBACK_STEP) & MASK_64


def payload_line(value: int) -> str:
    return f"{PAYLOAD_LINE_PREFIX}{value}"
