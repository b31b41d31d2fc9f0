from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Linker(str, Enum):
    RUST_LLD = "rust-lld"


class Cache(str, Enum):
    DISABLE_INCREMENTAL = "disable-incremental"
    SCCACHE = "sccache"


class Codegen(str, Enum):
    DYNAMIC_LINKING = "dynamic-linking"
    SHARE_GENERICS = "share-generics"


class Hotpatch(str, Enum):
    DX = "dx"


@dataclass(frozen=True)
class Scenario:
    """One point in the linker x cache x codegen x hotpatch matrix.

    Every dimension is optional; ``None`` selects the toolchain default.
    """

    linker: Linker | None = None
    cache: Cache | None = None
    codegen: Codegen | None = None
    hotpatch: Hotpatch | None = None

    @property
    def wants_hotpatch(self) -> bool:
        return self.hotpatch is not None

    def describe(self) -> str:
        return (
            f"linker={self.linker_label()}, cache={self.cache_label()}, "
            f"codegen={self.codegen_label()}, hotpatch={self.hotpatch_label()}"
        )

    def linker_label(self) -> str:
        return self.linker.value if self.linker is not None else "default"

    def cache_label(self) -> str:
        if self.cache is Cache.DISABLE_INCREMENTAL:
            return "no-incremental"
        if self.cache is Cache.SCCACHE:
            return "sccache"
        return "incremental"

    def codegen_label(self) -> str:
        return self.codegen.value if self.codegen is not None else "default"

    def hotpatch_label(self) -> str:
        return self.hotpatch.value if self.hotpatch is not None else "none"
