from hotpatch_bench.scenarios.model import Cache, Codegen, Hotpatch, Linker, Scenario
from hotpatch_bench.scenarios.derive import (
    next_payload_value,
    payload_line,
    payload_value,
    ready_marker,
    seed,
    slug,
)

# The matrix module depends on workspace code generation; import it as
# ``hotpatch_bench.scenarios.matrix`` to keep this package import-light.

__all__ = [
    "Cache",
    "Codegen",
    "Hotpatch",
    "Linker",
    "Scenario",
    "next_payload_value",
    "payload_line",
    "payload_value",
    "ready_marker",
    "seed",
    "slug",
]
