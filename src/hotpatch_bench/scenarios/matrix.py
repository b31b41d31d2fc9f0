from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from hotpatch_bench.scenarios import derive
from hotpatch_bench.scenarios.model import Cache, Codegen, Hotpatch, Linker, Scenario
from hotpatch_bench.workspace.codegen import CodeBundle, CodegenOptions, build_code_bundle

LINKERS: tuple[Linker | None, ...] = (None, Linker.RUST_LLD)
CACHES: tuple[Cache | None, ...] = (None, Cache.DISABLE_INCREMENTAL, Cache.SCCACHE)
CODEGENS: tuple[Codegen | None, ...] = (None, Codegen.DYNAMIC_LINKING, Codegen.SHARE_GENERICS)


@dataclass(frozen=True)
class PreparedScenario:
    scenario: Scenario
    slug: str
    seed: int
    ready_marker: str
    payload_value: int
    code: CodeBundle
    codegen_options: CodegenOptions

    def regenerate_code(self) -> CodeBundle:
        return build_code_bundle(
            self.scenario,
            self.slug,
            self.ready_marker,
            self.payload_value,
            self.codegen_options,
        )


def supports_hotpatch(scenario: Scenario) -> bool:
    # dx hot-patching needs nothing beyond the bevy feature flag, so every
    # linker/cache/codegen combination gets a hot-patch variant.
    return scenario.hotpatch is None


def enumerate_scenarios(
    *,
    linkers: Sequence[Linker | None] = LINKERS,
    caches: Sequence[Cache | None] = CACHES,
    codegens: Sequence[Codegen | None] = CODEGENS,
    include_hotpatch: bool = True,
) -> list[Scenario]:
    scenarios: list[Scenario] = []
    for linker in linkers:
        for cache in caches:
            for codegen in codegens:
                base = Scenario(linker=linker, cache=cache, codegen=codegen)
                scenarios.append(base)
                if include_hotpatch and supports_hotpatch(base):
                    scenarios.append(replace(base, hotpatch=Hotpatch.DX))
    return scenarios


def prepare_scenario(scenario: Scenario, options: CodegenOptions | None = None) -> PreparedScenario:
    opts = options or CodegenOptions()
    slug_text = derive.slug(scenario)
    seed_value = derive.seed(scenario)
    marker = derive.ready_marker(slug_text, seed_value)
    payload = derive.payload_value(seed_value)
    return PreparedScenario(
        scenario=scenario,
        slug=slug_text,
        seed=seed_value,
        ready_marker=marker,
        payload_value=payload,
        code=build_code_bundle(scenario, slug_text, marker, payload, opts),
        codegen_options=opts,
    )


def prepare_scenarios(
    scenarios: Iterable[Scenario],
    options: CodegenOptions | None = None,
) -> list[PreparedScenario]:
    return [prepare_scenario(scenario, options) for scenario in scenarios]


def filter_by_slug(
    prepared: Iterable[PreparedScenario],
    patterns: Sequence[str] | None,
) -> list[PreparedScenario]:
    """Keep scenarios whose slug contains every pattern; no patterns keeps all."""
    items = list(prepared)
    if not patterns:
        return items
    return [item for item in items if all(pattern in item.slug for pattern in patterns)]
