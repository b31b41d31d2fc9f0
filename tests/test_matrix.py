from hotpatch_bench.scenarios.matrix import (
    enumerate_scenarios,
    filter_by_slug,
    prepare_scenario,
    prepare_scenarios,
)
from hotpatch_bench.scenarios.model import Cache, Codegen, Hotpatch, Linker, Scenario
from hotpatch_bench.workspace.codegen import CodegenOptions


def test_full_matrix_has_hotpatch_variant_per_base_scenario():
    scenarios = enumerate_scenarios()
    assert len(scenarios) == 36
    base = [s for s in scenarios if s.hotpatch is None]
    variants = [s for s in scenarios if s.hotpatch is Hotpatch.DX]
    assert len(base) == 18
    assert len(variants) == 18


def test_hotpatch_variant_follows_its_base():
    scenarios = enumerate_scenarios()
    for base, variant in zip(scenarios[::2], scenarios[1::2]):
        assert variant.hotpatch is Hotpatch.DX
        assert (variant.linker, variant.cache, variant.codegen) == (base.linker, base.cache, base.codegen)


def test_enumeration_order_starts_with_defaults():
    scenarios = enumerate_scenarios()
    assert scenarios[0] == Scenario()
    assert scenarios[-1] == Scenario(
        linker=Linker.RUST_LLD,
        cache=Cache.SCCACHE,
        codegen=Codegen.SHARE_GENERICS,
        hotpatch=Hotpatch.DX,
    )


def test_include_hotpatch_false_keeps_only_base_scenarios():
    scenarios = enumerate_scenarios(include_hotpatch=False)
    assert len(scenarios) == 18
    assert all(not s.wants_hotpatch for s in scenarios)


def test_custom_dimensions_shrink_matrix():
    scenarios = enumerate_scenarios(linkers=(None,), caches=(None,), codegens=(None,))
    assert scenarios == [Scenario(), Scenario(hotpatch=Hotpatch.DX)]


def test_prepare_scenario_derives_every_field():
    prepared = prepare_scenario(Scenario(linker=Linker.RUST_LLD))
    assert prepared.slug == "rust-lld-incremental-default-dynamic-no-hotpatch"
    assert prepared.ready_marker.startswith(f"PAYLOAD_SYSTEM_IS_READY__{prepared.slug}__")
    assert f"{prepared.payload_value}" in prepared.code.src_main_rs
    assert prepared.ready_marker in prepared.code.src_main_rs
    assert prepared.codegen_options == CodegenOptions()


def test_prepared_code_is_reproducible():
    prepared = prepare_scenarios(enumerate_scenarios())
    again = prepare_scenarios(enumerate_scenarios())
    assert [p.code for p in prepared] == [p.code for p in again]
    assert all(p.regenerate_code() == p.code for p in prepared)


def test_filter_requires_every_pattern():
    prepared = prepare_scenarios(enumerate_scenarios())
    selected = filter_by_slug(prepared, ["rust-lld", "dx-hotpatch"])
    assert len(selected) == 9
    assert all("rust-lld" in p.slug and "dx-hotpatch" in p.slug for p in selected)


def test_filter_without_patterns_keeps_everything():
    prepared = prepare_scenarios(enumerate_scenarios())
    assert filter_by_slug(prepared, None) == prepared
    assert filter_by_slug(prepared, []) == prepared


def test_filter_without_matches_is_empty():
    prepared = prepare_scenarios(enumerate_scenarios())
    assert filter_by_slug(prepared, ["no-such-token"]) == []
