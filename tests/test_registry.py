"""Tests for ModelRegistry."""

import asyncio

import pytest

from percepta.models.contract import MediaType, ModelRole


class NotAModel:
    def analyze(self, input, context=None):
        return None


class TestRegister:
    def test_register_and_get(self, registry, make_model):
        model = make_model("a")
        assert registry.register("a", model) is registry
        assert registry.get("a") is model
        assert "a" in registry
        assert registry.count == 1

    def test_get_unknown_returns_none(self, registry):
        assert registry.get("missing") is None

    def test_rejects_non_conforming_object(self, registry):
        with pytest.raises(TypeError):
            registry.register("bad", NotAModel())

    def test_rejects_sync_lifecycle_methods(self, registry, make_model):
        model = make_model("a")
        model.initialize = lambda: None
        with pytest.raises(TypeError):
            registry.register("a", model)

    def test_rejects_empty_id(self, registry, make_model):
        with pytest.raises(ValueError):
            registry.register("", make_model())

    def test_rejects_self_fallback(self, registry, make_model):
        with pytest.raises(ValueError):
            registry.register("a", make_model(), fallback_for="a")

    def test_reregister_keeps_position_and_chain_membership(self, registry, make_model):
        registry.register("p", make_model("p"))
        registry.register("f1", make_model("f1"), fallback_for="p")
        registry.register("f2", make_model("f2"), fallback_for="p")

        replacement = make_model("f1-new")
        registry.register("f1", replacement, fallback_for="p")

        assert registry.list() == ["p", "f1", "f2"]
        assert registry.get_fallback_chain("p") == ["f1", "f2"]
        assert registry.get("f1") is replacement

    def test_changing_fallback_for_moves_between_chains(self, registry, make_model):
        registry.register("f", make_model(), fallback_for="p1")
        registry.register("f", make_model(), fallback_for="p2")
        assert registry.get_fallback_chain("p1") == []
        assert registry.get_fallback_chain("p2") == ["f"]

        registry.register("f", make_model())
        assert registry.get_fallback_chain("p2") == []

    def test_fallback_may_precede_primary(self, registry, make_model):
        registry.register("f", make_model("f"), fallback_for="p")
        registry.register("p", make_model("p"))
        assert [m.name for m in registry.get_fallbacks("p")] == ["f"]


class TestUnregister:
    def test_unregister_purges_chains(self, registry, make_model):
        registry.register("p", make_model())
        registry.register("f", make_model(), fallback_for="p")
        registry.unregister("f")
        assert registry.get("f") is None
        assert registry.get_fallback_chain("p") == []

    def test_unregister_is_idempotent(self, registry, make_model):
        registry.register("a", make_model())
        registry.unregister("a")
        registry.unregister("a")
        assert registry.count == 0

    def test_chain_survives_primary_removal(self, registry, make_model):
        registry.register("p", make_model())
        registry.register("f", make_model(), fallback_for="p")
        registry.unregister("p")
        registry.register("p", make_model())
        assert registry.get_fallback_chain("p") == ["f"]


class TestEnableDisable:
    def test_disabled_model_is_invisible_to_get(self, registry, make_model):
        registry.register("a", make_model())
        assert registry.disable("a") is True
        assert registry.get("a") is None
        assert registry.get_registration("a").enabled is False
        assert registry.enable("a") is True
        assert registry.get("a") is not None

    def test_unknown_id_returns_false(self, registry):
        assert registry.enable("nope") is False
        assert registry.disable("nope") is False

    def test_registered_disabled(self, registry, make_model):
        registry.register("a", make_model(), enabled=False)
        assert registry.get("a") is None

    def test_disabled_fallback_skipped_but_kept_in_chain(self, registry, make_model):
        registry.register("p", make_model("p"))
        registry.register("f1", make_model("f1"), fallback_for="p")
        registry.register("f2", make_model("f2"), fallback_for="p")
        registry.disable("f1")

        assert [m.name for m in registry.get_fallbacks("p")] == ["f2"]
        assert registry.get_fallback_chain("p") == ["f1", "f2"]


class TestCapabilityLookup:
    def test_sorted_by_priority_then_registration_order(self, registry, make_model):
        registry.register("low", make_model(), priority=0)
        registry.register("high-1", make_model(), priority=5)
        registry.register("mid", make_model(), priority=2)
        registry.register("high-2", make_model(), priority=5)

        ids = [m.model_id for m in registry.get_by_capability(MediaType.IMAGE)]
        assert ids == ["high-1", "high-2", "mid", "low"]

    def test_filters_by_role_and_media(self, registry, make_model):
        registry.register("det", make_model(role=ModelRole.DETECTION))
        registry.register("ana", make_model(role=ModelRole.ANALYSIS))
        registry.register("vid", make_model(media_type=MediaType.VIDEO, role=ModelRole.ANALYSIS))

        assert [m.model_id for m in registry.get_by_capability(role=ModelRole.ANALYSIS)] == [
            "ana",
            "vid",
        ]
        assert [
            m.model_id for m in registry.get_by_capability(MediaType.IMAGE, ModelRole.ANALYSIS)
        ] == ["ana"]
        assert len(registry.get_by_capability()) == 3

    def test_excludes_disabled(self, registry, make_model):
        registry.register("a", make_model())
        registry.register("b", make_model())
        registry.disable("a")
        assert [m.model_id for m in registry.get_by_capability()] == ["b"]

    def test_priority_does_not_order_fallbacks(self, registry, make_model):
        registry.register("p", make_model())
        registry.register("f-low", make_model(), priority=0, fallback_for="p")
        registry.register("f-high", make_model(), priority=9, fallback_for="p")
        assert [r.model_id for r in registry.get_fallback_registrations("p")] == [
            "f-low",
            "f-high",
        ]


class TestHealthCheck:
    def test_reports_each_model_independently(self, registry, make_model):
        registry.register("ok", make_model(healthy=True))
        registry.register("down", make_model(healthy=False))
        registry.register("broken", make_model(healthy=RuntimeError("boom")))
        registry.register("off", make_model(), enabled=False)

        results = asyncio.run(registry.health_check())

        assert list(results) == ["ok", "down", "broken", "off"]
        assert results["ok"].healthy is True
        assert results["down"].healthy is False
        assert results["broken"].healthy is False
        assert results["broken"].error == "boom"
        assert results["off"].enabled is False


class TestDescribe:
    def test_summaries(self, registry, make_model):
        registry.register("p", make_model(role=ModelRole.ANALYSIS), priority=3)
        registry.register("f", make_model(), fallback_for="p")

        summaries = {s.model_id: s for s in registry.describe()}
        assert summaries["p"].priority == 3
        assert summaries["p"].fallbacks == ["f"]
        assert summaries["p"].capabilities.role == ModelRole.ANALYSIS
        assert summaries["f"].fallback_for == "p"
