"""
Tests for EffectScheduler.

Rate limits, concurrency caps, expiry, jitter and closed-surface handling.
"""

import gc

import pytest

from ridiculous_coding.effects import (
    EffectKind,
    EffectScheduler,
    JitterSide,
    Position,
    RecordingRenderer,
    min_interval,
    shake_duration,
    visible_duration,
)
from ridiculous_coding.errors import SurfaceClosedError

from conftest import FakeSurface


class TestKindTimings:
    """Fixed per-kind timings."""

    @pytest.mark.parametrize("kind, interval, visible, shake", [
        (EffectKind.BLIP, 20, 120, 50),
        (EffectKind.BOOM, 100, 250, 200),
        (EffectKind.NEWLINE, 0, 120, 50),
    ])
    def test_timings(self, kind, interval, visible, shake):
        assert min_interval(kind) == interval
        assert visible_duration(kind) == visible
        assert shake_duration(kind) == shake


class TestRateLimit:
    """Same-kind requests inside the minimum interval are rejected."""

    def test_blip_scenario(self, scheduler, backend, surface):
        """Blip at t=0 fires, t=10 rejected, t=25 fires."""
        assert scheduler.request_effect(surface, EffectKind.BLIP) is True
        assert scheduler.active_count(surface, EffectKind.BLIP) == 1

        backend.advance_to(10)
        assert scheduler.request_effect(surface, EffectKind.BLIP) is False
        assert scheduler.active_count(surface, EffectKind.BLIP) == 1

        backend.advance_to(25)
        assert scheduler.request_effect(surface, EffectKind.BLIP) is True
        assert scheduler.active_count(surface, EffectKind.BLIP) == 2

        backend.advance_to(120)
        assert scheduler.active_count(surface, EffectKind.BLIP) == 1

        backend.advance_to(145)
        assert scheduler.active_count(surface, EffectKind.BLIP) == 0

    def test_rejection_has_no_side_effect(self, scheduler, renderer, backend, surface):
        scheduler.request_effect(surface, EffectKind.BOOM)
        renderer.reset()

        backend.advance(50)
        assert scheduler.request_effect(surface, EffectKind.BOOM) is False

        assert renderer.calls == []
        assert scheduler.state_for(surface).last_fire_at[EffectKind.BOOM] == 0

    @pytest.mark.parametrize("kind", [EffectKind.BLIP, EffectKind.BOOM])
    def test_fires_again_exactly_at_interval(self, scheduler, backend, surface, kind):
        assert scheduler.request_effect(surface, kind)
        backend.advance(min_interval(kind) - 1)
        assert not scheduler.request_effect(surface, kind)
        backend.advance(1)
        assert scheduler.request_effect(surface, kind)

    def test_kinds_limited_independently(self, scheduler, surface):
        assert scheduler.request_effect(surface, EffectKind.BLIP)
        assert scheduler.request_effect(surface, EffectKind.BOOM)
        assert scheduler.request_effect(surface, EffectKind.NEWLINE)

    def test_surfaces_limited_independently(self, scheduler):
        a, b = FakeSurface(), FakeSurface()
        assert scheduler.request_effect(a, EffectKind.BLIP)
        assert scheduler.request_effect(b, EffectKind.BLIP)
        assert not scheduler.request_effect(a, EffectKind.BLIP)


class TestConcurrencyCap:
    """Visible cues per kind never exceed the cap."""

    def test_newline_burst_capped_at_five(self, scheduler, surface):
        results = [scheduler.request_effect(surface, EffectKind.NEWLINE) for _ in range(20)]

        assert results.count(True) == 5
        assert scheduler.active_count(surface, EffectKind.NEWLINE) == 5

    def test_blip_burst_never_exceeds_cap(self, scheduler, backend, surface):
        # Blips every 20ms live 120ms, so up to 6 would overlap without the cap
        peak = 0
        for _ in range(50):
            scheduler.request_effect(surface, EffectKind.BLIP)
            peak = max(peak, scheduler.active_count(surface, EffectKind.BLIP))
            backend.advance(20)
        assert peak == 5

    def test_cap_rejection_keeps_last_fire_time(self, scheduler, backend, surface):
        for _ in range(5):
            scheduler.request_effect(surface, EffectKind.NEWLINE)
        backend.advance(10)
        assert not scheduler.request_effect(surface, EffectKind.NEWLINE)
        assert scheduler.state_for(surface).last_fire_at[EffectKind.NEWLINE] == 0

    def test_slots_free_after_expiry(self, scheduler, backend, surface):
        for _ in range(5):
            scheduler.request_effect(surface, EffectKind.NEWLINE)
        backend.advance(visible_duration(EffectKind.NEWLINE))
        assert scheduler.active_count(surface, EffectKind.NEWLINE) == 0
        assert scheduler.request_effect(surface, EffectKind.NEWLINE)

    def test_custom_cap(self, renderer, backend, surface):
        scheduler = EffectScheduler(renderer, backend, max_concurrent=2)
        results = [scheduler.request_effect(surface, EffectKind.NEWLINE) for _ in range(4)]
        assert results == [True, True, False, False]


class TestRendering:
    """What the renderer is asked to do."""

    def test_renders_at_caret_and_clears_after_duration(self, scheduler, renderer, backend, surface):
        scheduler.request_effect(surface, EffectKind.BOOM)

        call = renderer.calls[0]
        assert call.op == "render_cue"
        assert call.target == EffectKind.BOOM
        assert call.position == Position(3, 5)
        assert EffectKind.BOOM in renderer.visible(surface)

        backend.advance(249)
        assert renderer.count("clear_cue") == 0
        backend.advance(1)
        assert renderer.count("clear_cue", EffectKind.BOOM) == 1
        assert EffectKind.BOOM not in renderer.visible(surface)

    def test_label_gets_random_hue(self, scheduler, renderer, surface):
        scheduler.request_effect(surface, EffectKind.BLIP, label="a")
        call = renderer.calls[0]
        assert call.label == "a"
        assert call.color.startswith("hsl(")
        assert call.color.endswith(", 90%, 65%)")
        hue = int(call.color[4:].split(",")[0])
        assert 0 <= hue < 360

    def test_no_label_no_color(self, scheduler, renderer, surface):
        scheduler.request_effect(surface, EffectKind.BLIP)
        assert renderer.calls[0].label is None
        assert renderer.calls[0].color is None

    def test_count_floored_at_zero_after_manual_clear(self, scheduler, backend, surface):
        scheduler.request_effect(surface, EffectKind.BLIP)
        scheduler.clear_all(surface)
        backend.advance(200)
        assert scheduler.active_count(surface, EffectKind.BLIP) == 0


class TestShake:
    """Jitter animation."""

    def test_no_jitter_without_shake(self, scheduler, renderer, backend, surface):
        scheduler.request_effect(surface, EffectKind.BLIP)
        backend.advance(300)
        assert renderer.count("render_jitter") == 0

    def test_blip_jitter_runs_16ms_ticks_then_clears(self, scheduler, renderer, backend, surface):
        scheduler.request_effect(surface, EffectKind.BLIP, shake=True)
        backend.advance(100)

        # Ticks at 0, 16, 32, 48 render; the tick at 64 is past 50ms and clears
        assert renderer.count("render_jitter") == 4
        final = renderer.calls[-2:]
        assert {c.op for c in final} == {"clear_jitter"}
        assert {c.target for c in final} == {JitterSide.LEFT, JitterSide.RIGHT}
        assert not (renderer.visible(surface) & {JitterSide.LEFT, JitterSide.RIGHT})

    def test_boom_jitter_lasts_longer(self, scheduler, renderer, backend, surface):
        scheduler.request_effect(surface, EffectKind.BOOM, shake=True)
        backend.advance(400)
        # 0..192 in 16ms steps
        assert renderer.count("render_jitter") == 13

    def test_each_tick_clears_the_other_side(self, scheduler, renderer, backend, surface):
        scheduler.request_effect(surface, EffectKind.BLIP, shake=True)
        backend.advance(40)
        jitter_calls = [c for c in renderer.calls if c.op in ("render_jitter", "clear_jitter")]
        for clear, render in zip(jitter_calls[::2], jitter_calls[1::2]):
            assert clear.op == "clear_jitter"
            assert render.op == "render_jitter"
            assert clear.target != render.target

    def test_rate_limited_request_does_not_shake(self, scheduler, renderer, surface):
        scheduler.request_effect(surface, EffectKind.BLIP)
        renderer.reset()
        assert not scheduler.request_effect(surface, EffectKind.BLIP, shake=True)
        assert renderer.count("render_jitter") == 0

    def test_capped_request_still_shakes(self, scheduler, renderer, backend, surface):
        for _ in range(5):
            scheduler.request_effect(surface, EffectKind.NEWLINE)
        backend.advance(10)
        renderer.reset()

        assert not scheduler.request_effect(surface, EffectKind.NEWLINE, shake=True)

        assert renderer.count("render_jitter") == 1
        assert renderer.count("render_cue") == 0
        assert scheduler.active_count(surface, EffectKind.NEWLINE) == 5
        assert scheduler.state_for(surface).last_fire_at[EffectKind.NEWLINE] == 0

    def test_overlapping_jitters_allowed(self, scheduler, renderer, backend, surface):
        scheduler.request_effect(surface, EffectKind.NEWLINE, shake=True)
        scheduler.request_effect(surface, EffectKind.BLIP, shake=True)
        assert renderer.count("render_jitter") == 2


class TestClearAll:
    """clear_all removes everything on one surface."""

    def test_three_booms(self, scheduler, renderer, backend, surface):
        for _ in range(3):
            assert scheduler.request_effect(surface, EffectKind.BOOM)
            backend.advance(100)
        renderer.reset()

        scheduler.clear_all(surface)

        assert scheduler.active_count(surface, EffectKind.BOOM) == 0
        for kind in EffectKind:
            assert renderer.count("clear_cue", kind) == 1
        for side in JitterSide:
            assert renderer.count("clear_jitter", side) == 1

    def test_keeps_last_fire_time(self, scheduler, backend, surface):
        scheduler.request_effect(surface, EffectKind.BOOM)
        backend.advance(10)
        scheduler.clear_all(surface)
        assert not scheduler.request_effect(surface, EffectKind.BOOM)

    def test_stops_running_jitter(self, scheduler, renderer, backend, surface):
        scheduler.request_effect(surface, EffectKind.BOOM, shake=True)
        scheduler.clear_all(surface)
        renderer.reset()
        backend.advance(400)
        assert renderer.count("render_jitter") == 0

    def test_idempotent_on_unknown_surface(self, scheduler, renderer):
        fresh = FakeSurface()
        scheduler.clear_all(fresh)
        scheduler.clear_all(fresh)
        assert not scheduler.has_state(fresh)
        assert renderer.count("clear_cue") == 6


class TestClosedSurfaces:
    """Closed surfaces are absorbed, never raised."""

    def test_render_on_closed_surface_is_swallowed(self, scheduler, renderer, surface):
        renderer.close(surface)
        assert scheduler.request_effect(surface, EffectKind.BLIP, shake=True) is True

    def test_expiry_after_close(self, scheduler, renderer, backend, surface):
        scheduler.request_effect(surface, EffectKind.BOOM, shake=True)
        renderer.close(surface)
        backend.advance(500)
        assert scheduler.active_count(surface, EffectKind.BOOM) == 0

    def test_clear_all_on_closed_surface(self, scheduler, renderer, surface):
        scheduler.request_effect(surface, EffectKind.BLIP)
        renderer.close(surface)
        scheduler.clear_all(surface)
        assert scheduler.active_count(surface, EffectKind.BLIP) == 0

    def test_caret_read_on_closed_surface(self, scheduler, renderer, backend):
        class GoneSurface:
            @property
            def caret(self):
                raise SurfaceClosedError(self)

        gone = GoneSurface()
        assert scheduler.request_effect(gone, EffectKind.BOOM, shake=True) is False
        assert not scheduler.has_state(gone)

        backend.advance(10_000)
        assert scheduler.active_count(gone, EffectKind.BOOM) == 0
        assert renderer.calls == []

    def test_state_dropped_when_surface_collected(self, backend):
        renderer = RecordingRenderer()
        scheduler = EffectScheduler(renderer, backend)
        doomed = FakeSurface()
        scheduler.request_effect(doomed, EffectKind.BOOM, shake=True)
        assert scheduler.tracked_surfaces == 1

        renderer.reset()  # call log holds strong references
        del doomed
        gc.collect()

        assert scheduler.tracked_surfaces == 0
        # pending expiry and jitter ticks fall through to no-ops
        backend.advance(500)
        assert renderer.calls == []
