# tests/test_bloc_builder.py
"""Tests for BlocBuilder: initial build, build_when baseline, and rebinding."""

import pytest

from evented_bloc.core.binding import BindingPhase, BlocBuilder
from evented_bloc.core.clock import ManualClock
from evented_bloc.core.errors import BindingConfigurationError, BindingStateError
from evented_bloc.core.registry import BindingContext, SourceRegistry
from tests.fakes import CounterCubit, Recorder


def every_third_sum(previous: int, current: int) -> bool:
    return (previous + current) % 3 == 0


class TestBuild:
    def test_builds_once_on_mount(self, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter)
        builder.mount()

        assert recorder.states == [0]
        assert builder.build() == "State: 0"
        assert builder.build_count == 1

    def test_rebuilds_on_every_state(self, clock: ManualClock, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter)
        builder.mount()

        counter.increment()
        counter.increment()
        clock.pump()

        assert recorder.states == [0, 1, 2]
        assert builder.output == "State: 2"

    def test_build_before_mount_raises(self, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter)
        with pytest.raises(BindingStateError):
            builder.build()

    def test_requires_callable_builder(self, counter: CounterCubit) -> None:
        with pytest.raises(BindingConfigurationError):
            BlocBuilder("not callable", bloc=counter)  # type: ignore[arg-type]

    def test_builder_receives_context(self, counter: CounterCubit, context: BindingContext) -> None:
        contexts = []
        builder = BlocBuilder(lambda ctx, state: contexts.append(ctx), bloc=counter)
        builder.mount(context)
        assert contexts == [context]

    def test_unmount_stops_rebuilds(self, clock: ManualClock, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter)
        builder.mount()

        counter.increment()
        builder.unmount()
        clock.pump()

        assert recorder.states == [0]
        assert builder.phase is BindingPhase.DETACHED


class TestBuildWhen:
    def test_baseline_advances_on_suppressed_states(self, clock: ManualClock, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter, build_when=every_third_sum)
        builder.mount()

        counter.increment()  # (0 + 1) skipped
        clock.pump()
        counter.increment()  # (1 + 2) builds
        clock.pump()

        assert recorder.states == [0, 2]
        assert builder.build() == "State: 2"

    def test_predicate_sees_consecutive_pairs(self, clock: ManualClock, counter: CounterCubit) -> None:
        pairs = []

        def build_when(previous: int, current: int) -> bool:
            pairs.append((previous, current))
            return False

        builder = BlocBuilder(lambda ctx, state: state, bloc=counter, build_when=build_when)
        builder.mount()

        counter.increment()
        counter.increment()
        counter.decrement()
        clock.pump()

        assert pairs == [(0, 1), (1, 2), (2, 1)]
        assert builder.build() == 0

    def test_update_build_when(self, clock: ManualClock, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter, build_when=lambda p, c: False)
        builder.mount()
        builder.update(build_when=None)

        counter.increment()
        clock.pump()

        assert recorder.states == [0, 1]


class TestRebind:
    def test_rebind_rebuilds_from_new_source(self, clock: ManualClock, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter)
        builder.mount()
        counter.increment()
        clock.pump()

        other = CounterCubit(10, clock=clock)
        builder.update(bloc=other)

        assert recorder.states == [0, 1, 10]
        assert builder.source is other

    def test_pending_state_of_old_source_is_discarded(self, clock: ManualClock, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter)
        builder.mount()

        counter.increment()  # queued, not delivered
        builder.update(bloc=CounterCubit(5, clock=clock))
        clock.pump()

        assert recorder.states == [0, 5]
        assert builder.build() == "State: 5"

    def test_same_source_is_noop(self, clock: ManualClock, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter)
        builder.mount()
        builder.update(bloc=counter)
        assert recorder.states == [0]

    def test_baseline_restarts_after_rebind(self, clock: ManualClock, counter: CounterCubit, recorder: Recorder) -> None:
        builder = BlocBuilder(recorder.builder, bloc=counter, build_when=every_third_sum)
        builder.mount()

        other = CounterCubit(1, clock=clock)
        builder.update(bloc=other)
        other.increment()  # (1 + 2) builds
        clock.pump()

        assert recorder.states == [0, 1, 2]

    def test_ambient_replacement_rebuilds(self, clock: ManualClock, registry: SourceRegistry, context: BindingContext, recorder: Recorder) -> None:
        registry.provide(CounterCubit, CounterCubit(clock=clock))
        builder = BlocBuilder(recorder.builder, source_type=CounterCubit)
        builder.mount(context)

        replacement = CounterCubit(7, clock=clock)
        registry.provide(CounterCubit, replacement)

        assert recorder.states == [0, 7]
        assert builder.source is replacement

    def test_raising_rebuild_on_rebind_keeps_subscription(self, clock: ManualClock, counter: CounterCubit) -> None:
        states = []
        raised = []

        def builder(context, state):
            if state == 5 and not raised:
                raised.append(state)
                raise RuntimeError("builder failed")
            states.append(state)
            return state

        node = BlocBuilder(builder, bloc=counter)
        node.mount()
        second = CounterCubit(5, clock=clock)

        with pytest.raises(RuntimeError, match="builder failed"):
            node.update(bloc=second)

        second.increment()
        clock.pump()

        assert node.source is second
        assert second.state_stream.listener_count == 1
        assert states == [0, 6]
        assert node.build() == 6
