# tests/test_multi_bloc_event_listener.py
"""Tests for MultiBlocEventListener composition."""

import pytest

from evented_bloc.core.binding import BindingPhase, BlocEventListener, MultiBlocEventListener, render
from evented_bloc.core.clock import ManualClock
from evented_bloc.core.errors import BindingConfigurationError, BindingStateError, SourceNotFoundError
from evented_bloc.core.registry import BindingContext, SourceRegistry
from tests.fakes import CounterCubit, CounterEvent, OtherCubit


@pytest.fixture
def other(clock: ManualClock) -> OtherCubit:
    cubit = OtherCubit(clock=clock)
    yield cubit
    cubit.close()


class TestDispatch:
    def test_each_listener_sees_only_its_source(self, clock: ManualClock, counter: CounterCubit, other: OtherCubit) -> None:
        counter_events = []
        other_events = []
        multi = MultiBlocEventListener(
            [
                BlocEventListener(lambda c, b, e: counter_events.append(e), bloc=counter),
                BlocEventListener(lambda c, b, e: other_events.append(e), bloc=other),
            ],
            child="view",
        )
        multi.mount()

        counter.increment()
        counter.increment()
        other.ping()
        clock.pump()

        assert counter_events == [CounterEvent.INCREMENTED, CounterEvent.INCREMENTED]
        assert other_events == ["ping"]

    def test_ambient_sources(self, clock: ManualClock, registry: SourceRegistry, context: BindingContext, counter: CounterCubit, other: OtherCubit) -> None:
        registry.provide(CounterCubit, counter)
        registry.provide(OtherCubit, other)
        seen = []
        multi = MultiBlocEventListener(
            [
                BlocEventListener(lambda c, b, e: seen.append(("counter", e)), source_type=CounterCubit),
                BlocEventListener(lambda c, b, e: seen.append(("other", e)), source_type=OtherCubit),
            ],
            child="view",
        )
        multi.mount(context)

        other.ping()
        counter.decrement()
        clock.pump()

        assert sorted(seen, key=str) == sorted(
            [("other", "ping"), ("counter", CounterEvent.DECREMENTED)], key=str
        )

    def test_filters_are_independent(self, clock: ManualClock, counter: CounterCubit) -> None:
        first = []
        second = []
        multi = MultiBlocEventListener(
            [
                BlocEventListener(
                    lambda c, b, e: first.append(e),
                    bloc=counter,
                    listen_when=lambda bloc, event: event is CounterEvent.INCREMENTED,
                ),
                BlocEventListener(lambda c, b, e: second.append(e), bloc=counter),
            ],
            child="view",
        )
        multi.mount()

        counter.increment()
        counter.decrement()
        clock.pump()

        assert first == [CounterEvent.INCREMENTED]
        assert second == [CounterEvent.INCREMENTED, CounterEvent.DECREMENTED]

    def test_unmount_cancels_all(self, clock: ManualClock, counter: CounterCubit, other: OtherCubit) -> None:
        seen = []
        listeners = [
            BlocEventListener(lambda c, b, e: seen.append(e), bloc=counter),
            BlocEventListener(lambda c, b, e: seen.append(e), bloc=other),
        ]
        multi = MultiBlocEventListener(listeners, child="view")
        multi.mount()

        counter.increment()
        other.ping()
        multi.unmount()
        multi.unmount()
        clock.pump()

        assert seen == []
        assert all(listener.phase is BindingPhase.DETACHED for listener in listeners)
        assert not counter.event_stream.has_listener


class TestTree:
    def test_nests_outermost_first(self, counter: CounterCubit, other: OtherCubit) -> None:
        outer = BlocEventListener(lambda c, b, e: None, bloc=counter)
        inner = BlocEventListener(lambda c, b, e: None, bloc=other)
        multi = MultiBlocEventListener([outer, inner], child="view")
        multi.mount()

        assert outer.build() is inner
        assert inner.build() == "view"
        assert multi.build() == "view"
        assert render(outer) == "view"

    def test_empty_list_renders_child(self) -> None:
        multi = MultiBlocEventListener([], child="view")
        multi.mount()
        assert multi.build() == "view"

    def test_build_before_mount_raises(self, counter: CounterCubit) -> None:
        multi = MultiBlocEventListener([BlocEventListener(lambda c, b, e: None, bloc=counter)], child="view")
        with pytest.raises(BindingStateError):
            multi.build()

    def test_mount_twice_raises(self, counter: CounterCubit) -> None:
        multi = MultiBlocEventListener([BlocEventListener(lambda c, b, e: None, bloc=counter)], child="view")
        multi.mount()
        with pytest.raises(BindingStateError):
            multi.mount()


class TestValidation:
    def test_requires_child(self, counter: CounterCubit) -> None:
        with pytest.raises(BindingConfigurationError, match="must specify a child"):
            MultiBlocEventListener([BlocEventListener(lambda c, b, e: None, bloc=counter)], child=None)

    def test_rejects_non_listener(self) -> None:
        with pytest.raises(BindingConfigurationError, match="entry 0"):
            MultiBlocEventListener(["not a listener"], child="view")  # type: ignore[list-item]

    def test_rejects_duplicate_listener(self, counter: CounterCubit) -> None:
        listener = BlocEventListener(lambda c, b, e: None, bloc=counter)
        with pytest.raises(BindingConfigurationError, match="more than once"):
            MultiBlocEventListener([listener, listener], child="view")

    def test_rejects_listener_with_own_child(self, counter: CounterCubit) -> None:
        with pytest.raises(BindingConfigurationError, match="must not specify a child"):
            MultiBlocEventListener(
                [BlocEventListener(lambda c, b, e: None, bloc=counter, child="own")],
                child="view",
            )

    def test_failed_mount_rolls_back(self, clock: ManualClock, registry: SourceRegistry, context: BindingContext, counter: CounterCubit) -> None:
        first = BlocEventListener(lambda c, b, e: None, bloc=counter)
        missing = BlocEventListener(lambda c, b, e: None, source_type=OtherCubit)
        multi = MultiBlocEventListener([first, missing], child="view")

        with pytest.raises(SourceNotFoundError):
            multi.mount(context)

        assert not multi.is_mounted
        assert first.phase is BindingPhase.UNATTACHED
        assert not counter.event_stream.has_listener

    def test_mount_can_be_retried_after_failure(self, clock: ManualClock, registry: SourceRegistry, context: BindingContext, counter: CounterCubit, other: OtherCubit) -> None:
        seen = []
        first = BlocEventListener(lambda c, b, e: seen.append(e), bloc=counter)
        missing = BlocEventListener(lambda c, b, e: seen.append(e), source_type=OtherCubit)
        multi = MultiBlocEventListener([first, missing], child="view")

        with pytest.raises(SourceNotFoundError):
            multi.mount(context)
        assert first.phase is BindingPhase.UNATTACHED
        assert missing.phase is BindingPhase.UNATTACHED

        registry.provide(OtherCubit, other)
        multi.mount(context)
        counter.increment()
        other.ping()
        clock.pump()

        assert multi.is_mounted
        assert multi.build() == "view"
        assert sorted(seen, key=str) == sorted([CounterEvent.INCREMENTED, "ping"], key=str)
