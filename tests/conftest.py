"""
Pytest configuration and shared fixtures for evented_bloc tests.

This module provides:
- A deterministic ManualClock per test
- A SourceRegistry and BindingContext wired to it
- Counter sources on that clock
"""

import pytest

from evented_bloc.core.clock import ManualClock
from evented_bloc.core.registry import BindingContext, SourceRegistry
from tests.fakes import CounterCubit, Recorder


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def registry() -> SourceRegistry:
    return SourceRegistry()


@pytest.fixture
def context(registry: SourceRegistry) -> BindingContext:
    return BindingContext(registry=registry, target="root")


@pytest.fixture
def counter(clock: ManualClock) -> CounterCubit:
    cubit = CounterCubit(clock=clock)
    yield cubit
    cubit.close()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()
