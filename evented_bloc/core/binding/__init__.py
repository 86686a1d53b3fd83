# evented_bloc/core/binding/__init__.py
"""Bindings between event sources and rendered output.

Public API:
    - SubscriptionManager / BindingPhase: source resolution and subscription lifecycle
    - BlocEventListener: one-shot reactions to fired events
    - MultiBlocEventListener: several listeners around one child
    - BlocBuilder: output rebuilt from state
    - BlocEventConsumer: builder and listener sharing one source
    - render(): follow nested bindings down to the rendered leaf
"""
from evented_bloc.core.binding.base import UNCHANGED, BindingNode, SourceBinding, render
from evented_bloc.core.binding.builder import BlocBuilder
from evented_bloc.core.binding.consumer import BlocEventConsumer
from evented_bloc.core.binding.listener import BlocEventListener
from evented_bloc.core.binding.multi import MultiBlocEventListener
from evented_bloc.core.binding.subscription import BindingPhase, SubscriptionManager

__all__ = [
    "UNCHANGED",
    "BindingNode",
    "SourceBinding",
    "render",
    "BindingPhase",
    "SubscriptionManager",
    "BlocEventListener",
    "MultiBlocEventListener",
    "BlocBuilder",
    "BlocEventConsumer",
]
