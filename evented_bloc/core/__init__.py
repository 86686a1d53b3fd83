# evented_bloc/core/__init__.py
"""Kivy-independent core: sources, clock, registry and bindings."""
