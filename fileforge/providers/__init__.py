"""Concrete adapters for the interfaces in ``fileforge.interfaces``."""
