"""Repository protocols for instrument snapshots."""

from .instrument import InstrumentRepository

__all__ = ["InstrumentRepository"]
