"""SQLModel repository implementations."""

from .instrument import SQLModelInstrumentRepository

__all__ = ["SQLModelInstrumentRepository"]
