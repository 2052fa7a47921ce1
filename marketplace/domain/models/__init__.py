from .sequence import SequenceCounter

__all__ = ["SequenceCounter"]
