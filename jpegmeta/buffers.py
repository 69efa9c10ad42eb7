"""Scoped scratch-buffer allocation.

The host application owns buffer pooling; this module only defines the
narrow rent/release contract the codecs depend on, plus a simple
allocator used by default and by the tests.
"""

from abc import ABC, abstractmethod
from typing import Optional


class PooledBuffer:
    """A rented bytearray. Release it exactly once, or use it as a context manager."""
    __slots__ = ('_array', 'requested_length', '_pool')

    def __init__(self, array: bytearray, requested_length: int,
                 pool: Optional['BufferPool'] = None):
        self._array = array
        self.requested_length = requested_length
        self._pool = pool

    @property
    def array(self) -> bytearray:
        if self._array is None:
            raise ValueError('buffer has been released')
        return self._array

    @property
    def released(self) -> bool:
        return self._array is None

    def release(self):
        if self._array is None:
            return
        array, self._array = self._array, None
        if self._pool is not None:
            self._pool._return(array)
            self._pool = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False


class BufferPool(ABC):
    """Source of scratch buffers."""

    @abstractmethod
    def rent(self, size: int) -> PooledBuffer:
        """Return a buffer of at least ``size`` bytes."""
        ...

    def _return(self, array: bytearray):
        """Called by PooledBuffer.release()."""


class SimpleBufferPool(BufferPool):
    """Allocates a fresh bytearray per rental and tracks outstanding buffers."""

    def __init__(self):
        self.outstanding = 0
        self.total_rented = 0

    def rent(self, size: int) -> PooledBuffer:
        if size < 0:
            raise ValueError(f'size must be non-negative, got {size}')
        self.outstanding += 1
        self.total_rented += 1
        return PooledBuffer(bytearray(size), size, self)

    def _return(self, array: bytearray):
        self.outstanding -= 1


_default_pool = SimpleBufferPool()


def default_pool() -> BufferPool:
    return _default_pool
