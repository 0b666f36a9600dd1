"""Bounded receive buffer for telnet sessions."""

from typing import Final

DEFAULT_MAX_BUFFER_SIZE: Final[int] = 1_048_576  # 1MB


class ReceiveBuffer:
    """
    Byte store that keeps only the most recent ``max_size`` bytes.

    Appends go to the tail; when the cap is exceeded the oldest bytes are
    dropped. ``drain`` hands back everything and empties the buffer without
    yielding to the event loop, so a concurrent receiver task can never
    interleave with it.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_BUFFER_SIZE) -> None:
        if max_size <= 0:
            raise ValueError(f"max_size must be positive, got {max_size}")
        self._max_size = max_size
        self._data = bytearray()
        self._total_evicted = 0

    @property
    def max_size(self) -> int:
        """Maximum number of bytes retained."""
        return self._max_size

    @property
    def total_evicted(self) -> int:
        """Bytes dropped from the head since the buffer was created."""
        return self._total_evicted

    def append(self, data: bytes) -> int:
        """
        Add bytes to the tail, evicting from the head if over the cap.

        Args:
            data: Bytes to append

        Returns:
            Number of bytes evicted by this append
        """
        if not data:
            return 0

        self._data += data
        excess = len(self._data) - self._max_size
        if excess <= 0:
            return 0

        del self._data[:excess]
        self._total_evicted += excess
        return excess

    def drain(self) -> bytes:
        """Return the buffered bytes and empty the buffer."""
        data = bytes(self._data)
        self._data.clear()
        return data

    def peek(self) -> bytes:
        """Return the buffered bytes without consuming them."""
        return bytes(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"ReceiveBuffer(size={len(self._data)}, max_size={self._max_size})"
