"""A byte buffer that may be written and read from several threads."""

from __future__ import annotations

import threading


class SyncBuffer:
    """Thread-safe FIFO byte buffer; reads consume what has been written."""

    def __init__(self) -> None:
        self._data = bytearray()
        self._lock = threading.Lock()

    def read(self, size: int = -1) -> bytes:
        """Remove and return up to ``size`` bytes (all of them if negative)."""
        with self._lock:
            if size < 0 or size >= len(self._data):
                chunk = bytes(self._data)
                self._data.clear()
            else:
                chunk = bytes(self._data[:size])
                del self._data[:size]
            return chunk

    def write(self, data: bytes | str) -> int:
        """Append ``data``; text is encoded as UTF-8. Returns the byte count."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        with self._lock:
            self._data.extend(data)
        return len(data)

    def getvalue(self) -> bytes:
        """Return the unread contents without consuming them."""
        with self._lock:
            return bytes(self._data)

    def __str__(self) -> str:
        return self.getvalue().decode("utf-8", errors="replace")

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)