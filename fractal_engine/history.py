"""Snapshots of previously rendered rasters for zooming back out."""

from __future__ import annotations

from typing import Iterator

from .raster import RasterBuffer


class ZoomHistory:
    """Ordered stack of raster snapshots, numbered from 1 in creation order."""

    def __init__(self) -> None:
        self._entries: list[RasterBuffer] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[RasterBuffer]:
        return iter(list(self._entries))

    def __getitem__(self, index: int) -> RasterBuffer:
        return self._entries[index]

    @property
    def entries(self) -> tuple[RasterBuffer, ...]:
        return tuple(self._entries)

    def push_current(self, buffer: RasterBuffer) -> RasterBuffer:
        """Store a copy of ``buffer`` so later writes to it leave history untouched."""

        snapshot = buffer.copy()
        snapshot.zoom_index = len(self._entries) + 1
        self._entries.append(snapshot)
        return snapshot

    def pop_to(self, target: RasterBuffer) -> RasterBuffer:
        """Drop ``target`` and everything recorded after it.

        Survivors are renumbered ``1..k`` in their creation order. ``target``
        is returned as the new live buffer.
        """

        survivors = [entry for entry in self._entries if entry.zoom_index < target.zoom_index]
        for position, entry in enumerate(survivors, start=1):
            entry.zoom_index = position
        self._entries = survivors
        return target

    def clear(self) -> None:
        self._entries = []
