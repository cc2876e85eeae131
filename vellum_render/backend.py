from __future__ import annotations

from abc import ABC, abstractmethod
import io
import logging
import math
import os
from pathlib import Path
from typing import IO, Sequence

from vellum_core.boxes import AbsoluteBox
from vellum_core.errors import SinkError, UnsupportedBackendOperation
from vellum_core.forms import XY, ResolvedForm
from vellum_core.measure import Measure, MeasureOrNumber, size_measure
from vellum_core.properties import ResolvedProperty


LOGGER = logging.getLogger(__name__)

SinkTarget = str | os.PathLike | IO[str] | IO[bytes] | None


class Backend(ABC):
    """Consumer of resolved scope and draw events.

    Lifecycle: open after construction, finished after `finish()`. Backends
    that support it return to open via `reset()`.
    """

    @abstractmethod
    def root_box(self) -> AbsoluteBox:
        raise NotImplementedError

    @abstractmethod
    def push_property_frame(self, properties: Sequence[ResolvedProperty]) -> None:
        raise NotImplementedError

    @abstractmethod
    def pop_property_frame(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def draw(self, form: ResolvedForm) -> None:
        raise NotImplementedError

    @abstractmethod
    def finish(self) -> None:
        """Flush pending output. Calling it again has no effect."""
        raise NotImplementedError

    @abstractmethod
    def is_finished(self) -> bool:
        raise NotImplementedError

    def reset(self) -> None:
        raise UnsupportedBackendOperation(f"{type(self).__name__} backends cannot be reset")


def absolute_size(value: MeasureOrNumber, label: str) -> float:
    """Millimetre value of an image dimension, which must be absolute and positive."""

    measure = size_measure(value)
    if not isinstance(measure, Measure) or not measure.is_absolute:
        raise ValueError(f"{label} must be specified in absolute units, got `{measure}`")
    if not math.isfinite(measure.abs) or measure.abs <= 0:
        raise ValueError(f"{label} must be positive, got `{measure}`")
    return measure.abs


def split_subpaths(points: Sequence[XY]) -> list[list[XY]]:
    """Break a point run at non-finite coordinates, dropping runs shorter than two points."""

    runs: list[list[XY]] = []
    current: list[XY] = []
    for x, y in points:
        if math.isfinite(x) and math.isfinite(y):
            current.append((x, y))
            continue
        if len(current) >= 2:
            runs.append(current)
        current = []
    if len(current) >= 2:
        runs.append(current)
    return runs


class OutputSink:
    """Where a backend writes its document.

    A path is opened and owned by the sink; a stream is borrowed and left
    open; `None` collects output in memory.
    """

    def __init__(self, target: SinkTarget, *, binary: bool) -> None:
        self.binary = binary
        self.path: Path | None = None
        self.owned = False
        self.in_memory = False
        if target is None:
            self.stream: IO = io.BytesIO() if binary else io.StringIO()
            self.in_memory = True
        elif isinstance(target, (str, os.PathLike)):
            self.path = Path(target)
            self.stream = self._open_path()
            self.owned = True
        else:
            self.stream = target

    def _open_path(self) -> IO:
        assert self.path is not None
        try:
            if self.binary:
                return self.path.open("wb")
            return self.path.open("w", encoding="utf-8")
        except OSError as exc:
            raise SinkError(f"cannot open output file {self.path}: {exc}") from exc

    def write(self, data: str | bytes) -> None:
        try:
            self.stream.write(data)
        except (OSError, ValueError) as exc:
            raise SinkError(f"failed writing to output sink: {exc}") from exc

    def flush(self) -> None:
        try:
            self.stream.flush()
        except (OSError, ValueError) as exc:
            raise SinkError(f"failed flushing output sink: {exc}") from exc

    def close(self) -> None:
        self.flush()
        if self.owned:
            self.stream.close()

    def rewind(self) -> None:
        """Prepare the sink to receive a fresh document."""

        if self.owned:
            if not self.stream.closed:
                self.stream.close()
            self.stream = self._open_path()
            return
        try:
            seekable = self.stream.seekable()
        except (AttributeError, ValueError):
            seekable = False
        if not seekable:
            raise SinkError("Backend can't be reused, since the output stream is not seekable.")
        try:
            self.stream.seek(0)
            self.stream.truncate()
        except (OSError, ValueError) as exc:
            raise SinkError(f"Backend can't be reused: {exc}") from exc

    def getvalue(self) -> str | bytes:
        if not self.in_memory:
            raise UnsupportedBackendOperation("output was not collected in memory")
        return self.stream.getvalue()  # type: ignore[attr-defined]
