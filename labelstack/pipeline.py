"""
Loads a stack of 8-bit label masks into a volume sink.

A load runs as an asyncio coroutine that walks a small
state machine:

  VALIDATING -> DECODING -> REMAPPING -> LABELING -> UPLOADING
    -> COMPLETED | FAILED | CANCELLED

Each stage takes the LoadSession and returns the next
state. The only suspension points are the byte read and
the per-frame yield while remapping, which is also where
cancellation is observed. Labeling runs to completion
without yielding.

Every session that does not get cancelled invokes the
completion callback exactly once, with errors set on
failure. Cancelled sessions never invoke it.
"""
from typing import Any, Awaitable, Callable, Dict, List, NamedTuple, Optional, Protocol
import asyncio
import logging

import numpy as np

from .ccl import ComponentLabeler
from .frames import FrameSource, TiffFrameSource
from .lib import as_plane, is_handle, read_handle
from .remap import LabelRemapper
from .sinks import BatchInfo, ByteOrder, VolumeSink
from .states import (
  LoadError, ValidationError, DecodeError,
  SinkError, ReadError,
  LoadState, SUPPORTED_BITS_PER_PIXEL,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], Any]

class LoadResult(NamedTuple):
  done: bool
  errors: Optional[str]
  warnings: Optional[str]
  component_count: int

CompletionCallback = Callable[[LoadResult], Any]

def _safe_invoke(fn:Optional[Callable], *args) -> None:
  if fn is None:
    return
  try:
    fn(*args)
  except Exception:
    logger.exception("Callback %r raised.", fn)

class LoadSession:
  """Per-load context threaded through the pipeline stages."""
  def __init__(
    self,
    handles:List[Any],
    sink:VolumeSink,
    completion_cb:Optional[CompletionCallback] = None,
    progress_cb:Optional[ProgressCallback] = None,
  ):
    self.handles = handles
    self.sink = sink
    self.completion_cb = completion_cb
    self.progress_cb = progress_cb

    self.state = LoadState.IDLE
    self.cancelled = False
    self.done = False
    self.errors:Optional[str] = None
    self.error_type:Optional[type] = None
    self.warnings:Optional[str] = None
    self.component_count = 0

    # stage scratch, released when the session ends
    self.binary:Optional[bytes] = None
    self.frames = None
    self.grid:Optional[np.ndarray] = None

    self._notified = False

  def snapshot(self) -> LoadResult:
    return LoadResult(
      done=self.done,
      errors=self.errors,
      warnings=self.warnings,
      component_count=self.component_count,
    )

  def report_progress(self, index:int, total:int) -> None:
    _safe_invoke(self.progress_cb, index, total)

  def notify(self) -> None:
    if self._notified:
      return
    self._notified = True
    _safe_invoke(self.completion_cb, self.snapshot())

  def release(self) -> None:
    self.binary = None
    self.frames = None
    self.grid = None

class VolumeLoader(Protocol):
  """Capability shared by loaders that fill a VolumeSink."""
  session:Optional[LoadSession]

  async def load(
    self,
    handles:Any,
    sink:VolumeSink,
    completion_cb:Optional[CompletionCallback] = None,
    progress_cb:Optional[ProgressCallback] = None,
  ) -> LoadResult:
    ...

  def cancel(self) -> None:
    ...

class LabelLoader:
  """
  Loads a multi-image label mask file into a VolumeSink,
  assigning every 26-connected foreground blob its own id.

  frame_source: decodes the file bytes, TIFF by default.
  yield_interval: seconds to sleep after each remapped frame.
  byte_order: forwarded to VolumeSink.load_begin.
  batch_size: planes per copy_batch call, None for all at once.
  """
  def __init__(
    self,
    frame_source:Optional[FrameSource] = None,
    yield_interval:float = 0.005,
    byte_order:ByteOrder = 'little',
    batch_size:Optional[int] = None,
  ):
    if byte_order not in ('little', 'big'):
      raise ValueError(f"byte_order must be 'little' or 'big'. Got: {byte_order}")
    if batch_size is not None and batch_size < 1:
      raise ValueError(f"batch_size must be positive. Got: {batch_size}")
    if yield_interval < 0:
      raise ValueError(f"yield_interval must be non-negative. Got: {yield_interval}")

    self.frame_source = frame_source or TiffFrameSource()
    self.yield_interval = yield_interval
    self.byte_order = byte_order
    self.batch_size = batch_size
    self.remapper = LabelRemapper()
    self.session:Optional[LoadSession] = None

    self._stages:Dict[LoadState, Callable[[LoadSession], Awaitable[LoadState]]] = {
      LoadState.VALIDATING: self._validate,
      LoadState.DECODING: self._decode,
      LoadState.REMAPPING: self._remap,
      LoadState.LABELING: self._label,
      LoadState.UPLOADING: self._upload,
    }

  def cancel(self) -> None:
    """Request that the running load stop at its next yield point."""
    if self.session is not None and not self.session.state.terminal:
      self.session.cancelled = True

  async def load(
    self,
    handles:Any,
    sink:VolumeSink,
    completion_cb:Optional[CompletionCallback] = None,
    progress_cb:Optional[ProgressCallback] = None,
  ) -> LoadResult:
    """
    Load the first handle of handles into sink.

    handles: a list of handles (paths, bytes, or binary file
      objects). Only the first one is read. A single handle is
      treated as a list of one.
    completion_cb: invoked once with a LoadResult unless the
      load is cancelled.
    progress_cb: invoked as (index, total).

    Returns the final LoadResult.
    """
    if handles is None:
      handles = []
    elif is_handle(handles):
      handles = [ handles ]
    else:
      handles = list(handles) # the caller's list may be transient

    session = LoadSession(handles, sink, completion_cb, progress_cb)
    self.session = session

    state = LoadState.VALIDATING
    try:
      while not state.terminal:
        session.state = state
        logger.debug("%s", state.name)
        state = await self._stages[state](session)
    except LoadError as err:
      state = LoadState.FAILED
      session.errors = str(err)
      session.error_type = type(err)
      logger.error("Load failed: %s", err)
    except asyncio.CancelledError:
      session.cancelled = True
      session.state = LoadState.CANCELLED
      logger.info("Load task cancelled.")
      raise
    finally:
      session.release()

    session.state = state
    if state == LoadState.CANCELLED:
      logger.info("Load cancelled.")
      return session.snapshot()

    session.done = True
    if state == LoadState.COMPLETED:
      logger.info("Load completed with %d components.", session.component_count)
    session.notify()
    return session.snapshot()

  async def _validate(self, session:LoadSession) -> LoadState:
    if not session.handles:
      session.warnings = "No files were loaded, because the supplied file list was empty."
      logger.warning(session.warnings)
      return LoadState.COMPLETED

    if not all(is_handle(h) for h in session.handles):
      raise ValidationError("Invalid item in file list.")

    session.report_progress(0, len(session.handles))
    return LoadState.DECODING

  async def _read(self, handle:Any) -> bytes:
    try:
      return await asyncio.to_thread(read_handle, handle)
    except Exception as err:
      name = getattr(handle, 'name', handle if isinstance(handle, str) else '')
      raise ReadError(f"Error loading image {name}: {err}") from err

  async def _decode(self, session:LoadSession) -> LoadState:
    session.binary = await self._read(session.handles[0])
    if session.cancelled:
      return LoadState.CANCELLED

    try:
      frames = self.frame_source.decode(session.binary)
    except LoadError:
      raise
    except Exception as err:
      raise DecodeError(f"Unable to decode image: {err}") from err
    session.binary = None

    if not frames:
      raise DecodeError("The file contains no images.")
    if frames[0].bits_per_pixel != SUPPORTED_BITS_PER_PIXEL:
      raise DecodeError(
        f"Only {SUPPORTED_BITS_PER_PIXEL}-bit images are supported. "
        f"Got: {frames[0].bits_per_pixel}-bit"
      )

    session.frames = frames
    return LoadState.REMAPPING

  async def _remap(self, session:LoadSession) -> LoadState:
    frames = session.frames
    width, height = int(frames[0].width), int(frames[0].height)
    depth = len(frames)

    grid = np.empty((depth, height, width), dtype=np.uint8)
    session.grid = grid

    for z, frame in enumerate(frames):
      try:
        grid[z] = as_plane(frame.pixels, width, height)
      except ValueError as err:
        raise DecodeError(f"Frame {z}: {err}") from err
      self.remapper.remap(grid[z])

      session.report_progress(z, depth)
      await asyncio.sleep(self.yield_interval)
      if session.cancelled:
        return LoadState.CANCELLED

    session.frames = None
    return LoadState.LABELING

  async def _label(self, session:LoadSession) -> LoadState:
    labeler = ComponentLabeler()
    session.component_count = labeler.label(session.grid)
    return LoadState.UPLOADING

  async def _upload(self, session:LoadSession) -> LoadState:
    grid = session.grid
    session.grid = None
    grid.setflags(write=False)

    depth, height, width = grid.shape
    sink = session.sink

    try:
      sink.load_begin((width, height, depth), SUPPORTED_BITS_PER_PIXEL, self.byte_order)
    except SinkError:
      raise
    except Exception as err:
      raise SinkError(f"Volume rejected {width}x{height}x{depth}: {err}") from err

    batch_size = self.batch_size or depth
    try:
      for start in range(0, depth, batch_size):
        end = min(start + batch_size, depth)
        sink.copy_batch(BatchInfo(
          start_index=start,
          end_index=end,
          planes=[ grid[z] for z in range(start, end) ],
        ))
      sink.load_end()
    except SinkError:
      raise
    except Exception as err:
      raise SinkError(f"Upload failed: {err}") from err

    return LoadState.COMPLETED
