from typing import Dict, List, Literal, NamedTuple, Optional, Protocol, Sequence, Tuple

import numpy as np

from .lib import crc32c
from .states import SinkError, SUPPORTED_BITS_PER_PIXEL

ByteOrder = Literal['little', 'big']

class BatchInfo(NamedTuple):
  """Planes [start_index, end_index) of the labeled volume."""
  start_index: int
  end_index: int
  planes: Sequence[np.ndarray]

class VolumeSink(Protocol):
  """
  Staged destination for a labeled volume.

  load_begin is called once with (width, height, depth) and
  must raise to reject the volume. copy_batch then receives
  contiguous plane ranges and load_end finalizes the upload.
  """
  def load_begin(self, dims:Tuple[int,int,int], bits_per_pixel:int, byte_order:ByteOrder) -> None:
    ...

  def copy_batch(self, batch:BatchInfo) -> None:
    ...

  def load_end(self) -> None:
    ...

class ArrayVolumeSink:
  """
  In memory VolumeSink backed by a numpy array.

  max_dims: optional (width, height, depth) limit. Volumes
    exceeding it in any dimension are rejected the way a
    texture store rejects an oversized texture.
  """
  def __init__(self, max_dims:Optional[Tuple[int,int,int]] = None):
    self.max_dims = max_dims
    self.volume:Optional[np.ndarray] = None
    self.crcs:List[Optional[int]] = []
    self.byte_order:Optional[ByteOrder] = None
    self.finished = False

  @property
  def dims(self) -> Optional[Tuple[int,int,int]]:
    if self.volume is None:
      return None
    sz, sy, sx = self.volume.shape
    return (sx, sy, sz)

  def load_begin(self, dims:Tuple[int,int,int], bits_per_pixel:int, byte_order:ByteOrder) -> None:
    if bits_per_pixel != SUPPORTED_BITS_PER_PIXEL:
      raise SinkError(f"Unsupported bits per pixel: {bits_per_pixel}")
    if byte_order not in ('little', 'big'):
      raise SinkError(f"Unsupported byte order: {byte_order}")

    sx, sy, sz = [ int(d) for d in dims ]
    if min(sx, sy, sz) <= 0:
      raise SinkError(f"Invalid volume dimensions: {dims}")
    if self.max_dims is not None:
      if any(d > limit for d, limit in zip((sx, sy, sz), self.max_dims)):
        raise SinkError(
          f"Volume dimensions {sx}x{sy}x{sz} exceed the maximum {'x'.join(map(str, self.max_dims))}."
        )

    self.volume = np.zeros((sz, sy, sx), dtype=np.uint8)
    self.crcs = [ None ] * sz
    self.byte_order = byte_order
    self.finished = False

  def copy_batch(self, batch:BatchInfo) -> None:
    if self.volume is None:
      raise SinkError("copy_batch called before load_begin.")
    if self.finished:
      raise SinkError("copy_batch called after load_end.")

    start, end = batch.start_index, batch.end_index
    if not (0 <= start <= end <= self.volume.shape[0]):
      raise SinkError(f"Batch [{start}, {end}) is out of range for depth {self.volume.shape[0]}.")
    if len(batch.planes) != end - start:
      raise SinkError(f"Batch [{start}, {end}) holds {len(batch.planes)} planes.")

    for z, plane in zip(range(start, end), batch.planes):
      self.volume[z] = plane
      self.crcs[z] = crc32c(self.volume[z].tobytes())

  def load_end(self) -> None:
    if self.volume is None:
      raise SinkError("load_end called before load_begin.")
    self.finished = True

  def numpy(self) -> np.ndarray:
    if self.volume is None:
      raise SinkError("No volume has been loaded.")
    return self.volume

  def check(self) -> List[int]:
    """Returns the z indices of planes that are missing or no longer match their CRC."""
    if self.volume is None:
      return []
    return [
      z for z, crc in enumerate(self.crcs)
      if crc is None or crc != crc32c(self.volume[z].tobytes())
    ]

  def voxel_counts(self) -> Dict[int,int]:
    uniq, cts = np.unique(self.numpy(), return_counts=True)
    return { int(u): int(ct) for u, ct in zip(uniq, cts) }
