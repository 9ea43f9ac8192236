from typing import Any
import gzip
import lzma
import os

import numpy as np
import google_crc32c

COMPRESSED_EXTENSIONS = {
  '.gz': gzip.open,
  '.xz': lzma.open,
  '.lzma': lzma.open,
}

def crc32c(buffer) -> int:
  return int.from_bytes(
    google_crc32c.Checksum(buffer).digest(),
    'big'
  )

# (dz, dy, dx) in flood fill visiting order. (0,0,0) is included,
# a popped voxel never equals FOREGROUND.
NEIGHBORHOOD = tuple(
  (dz, dy, dx)
  for dz in (-1, 0, 1)
  for dy in (-1, 0, 1)
  for dx in (-1, 0, 1)
)

def as_plane(pixels, width:int, height:int) -> np.ndarray:
  """
  Interpret a frame's pixel data as a (height, width) uint8 plane.

  pixels: anything np.asarray accepts, either shaped (height, width)
    or flat with width * height elements. Wider dtypes are
    rejected rather than truncated.
  """
  if isinstance(pixels, (bytes, bytearray, memoryview)):
    plane = np.frombuffer(pixels, dtype=np.uint8)
  else:
    plane = np.asarray(pixels)

  if plane.size != width * height:
    raise ValueError(
      f"Frame holds {plane.size} pixels, expected {width}x{height}={width * height}."
    )
  if plane.dtype != np.uint8:
    raise ValueError(f"Frame pixels must be uint8. Got: {plane.dtype}")
  return plane.reshape((height, width))

def is_handle(obj:Any) -> bool:
  """True if obj is something read_handle knows how to read."""
  return (
    isinstance(obj, (str, os.PathLike, bytes, bytearray, memoryview))
    or callable(getattr(obj, 'read', None))
  )

def read_handle(handle:Any) -> bytes:
  """
  Read all bytes from a handle.

  handle: a path (str or os.PathLike, .gz/.xz/.lzma are
    decompressed), a bytes-like buffer, or a binary file
    object with a read method.
  """
  if isinstance(handle, (bytes, bytearray, memoryview)):
    return bytes(handle)
  elif callable(getattr(handle, 'read', None)):
    return handle.read()

  path = os.fspath(handle)
  opener = COMPRESSED_EXTENSIONS.get(os.path.splitext(path)[1], open)
  with opener(path, 'rb') as f:
    return f.read()
