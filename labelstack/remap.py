import numpy as np
import fastremap

from .states import VoxelState

class LabelRemapper:
  """
  Converts raw mask codes into semantic voxel states.

  raw 0 -> BACKGROUND, 1 -> FOREGROUND, 2 -> UNLABELED,
  every other value is left alone. The table is a 3-cycle
  on {0,1,2}, so it must be applied exactly once per pixel.
  """
  TABLE = {
    0: int(VoxelState.BACKGROUND),
    1: int(VoxelState.FOREGROUND),
    2: int(VoxelState.UNLABELED),
  }

  @classmethod
  def lookup(kls, code:int) -> int:
    return kls.TABLE.get(int(code), int(code))

  def remap(self, plane:np.ndarray) -> np.ndarray:
    """Remap a uint8 plane in place and return it."""
    if plane.dtype != np.uint8:
      raise TypeError(f"Only uint8 planes can be remapped. Got: {plane.dtype}")

    remapped = fastremap.remap(
      plane, self.TABLE,
      preserve_missing_labels=True,
      in_place=True,
    )
    if remapped is not plane:
      plane[...] = remapped
    return plane

  def __call__(self, plane:np.ndarray) -> np.ndarray:
    return self.remap(plane)

def remap_labels(plane:np.ndarray) -> np.ndarray:
  return LabelRemapper().remap(plane)
