from typing import List, Tuple

import numpy as np

from .lib import NEIGHBORHOOD
from .states import CapacityError, VoxelState, FIRST_COMPONENT

class ComponentLabeler:
  """
  26-connected component labeling of the FOREGROUND voxels
  of a remapped (depth, height, width) uint8 grid.

  The grid is scanned in raster order (z, then y, then x).
  Each FOREGROUND voxel not yet absorbed seeds a flood fill
  driven by an explicit LIFO worklist. Every voxel of that
  component receives the current id, then the id advances.
  Ids start at `start` and must stay below `ceiling`, which
  is the SEED sentinel for 8-bit storage.

  The grid is relabeled in place. Only FOREGROUND voxels
  are modified.
  """
  def __init__(
    self,
    start:int = FIRST_COMPONENT,
    ceiling:int = int(VoxelState.SEED),
  ):
    if not (VoxelState.FOREGROUND < start < ceiling <= VoxelState.SEED):
      raise ValueError(
        f"Component ids must lie in ({int(VoxelState.FOREGROUND)}, {int(VoxelState.SEED)}]. "
        f"Got: start={start} ceiling={ceiling}"
      )

    self.start = int(start)
    self.ceiling = int(ceiling)
    self.next_label = self.start

  @property
  def num_components(self) -> int:
    return self.next_label - self.start

  @property
  def max_components(self) -> int:
    return self.ceiling - self.start - 1

  def label(self, grid:np.ndarray) -> int:
    """
    Label the grid in place and return the number of
    components found.

    Raises CapacityError if the grid holds more than
    max_components components. The grid is left partially
    labeled in that case.
    """
    if grid.ndim != 3:
      raise ValueError(f"Expected a (depth, height, width) grid. Got shape: {grid.shape}")
    if grid.dtype != np.uint8:
      raise TypeError(f"Only uint8 grids are supported. Got: {grid.dtype}")

    self.next_label = self.start
    sz, sy, sx = grid.shape
    foreground = int(VoxelState.FOREGROUND)

    work = grid if grid.flags.c_contiguous else np.ascontiguousarray(grid)
    flat = work.reshape(-1).data # 1D memoryview, indexes as python ints

    try:
      # flat indices of a C order volume are already in (z, y, x) raster order
      for index in np.flatnonzero(work.reshape(-1) == foreground):
        index = int(index)
        if flat[index] != foreground:
          continue # absorbed by an earlier component
        self._fill(flat, index, (sz, sy, sx))

        self.next_label += 1
        if self.next_label >= self.ceiling:
          raise CapacityError(
            f"Volume has too many connected components. "
            f"At most {self.max_components} are supported."
          )
    finally:
      if work is not grid:
        grid[...] = work

    return self.num_components

  def _fill(self, flat:memoryview, start:int, shape:Tuple[int,int,int]) -> None:
    sz, sy, sx = shape
    foreground = int(VoxelState.FOREGROUND)
    seed = int(VoxelState.SEED)
    label = self.next_label
    offsets = [ (dz * sy + dy) * sx + dx for dz, dy, dx in NEIGHBORHOOD ]

    z, rem = divmod(start, sy * sx)
    y, x = divmod(rem, sx)

    flat[start] = seed
    worklist:List[Tuple[int,int,int]] = [ (x, y, z) ]

    while worklist:
      px, py, pz = worklist.pop()
      base = (pz * sy + py) * sx + px
      flat[base] = label

      for (dz, dy, dx), offset in zip(NEIGHBORHOOD, offsets):
        zz = pz + dz
        if zz < 0 or zz >= sz:
          continue
        yy = py + dy
        if yy < 0 or yy >= sy:
          continue
        xx = px + dx
        if xx < 0 or xx >= sx:
          continue

        index = base + offset
        if flat[index] == foreground:
          flat[index] = seed
          worklist.append((xx, yy, zz))

def connected_components(grid:np.ndarray) -> int:
  """Label FOREGROUND voxels in place, returns the component count."""
  return ComponentLabeler().label(grid)
