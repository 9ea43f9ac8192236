"""Loads 3D label mask stacks and labels their connected components.

A label mask stack is a multi-page 8-bit image where every
pixel carries a raw mask code: 0 for background, 1 for
foreground and 2 for unlabeled voxels.

Loading remaps the raw codes into voxel states
(unlabeled=0, background=1, foreground=2) and then finds
the 26-connected components of the foreground, giving each
blob its own id starting at 3. Ids are assigned in raster
order (z, then y, then x) of each blob's first voxel, so
the numbering is reproducible. Because the volume stays
8-bit and 255 is reserved as a seed marker, at most 251
components can be represented. Larger counts fail the load
rather than silently wrapping.

The load itself is an asyncio coroutine that reports
progress per frame and can be cancelled between frames.
The labeled volume is streamed into a staged VolumeSink
(load_begin, copy_batch, load_end).
"""
from .states import (
  VoxelState, LoadState,
  LoadError, ValidationError, DecodeError,
  CapacityError, SinkError, ReadError,
  FIRST_COMPONENT, MAX_COMPONENTS,
)
from .remap import LabelRemapper, remap_labels
from .ccl import ComponentLabeler, connected_components
from .frames import Frame, FrameSource, TiffFrameSource
from .sinks import BatchInfo, VolumeSink, ArrayVolumeSink
from .pipeline import LabelLoader, LoadSession, LoadResult, VolumeLoader
from .util import load, save
