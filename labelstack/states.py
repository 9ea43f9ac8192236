from enum import Enum, IntEnum

class LoadError(Exception):
  pass

class ValidationError(LoadError):
  pass

class DecodeError(LoadError):
  pass

class CapacityError(LoadError):
  pass

class SinkError(LoadError):
  pass

class ReadError(LoadError):
  pass

class VoxelState(IntEnum):
  UNLABELED = 0
  BACKGROUND = 1
  FOREGROUND = 2
  SEED = 255 # transient, never a final value

FIRST_COMPONENT = 3
MAX_COMPONENTS = int(VoxelState.SEED) - FIRST_COMPONENT - 1

SUPPORTED_BITS_PER_PIXEL = 8

class LoadState(Enum):
  IDLE = "idle"
  VALIDATING = "validating"
  DECODING = "decoding"
  REMAPPING = "remapping"
  LABELING = "labeling"
  UPLOADING = "uploading"
  COMPLETED = "completed"
  FAILED = "failed"
  CANCELLED = "cancelled"

  @property
  def terminal(self) -> bool:
    return self in (LoadState.COMPLETED, LoadState.FAILED, LoadState.CANCELLED)
