from typing import Any, Optional, Tuple
import asyncio
import gzip
import lzma
import os

import numpy as np

from .pipeline import LabelLoader, LoadResult, ProgressCallback
from .sinks import ArrayVolumeSink
from .states import LoadError, ValidationError

def load(
  handle:Any,
  progress_cb:Optional[ProgressCallback] = None,
  **kwargs
) -> Tuple[np.ndarray, LoadResult]:
  """
  Load a label mask file into a numpy array of shape
  (depth, height, width) with its components labeled.

  Blocks until done. kwargs are forwarded to LabelLoader.
  Raises the LoadError subclass matching the failure.
  """
  loader = LabelLoader(**kwargs)
  sink = ArrayVolumeSink()
  result = asyncio.run(loader.load(handle, sink, progress_cb=progress_cb))

  if result.errors is not None:
    raise _error_for(loader, result.errors)
  if result.warnings is not None and sink.volume is None:
    raise ValidationError(result.warnings)

  return sink.numpy(), result

def _error_for(loader:LabelLoader, message:str) -> LoadError:
  # the session does not keep the exception, reclassify by failing state
  cause = loader.session.error_type if loader.session is not None else None
  if cause is None:
    return LoadError(message)
  return cause(message)

def save(labels:np.ndarray, filelike) -> None:
  """Save a labeled volume as .npy to a file object or path (.gz/.xz/.lzma compressed)."""
  if hasattr(filelike, 'write'):
    np.save(filelike, labels)
    return

  ext = os.path.splitext(os.fspath(filelike))[1]
  if ext == '.gz':
    with gzip.open(filelike, 'wb') as f:
      np.save(f, labels)
  elif ext in ('.lzma', '.xz'):
    with lzma.open(filelike, 'wb') as f:
      np.save(f, labels)
  else:
    with open(filelike, 'wb') as f:
      np.save(f, labels)
