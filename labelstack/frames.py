from typing import Any, List, NamedTuple, Protocol
import io

import tifffile

from .states import DecodeError

class Frame(NamedTuple):
  width: int
  height: int
  bits_per_pixel: int
  pixels: Any

class FrameSource(Protocol):
  """Decodes a container's bytes into an ordered list of frames."""
  def decode(self, binary:bytes) -> List[Frame]:
    ...

class TiffFrameSource:
  """
  Decodes a multi-page TIFF into one Frame per page.

  All pages must share the first page's width, height and
  bits per sample, and carry a single sample per pixel.
  """
  def decode(self, binary:bytes) -> List[Frame]:
    try:
      with tifffile.TiffFile(io.BytesIO(binary)) as tif:
        return self._decode_pages(tif.pages)
    except DecodeError:
      raise
    except (tifffile.TiffFileError, ValueError, OSError) as err:
      raise DecodeError(f"Unable to decode TIFF container: {err}") from err

  def _decode_pages(self, pages) -> List[Frame]:
    if len(pages) == 0:
      raise DecodeError("TIFF container holds no images.")

    first = pages[0]
    width, height = first.imagewidth, first.imagelength
    bits = first.bitspersample

    frames = []
    for i, page in enumerate(pages):
      if page.samplesperpixel != 1:
        raise DecodeError(
          f"Page {i} has {page.samplesperpixel} samples per pixel. Only single channel masks are supported."
        )
      if (page.imagewidth, page.imagelength) != (width, height):
        raise DecodeError(
          f"Page {i} is {page.imagewidth}x{page.imagelength}, "
          f"but the first page is {width}x{height}."
        )
      if page.bitspersample != bits:
        raise DecodeError(
          f"Page {i} has {page.bitspersample} bits per sample, "
          f"but the first page has {bits}."
        )
      frames.append(Frame(
        width=int(width),
        height=int(height),
        bits_per_pixel=int(page.bitspersample),
        pixels=page.asarray(),
      ))

    return frames
