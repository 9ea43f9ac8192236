import asyncio
import logging
import os
import sys

import click
from tqdm import tqdm

import labelstack

@click.command()
@click.option('-o', '--output', default=None, help="Destination .npy file (.gz, .xz allowed). Only valid with a single source. Defaults to SOURCE.labels.npy.")
@click.option('-i', "--info", default=False, is_flag=True, help="Print dimensions, component count and voxel counts instead of writing a file.", show_default=True)
@click.option('-p', "--progress", default=False, is_flag=True, help="Show a progress bar.", show_default=True)
@click.option('-b', "--batch-size", default=None, type=click.IntRange(min=1), help="Number of planes per sink batch. Default: all at once.")
@click.option('-v', "--verbose", default=False, is_flag=True, help="Log pipeline state transitions.", show_default=True)
@click.argument("source", nargs=-1)
def main(output, info, progress, batch_size, verbose, source):
	"""
	Label the connected components of 8-bit TIFF label mask stacks.

	Raw codes 0, 1, 2 are read as background, foreground and
	unlabeled. Each 26-connected foreground blob receives its
	own id starting at 3, at most 251 per volume.
	"""
	if verbose:
		logging.basicConfig(
			level=logging.DEBUG,
			format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
		)

	for i in range(len(source)):
		if source[i] == "-":
			source = source[:i] + tuple(line.strip() for line in sys.stdin.readlines()) + source[i+1:]

	if output is not None and len(source) > 1:
		print("labelstack: --output can only be used with a single source.")
		sys.exit(1)

	failed = False
	for src in source:
		ok = label_file(src, output, info, progress, batch_size)
		failed = failed or not ok

	if failed:
		sys.exit(1)

def label_file(src, output, info, progress, batch_size) -> bool:
	if not os.path.exists(src):
		print(f"labelstack: File \"{src}\" does not exist.")
		return False

	loader = labelstack.LabelLoader(batch_size=batch_size)
	sink = labelstack.ArrayVolumeSink()

	with tqdm(disable=(not progress), desc=src, unit="frame") as pbar:
		def on_progress(index, total):
			if pbar.total != total:
				pbar.reset(total=total)
			pbar.update(index + 1 - pbar.n)

		result = asyncio.run(loader.load([ src ], sink, progress_cb=on_progress))

	if result.errors is not None:
		print(f"labelstack: {src}: {result.errors}")
		return False

	if info:
		print_info(src, sink, result)
		return True

	dest = output or default_destination(src)
	labelstack.save(sink.numpy(), dest)

	try:
		if os.stat(dest).st_size == 0:
			raise ValueError("File is zero length.")
	except (FileNotFoundError, ValueError):
		print(f"labelstack: Unable to write {dest}.")
		return False

	return True

def print_info(src, sink, result):
	sx, sy, sz = sink.dims
	print(f"Filename: {src}")
	print(f"dimensions: {sx}x{sy}x{sz}")
	print(f"components: {result.component_count}")
	for label, ct in sink.voxel_counts().items():
		print(f"  {label}: {ct}")
	print()

def default_destination(src:str) -> str:
	for suffix in (".gz", ".xz", ".lzma"):
		src = removesuffix(src, suffix)
	base, _ = os.path.splitext(src)
	return f"{base}.labels.npy"

def removesuffix(x:str, suffix:str) -> str:
  if x.endswith(suffix):
    x = x[:-len(suffix)]
  return x
