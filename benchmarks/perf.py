import labelstack

import numpy as np

import time

def run_sample(raw, N):
  remapper = labelstack.LabelRemapper()

  for i in range(N):
    grid = raw.copy()

    s = time.time()
    for z in range(grid.shape[0]):
      remapper.remap(grid[z])
    remap_time = time.time() - s

    s = time.time()
    try:
      num_components = labelstack.connected_components(grid)
    except labelstack.CapacityError:
      num_components = -1
    label_time = time.time() - s

    mvxs = lambda t: grid.size / t / 1e6

    print(f"""
      remap        :  {mvxs(remap_time):.2f} MVx/sec
      label        :  {mvxs(label_time):.2f} MVx/sec ({num_components} components)
    """, flush=True)

N = 3
shape = (32,128,128)

print("shape:", shape)

print("SPARSE BLOBS (cubes on a lattice)")
raw = np.zeros(shape, dtype=np.uint8)
for z in range(0, shape[0], 8):
  for y in range(0, shape[1], 32):
    for x in range(0, shape[2], 32):
      raw[z:z+4,y:y+16,x:x+16] = 1
run_sample(raw, N)

print("BINARY NOISE [0,1] uint8 (pathological case)")
raw = np.random.randint(0,2, size=shape, dtype=np.uint8)
run_sample(raw, N)

print("EMPTY")
raw = np.zeros(shape, dtype=np.uint8)
run_sample(raw, 1)

print("SOLID FOREGROUND")
raw = np.ones(shape, dtype=np.uint8)
run_sample(raw, 1)
