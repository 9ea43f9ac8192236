import setuptools

setuptools.setup(
  name="labelstack",
  version="0.1.0",
  description="Connected component labeling for 3D label mask stacks.",
  packages=["labelstack", "labelstack_cli"],
  python_requires=">=3.9",
  install_requires=[
    "numpy",
    "fastremap",
    "google-crc32c",
    "tifffile",
    "click",
    "tqdm",
  ],
  extras_require={
    "test": [
      "pytest",
      "connected-components-3d",
    ],
    "ccl": [
      "connected-components-3d",
    ],
  },
  entry_points={
    "console_scripts": [
      "labelstack=labelstack_cli:main"
    ],
  },
)
