[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fractaltags"
version = "0.1.0"
description = "Fractal fiducial marker sets, marker labelling, kd-tree search and planar pose estimation"
requires-python = ">=3.10"
keywords = ["fiducial", "fractal marker", "kd-tree", "pose estimation", "homography", "ippe"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Recognition",
]
dependencies = [
    "numpy",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
    "numpy",
]

[tool.hatch.build.targets.wheel]
packages = ["fractaltags"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
