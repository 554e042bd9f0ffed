[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "clxsim"
version = "0.1.0"
description = "Kinematics, polarization and event bookkeeping for Coulomb-excitation simulations with S3 and SeGA detectors"
requires-python = ">=3.10"
keywords = ["coulomb excitation", "nuclear physics", "kinematics", "polarization", "gamma-ray", "simulation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["clxsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
