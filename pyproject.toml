[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lowcar"
version = "0.1.0"
description = "Simulated lowcar robot devices speaking a COBS-framed serial protocol to a device handler"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = [
    "robotics",
    "serial",
    "cobs",
    "embedded",
    "simulation",
    "pid",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
lowcar = "lowcar.runner:main"

[tool.hatch.build.targets.wheel]
packages = ["lowcar"]

[tool.pytest.ini_options]
addopts = "-ra"
