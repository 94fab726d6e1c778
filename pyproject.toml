[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chaosinventory"
version = "0.1.0"
description = "Inventory of services, endpoints, network pairs and code targets for chaos experiments on a microservice system"
requires-python = ">=3.10"
dependencies = []
keywords = ["chaos-engineering", "microservices", "inventory", "clickhouse", "tracing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Testing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["chaosinventory"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
