[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "multifinance"
version = "0.1.0"
description = "HTTP service for a multifinance company: consumers, credit limits per tenor and instalment transactions."
requires-python = ">=3.10"
keywords = ["multifinance", "credit", "limit", "instalment", "flask", "rest"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Office/Business :: Financial",
]
dependencies = [
    "flask>=2.3",
    "sqlalchemy>=2.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[project.scripts]
multifinance = "multifinance.server:main"

[tool.hatch.build.targets.wheel]
packages = ["multifinance"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
