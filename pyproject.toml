[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mockaws"
version = "0.1.0"
description = "YAML configuration loading and in-memory queue and topic models for a local SQS/SNS mock"
requires-python = ">=3.10"
keywords = ["sqs", "sns", "mock", "testing", "local", "yaml", "configuration"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Testing :: Mocking",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["mockaws"]

[tool.pytest.ini_options]
addopts = "-ra"
