# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Setup configuration for docstore-fixtures package."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding="utf-8")

setup(
    name="docstore-fixtures",
    version="0.1.0",
    author="docstore-fixtures Contributors",
    description="Declarative document-store index fixtures for tests",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["docstore_fixtures", "docstore_fixtures.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Framework :: Pytest",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",  # HTTP store driver
        "jsonschema>=4.18.0",  # Declarative configuration validation
        "PyYAML>=6.0",  # YAML index declarations
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "hypothesis>=6.0.0",
            "pylint>=3.0.0",
            "mypy>=1.0.0",
        ],
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "hypothesis>=6.0.0",
        ],
    },
    entry_points={
        # Registered under the module name so an explicit pytest_plugins entry is a no-op
        "pytest11": ["docstore_fixtures.pytest_plugin = docstore_fixtures.pytest_plugin"],
    },
)
