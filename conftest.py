# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""Root conftest.py so the package and its pytest plugin load without installation."""

import sys
from pathlib import Path

# Add repo root to sys.path so docstore_fixtures can be imported
_repo_root = Path(__file__).parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

pytest_plugins = ["pytester", "docstore_fixtures.pytest_plugin"]
