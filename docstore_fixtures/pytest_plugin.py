# SPDX-License-Identifier: MIT
# Copyright (c) 2025 docstore-fixtures contributors

"""pytest integration.

Mark a test with the indices it needs and request the ``docstore`` fixture::

    @pytest.mark.docstore_index("tests/data/library.yaml", verify_mappings=True)
    def test_library(docstore):
        assert "library" in docstore.installed_indices

Marker arguments are IndexSpecs, declarative dicts or paths to JSON/YAML
files; keyword arguments override FixtureConfig fields. Markers on the class
or module are combined with the ones on the test.
"""

from typing import Any

import pytest

from .config import FixtureConfig
from .declarative import coerce_index_specs
from .models import IndexSpec
from .orchestrator import Fixture, FixtureOrchestrator
from .registry import get_registry

MARKER = "docstore_index"


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        f"{MARKER}(*specs, **options): install the given indices in a docstore fixture "
        "(specs are IndexSpecs, declarative dicts or JSON/YAML paths; options override FixtureConfig)",
    )


def _collect_marker_arguments(node) -> tuple[list[IndexSpec], dict[str, Any]]:
    specs: list[IndexSpec] = []
    options: dict[str, Any] = {}
    # Closest markers come first; outer options must not override inner ones
    for marker in reversed(list(node.iter_markers(name=MARKER))):
        for arg in marker.args:
            specs.extend(coerce_index_specs(arg))
        options.update(marker.kwargs)
    return specs, options


@pytest.fixture
def docstore(request) -> Fixture:
    """A store fixture with the indices of the test's ``docstore_index`` markers installed."""
    specs, options = _collect_marker_arguments(request.node)
    config = FixtureConfig.from_env(**options)
    orchestrator = FixtureOrchestrator(config)
    with orchestrator.fixture_scope(specs, test_id=request.node.nodeid) as fixture:
        yield fixture


def pytest_sessionfinish(session, exitstatus):
    get_registry().shutdown()
