import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import pytest

from building_factories import building
from common.rules_engine.config import RulesConfig
from common.rules_engine.context import RuleContext
from common.rules_engine.dataset import DatasetIndex
from common.rules_engine.models import Building


@pytest.fixture
def make_building():
    return building


@pytest.fixture
def make_ctx():
    def _make(
        building: Building,
        *,
        rules: dict | None = None,
        geocoder=None,
        dataset: DatasetIndex | None = None,
    ) -> RuleContext:
        return RuleContext(
            building=building,
            rules_config=RulesConfig(rules=rules or {}),
            geocoder=geocoder,
            dataset=dataset,
        )

    return _make
