from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure local "src/" takes precedence over any globally-installed "tokenbound" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)


@pytest.fixture(autouse=True)
def _reset_metrics():
    from tokenbound.runtime import metrics

    metrics.reset()
    yield
    metrics.reset()


@pytest.fixture()
def world() -> SimpleNamespace:
    from tokenbound.testing.world import build_world

    return build_world()
