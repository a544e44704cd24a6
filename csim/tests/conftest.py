"""Test configuration for pytest.

Ensure the repository root is on sys.path so tests can import the `csim` package
without needing PYTHONPATH set externally.
"""
import os
import sys

import pytest

# Compute project root: two directories above this file (csim/tests -> csim -> project root)
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# the small csapp cache-lab trace; -s 4 -E 1 -b 4 gives hits:4 misses:5 evictions:3
YI_TRACE = """\
 L 10,1
 M 20,1
 L 22,1
 S 18,1
 L 110,1
 L 210,1
 M 12,1
"""


@pytest.fixture
def yi_trace(tmp_path):
    path = tmp_path / 'yi.trace'
    path.write_text(YI_TRACE)
    return str(path)


@pytest.fixture
def yi_lines():
    return YI_TRACE.splitlines()
