"""
Test configuration for lang417 tests
"""

import io
import sys
from pathlib import Path

import pytest

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import create_interpreter
from parsing import create_parser


@pytest.fixture
def parser():
  """Provide a fresh parser for each test"""
  return create_parser()


@pytest.fixture
def run():
  """Run source text; returns (final value, printed output)"""
  def _run(source, sleep=None):
    output = io.StringIO()
    program = create_parser().parse_string(source)
    value = create_interpreter(output=output, sleep=sleep).evaluate(program)
    return value, output.getvalue()
  return _run


@pytest.fixture
def output_of(run):
  """Printed output of a program"""
  def _output_of(source):
    return run(source)[1]
  return _output_of
