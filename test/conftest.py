"""
Test configuration for pylox tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from interpreter import create_interpreter
from main import run_source


@pytest.fixture
def run_lox(capsys):
  """Run source in a fresh interpreter; returns (exit_code, stdout, stderr)"""
  def run(source, interpreter=None):
    interpreter = interpreter or create_interpreter()
    code = run_source(source, interpreter)
    captured = capsys.readouterr()
    return code, captured.out, captured.err

  return run
