"""
Command line tests for pylox
Tests script running, --parse, --analyze, exit codes and the interactive loop
"""

import pytest
import main
from error_handling import (
  EXIT_OK, EXIT_USAGE, EXIT_STATIC_ERROR, EXIT_NO_INPUT, EXIT_RUNTIME_ERROR,
)


@pytest.fixture
def script(tmp_path):
  """Write source to a temporary .lox file and return its path"""
  def write(source):
    path = tmp_path / "script.lox"
    path.write_text(source, encoding="utf-8")
    return str(path)

  return write


def exit_code(argv):
  with pytest.raises(SystemExit) as excinfo:
    main.main(argv)
  return excinfo.value.code


class TestScriptRunner:
  """Test running script files"""

  def test_runs_script(self, script, capsys):
    path = script("var greeting = 'hello'; print(greeting);")
    assert exit_code([path]) == EXIT_OK
    assert capsys.readouterr().out == "hello\n"

  def test_static_error_exit_code(self, script, capsys):
    path = script("var a = ;")
    assert exit_code([path]) == EXIT_STATIC_ERROR
    err = capsys.readouterr().err
    assert "[line 1] Error at ';': Expect expression." in err
    assert ">   1: var a = ;" in err

  def test_runtime_error_exit_code(self, script, capsys):
    path = script("print(1);\nprint(-nil);")
    assert exit_code([path]) == EXIT_RUNTIME_ERROR
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert "[line 2] Error at '-'" in captured.err

  def test_missing_file(self, tmp_path, capsys):
    assert exit_code([str(tmp_path / "absent.lox")]) == EXIT_NO_INPUT
    assert "not found" in capsys.readouterr().err

  def test_debug_traces_on_stderr(self, script, capsys):
    path = script("{ var a = 1; print(a); }")
    assert exit_code(["--debug", path]) == EXIT_OK
    captured = capsys.readouterr()
    assert captured.out == "1\n"
    assert "[exec] Block" in captured.err
    assert "'a' resolved at depth 0" in captured.err


class TestInspection:
  """Test --parse and --analyze"""

  def test_parse_prints_ast(self, script, capsys):
    path = script("var x = 1 + 2;")
    assert exit_code(["--parse", path]) == EXIT_OK
    out = capsys.readouterr().out
    assert "Parsed 1 top-level statements:" in out
    assert "(var x (+ 1 2))" in out

  def test_parse_does_not_execute(self, script, capsys):
    path = script("print(1);")
    assert exit_code(["--parse", path]) == EXIT_OK
    assert "1" not in capsys.readouterr().out.splitlines()

  def test_analyze_prints_hop_counts(self, script, capsys):
    path = script("fun f(a) {\n  return a;\n}")
    assert exit_code(["--analyze", path]) == EXIT_OK
    out = capsys.readouterr().out
    assert "Resolved 1 local references:" in out
    assert "[line 2] a -> 0" in out

  def test_analyze_reports_static_errors(self, script, capsys):
    path = script("return 1;")
    assert exit_code(["--analyze", path]) == EXIT_STATIC_ERROR
    assert "Can't return from top-level code." in capsys.readouterr().err

  def test_inspection_needs_a_script(self, capsys):
    assert exit_code(["--parse"]) == EXIT_USAGE

  def test_unknown_option_is_a_usage_error(self, capsys):
    assert exit_code(["--bogus"]) == EXIT_USAGE


class TestInteractiveMode:
  """Test the read-eval-print loop with scripted input"""

  @pytest.fixture
  def feed(self, monkeypatch):
    """Replace input() with a fixed sequence of lines, then EOF"""
    monkeypatch.setattr(main, "READLINE_AVAILABLE", False)

    def install(*entries):
      pending = list(entries)

      def fake_input(prompt=""):
        if not pending:
          raise EOFError
        return pending.pop(0)

      monkeypatch.setattr("builtins.input", fake_input)

    return install

  def test_state_persists_between_lines(self, feed, capsys):
    feed("var a = 40;", "fun add(x) { return a + x; }", "print(add(2));")
    assert main.run_interactive_mode() == EXIT_OK
    assert "42\n" in capsys.readouterr().out

  def test_errors_do_not_end_the_session(self, feed, capsys):
    feed("var kept = 1;", "kept();", "var = ;", "print(kept);")
    assert main.run_interactive_mode() == EXIT_OK
    captured = capsys.readouterr()
    assert "Can only call functions and classes." in captured.err
    assert "Expect variable name." in captured.err
    assert "1\n" in captured.out

  def test_env_command_lists_user_globals(self, feed, capsys):
    feed("var answer = 42;", ":env")
    main.run_interactive_mode()
    out = capsys.readouterr().out
    assert "  answer = 42" in out
    assert "clock" not in out

  def test_parse_command(self, feed, capsys):
    feed(":parse print(1 + 2);")
    main.run_interactive_mode()
    assert "(expr (call print (+ 1 2)))" in capsys.readouterr().out

  def test_quit_command(self, feed, capsys):
    feed(":quit", "print('never');")
    assert main.run_interactive_mode() == EXIT_OK
    assert "never" not in capsys.readouterr().out
