"""
pylox - Main Entry Point
Runs Lox scripts, inspects their syntax and bindings, or starts an interactive session
"""

import sys
import argparse
from typing import List, Optional
import os

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from parsing import LoxParser, create_parser, create_debug_parser
from semantics import create_analyzer, create_debug_analyzer
from interpreter import (
  Interpreter, create_interpreter, create_debug_interpreter, run_on_deep_stack,
)
from scanning import KEYWORDS
from syntax import Assign, Expr, SelfExpr, Super, Variable, pretty_print_ast
from stdlib import NATIVES, stringify
from error_handling import (
  EXIT_OK, EXIT_USAGE, EXIT_STATIC_ERROR, EXIT_NO_INPUT, EXIT_RUNTIME_ERROR,
  LoxRuntimeError, LoxStaticError, report, report_all,
)


VERSION = "pylox 0.1.0"
PROMPT = ">> "
HISTORY_FILE = "~/.lox_history"


class LoxArgumentParser(argparse.ArgumentParser):
  """ArgumentParser that reports usage errors with the sysexits usage code"""

  def error(self, message: str) -> None:
    self.print_usage(sys.stderr)
    self.exit(EXIT_USAGE, f"{self.prog}: error: {message}\n")


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = LoxArgumentParser(
      prog='lox',
      description='pylox - a tree-walking interpreter for a Lox-family language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.lox             # Run a Lox script
  %(prog)s -i                     # Interactive mode
  %(prog)s --parse script.lox     # Parse and show the AST
  %(prog)s --analyze script.lox   # Parse, resolve and show variable bindings
  %(prog)s --debug script.lox     # Run with debug tracing on stderr
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Lox script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show the AST'
  )

  parser.add_argument(
      '--analyze',
      action='store_true',
      help='Parse and resolve file, show every local binding with its hop count'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_source(script_path: str) -> Optional[str]:
  """Read a script, reporting why it could not be read"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
  except PermissionError:
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
  except IsADirectoryError:
    print(f"Error: '{script_path}' is a directory", file=sys.stderr)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
    print("  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
  return None


def run_source(source: str, interpreter: Interpreter,
               parser: Optional[LoxParser] = None, debug: bool = False) -> int:
  """
  Scan, parse, resolve and execute source against interpreter.

  Returns the process exit code; diagnostics are reported on stderr. The
  stages run on a worker thread with room for deep recursion.
  """
  return run_on_deep_stack(run_pipeline, source, interpreter, parser, debug)


def run_pipeline(source: str, interpreter: Interpreter,
                 parser: Optional[LoxParser] = None, debug: bool = False) -> int:
  parser = parser or create_parser(debug)
  try:
    statements = parser.parse_string(source)
    report_all(parser.warnings, source)
    analyzer = create_debug_analyzer(interpreter) if debug else create_analyzer(interpreter)
    analyzer.resolve(statements)
  except LoxStaticError as e:
    report_all(e.errors, source)
    return EXIT_STATIC_ERROR

  try:
    interpreter.interpret(statements)
  except LoxRuntimeError as e:
    report(e, source)
    return EXIT_RUNTIME_ERROR
  return EXIT_OK


def run_script_file(script_path: str, debug: bool = False) -> int:
  """Run a Lox script file with a fresh interpreter"""
  source = read_source(script_path)
  if source is None:
    return EXIT_NO_INPUT

  interpreter = create_debug_interpreter() if debug else create_interpreter()
  parser = create_debug_parser() if debug else create_parser()
  try:
    return run_source(source, interpreter, parser, debug)
  except Exception as e:
    print(f"Unexpected error while executing '{script_path}': {e}", file=sys.stderr)
    if debug:
      import traceback
      traceback.print_exc()
    return EXIT_RUNTIME_ERROR


def parse_file(script_path: str, debug: bool = False) -> int:
  """Parse a Lox script file and show the AST"""
  source = read_source(script_path)
  if source is None:
    return EXIT_NO_INPUT

  parser = create_debug_parser() if debug else create_parser()
  try:
    statements = parser.parse_string(source)
  except LoxStaticError as e:
    report_all(e.errors, source)
    return EXIT_STATIC_ERROR

  report_all(parser.warnings, source)
  print(f"Parsed {len(statements)} top-level statements:")
  print("=" * 50)
  if statements:
    print(pretty_print_ast(statements))
  return EXIT_OK


def reference_name(expr: Expr) -> str:
  """The source name a resolved expression refers to"""
  if isinstance(expr, (Variable, Assign)):
    return expr.name.lexeme
  if isinstance(expr, (SelfExpr, Super)):
    return expr.keyword.lexeme
  return type(expr).__name__


def reference_line(expr: Expr) -> int:
  if isinstance(expr, (Variable, Assign)):
    return expr.name.line
  return expr.keyword.line


def analyze_file(script_path: str, debug: bool = False) -> int:
  """Parse and resolve a Lox script file and show every local binding"""
  source = read_source(script_path)
  if source is None:
    return EXIT_NO_INPUT

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_interpreter(debug)
  analyzer = create_debug_analyzer(interpreter) if debug else create_analyzer(interpreter)
  try:
    statements = parser.parse_string(source)
    analyzer.resolve(statements)
  except LoxStaticError as e:
    report_all(e.errors, source)
    return EXIT_STATIC_ERROR

  print(f"Resolved {len(interpreter.locals)} local references:")
  print("=" * 50)
  # Node ids follow parse order
  for expr in sorted(interpreter.locals, key=lambda e: e.node_id):
    depth = interpreter.locals[expr]
    print(f"[line {reference_line(expr)}] {reference_name(expr)} -> {depth}")
  return EXIT_OK


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

REPL_COMMANDS = [":help", ":env", ":parse", ":quit"]


def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser(HISTORY_FILE)
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run or unreadable history

  readline.set_history_length(1000)

  completions = sorted(KEYWORDS) + [native.name for native in NATIVES] + REPL_COMMANDS

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(save_history, history_file)


def save_history(history_file: str) -> None:
  try:
    readline.write_history_file(history_file)
  except OSError:
    pass  # History is a convenience, never fail the exit


def show_help() -> None:
  print("REPL Commands:")
  print("  :parse <code>     - Show the AST of a snippet")
  print("  :env              - Show user-defined globals")
  print("  :help             - Show this help")
  print("  :quit             - Exit (Ctrl-D also works)")
  print()
  print("Language features:")
  print("  var x = 5;                      - Variable declaration")
  print("  fun add(a, b) { return a + b; } - Function declaration")
  print("  class A < B { new(x) { self.x = x; } } - Class with initializer")
  print("  print(add(1, 2));               - Native print")


def show_env(interpreter: Interpreter) -> None:
  native_names = {native.name for native in NATIVES}
  user_bindings = {name: value for name, value in interpreter.globals.values.items()
                   if name not in native_names}
  print("Current environment:")
  if not user_bindings:
    print("  (no user-defined bindings)")
    return
  for name, value in user_bindings.items():
    val_str = stringify(value)
    if len(val_str) > 60:
      val_str = val_str[:57] + "..."
    print(f"  {name} = {val_str}")


def handle_command(code: str, interpreter: Interpreter, parser: LoxParser) -> bool:
  """Run a `:` command; returns False when the session should end"""
  command, _, argument = code.partition(" ")
  if command == ":quit":
    return False
  if command == ":help":
    show_help()
  elif command == ":env":
    show_env(interpreter)
  elif command == ":parse":
    try:
      statements = parser.parse_string(argument)
      print(pretty_print_ast(statements))
    except LoxStaticError as e:
      report_all(e.errors)
  else:
    print(f"Unknown command '{command}', try :help")
  return True


def run_interactive_mode(debug: bool = False) -> int:
  """Run a read-eval-print loop sharing one interpreter across lines"""
  print(f"{VERSION} - Interactive Mode")
  print("Type ':quit' to exit, ':help' for commands")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_debug_interpreter() if debug else create_interpreter()

  while True:
    try:
      code = input(PROMPT)
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      return EXIT_OK

    code = code.strip()
    if not code:
      continue

    if code.startswith(":"):
      if not handle_command(code, interpreter, parser):
        return EXIT_OK
      continue

    try:
      run_source(code, interpreter, parser, debug)
    except Exception as e:
      print(f"Unexpected error: {e}", file=sys.stderr)
      if debug:
        import traceback
        traceback.print_exc()


def main(argv: Optional[List[str]] = None) -> None:
  """Main entry point for pylox"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args(argv)

  if args.script:
    if args.parse:
      code = parse_file(args.script, debug=args.debug)
    elif args.analyze:
      code = analyze_file(args.script, debug=args.debug)
    else:
      code = run_script_file(args.script, debug=args.debug)
  elif args.parse or args.analyze:
    arg_parser.error("--parse and --analyze need a script")
  else:
    code = run_interactive_mode(debug=args.debug)

  sys.exit(code)


if __name__ == "__main__":
  main()
