"""
lang417 - Main Entry Point
A small dynamically typed, lexically scoped language with first-class lambdas
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from ast_nodes import Program, pretty_print_ast
from error_handling import LangError, ParseError, format_diagnostic
from interpreter import create_debug_interpreter, create_interpreter, evaluate_deep
from lexing import KEYWORDS, format_token, tokenize
from parsing import create_debug_parser, create_parser
from stdlib import BUILTINS, create_global_environment
from values import show_value
from wire import decode_program, encode_program

VERSION = "lang417 0.1.0"

logger = logging.getLogger(__name__)


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='lang417 - run .417 programs',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.417               # Run a script
  %(prog)s < script.417             # Run a program read from stdin
  parse -a script.417 | %(prog)s -a # Run a serialized program from stdin
  %(prog)s -i                       # Interactive mode
  %(prog)s --parse script.417       # Show the AST
  %(prog)s --emit-ast script.417    # Show the serialized program
  %(prog)s --debug script.417       # Run with debug output on stderr
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='.417 script file to execute (default: read stdin)'
  )

  parser.add_argument(
      '-a', '--ast',
      action='store_true',
      help='Input is the serialized program representation (JSON)'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='List the tokens and exit'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse and show the AST without running it'
  )

  parser.add_argument(
      '--emit-ast',
      action='store_true',
      help='Parse and print the serialized program without running it'
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


def configure_logging(debug: bool) -> None:
  """Diagnostics and traces go to stderr; stdout belongs to print"""
  logging.basicConfig(
      level=logging.DEBUG if debug else logging.WARNING,
      stream=sys.stderr,
      format='%(name)s: %(message)s'
  )


def report(error: LangError, source_text: Optional[str] = None) -> None:
  sys.stderr.write(format_diagnostic(error, source_text))
  sys.stderr.flush()


def read_source(script_path: Optional[str]) -> str:
  if script_path is None:
    return sys.stdin.read()
  with open(script_path, 'r', encoding='utf-8') as f:
    return f.read()


def load_program(text: str, filename: str, serialized: bool, debug: bool = False) -> Program:
  if serialized:
    return decode_program(text, filename)
  parser = create_debug_parser() if debug else create_parser()
  return parser.parse_string(text, filename)


def list_tokens(text: str, filename: str) -> None:
  for token in tokenize(text, filename):
    print(format_token(token))


def run_script_file(script_path: Optional[str], args: argparse.Namespace) -> int:
  """Load, then show or run a program; returns the exit status"""
  filename = script_path or "<stdin>"
  try:
    text = read_source(script_path)
  except FileNotFoundError:
    sys.stderr.write(f"Error: Script file '{filename}' not found\n")
    return 1
  except PermissionError:
    sys.stderr.write(f"Error: Permission denied reading '{filename}'\n")
    return 1
  except UnicodeDecodeError as e:
    sys.stderr.write(f"Error: Cannot decode file '{filename}': {e}\n")
    sys.stderr.write("  Hint: Make sure the file is a text file with UTF-8 encoding\n")
    return 1

  source_text = None if args.ast else text
  try:
    if args.tokens:
      list_tokens(text, filename)
      return 0

    program = load_program(text, filename, args.ast, args.debug)
    logger.debug("loaded %s: %d statements", filename, len(program.statements))

    if args.parse:
      print(pretty_print_ast(program))
      return 0
    if args.emit_ast:
      print(encode_program(program, indent=2))
      return 0

    interpreter = create_debug_interpreter() if args.debug else create_interpreter()
    evaluate_deep(interpreter, program)
    return 0
  except LangError as e:
    report(e, source_text)
    return 1


def setup_readline() -> None:
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.lang417_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run, or the file is unreadable
  readline.set_history_length(1000)

  completions = sorted(KEYWORDS) + sorted(BUILTINS) + [":env", ":help", ":quit"]

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def show_help() -> None:
  print("REPL Commands:")
  print("  :env              - Show user bindings")
  print("  :help             - Show this help")
  print("  :quit             - Exit REPL (or Ctrl-D)")
  print()
  print("Language features:")
  print("  let x = 5;                          - Declare")
  print("  x = add(x, 1);                      - Assign")
  print("  let sq = lambda(n) { mul(n, n); };  - Function")
  print("  if (>(x, 3)) { print(x); } else { print(0); }")
  print("  A trailing ';' may be left out; non-Unit results are echoed.")


def show_env(session_env) -> None:
  user_bindings = list(session_env.bindings.items())
  if not user_bindings:
    print("  (no user-defined bindings)")
    return
  for name, value in user_bindings:
    val_str = show_value(value)
    if len(val_str) > 60:
      val_str = val_str[:57] + "..."
    print(f"  {name} = {val_str}")


def parse_repl_input(parser, code: str) -> Program:
  """Parse one line; a missing final ';' is supplied"""
  try:
    return parser.parse_string(code, "<repl>")
  except ParseError:
    if code.rstrip().endswith((';', '}')):
      raise
    return parser.parse_string(code + ";", "<repl>")


def run_interactive_mode(debug: bool = False) -> None:
  """Read-eval-print loop; bindings persist across lines"""
  print(f"{VERSION} - Interactive Mode")
  print("Type ':quit' to exit, ':help' for commands")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  interpreter = create_debug_interpreter() if debug else create_interpreter()
  session_env = create_global_environment().child()

  while True:
    try:
      code = input("417> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    command = code.strip()
    if not command:
      continue
    if command in (":quit", ":q"):
      break
    if command == ":help":
      show_help()
      continue
    if command == ":env":
      show_env(session_env)
      continue

    try:
      result = evaluate_deep(interpreter, parse_repl_input(parser, code), session_env)
      if result.type_name != "Unit":
        print(f"=> {show_value(result)}")
    except LangError as e:
      report(e, code)


def main(argv: Optional[List[str]] = None) -> int:
  """Main entry point for lang417"""
  args = create_arg_parser().parse_args(argv)
  configure_logging(args.debug)

  if args.interactive:
    run_interactive_mode(debug=args.debug)
    return 0

  return run_script_file(args.script, args)


if __name__ == "__main__":
  sys.exit(main())
