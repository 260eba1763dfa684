"""
Stackvar - Main Entry Point
Runs line-oriented stack-and-variable scripts
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

from values import show
from error_handling import StackvarError, format_error
from parsing import (
  GetVar,
  Pop,
  COMMAND_ARITY,
  create_parser,
  create_debug_parser,
  pretty_print_commands,
)
from interpreter import (
  create_interpreter,
  create_debug_interpreter,
  run_scripts_concurrently,
)


VERSION = 'Stackvar 0.1.0'


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      prog='stackvar',
      description='Stackvar - a line-oriented stack and variable language',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.sv                 # Run a script and print its result
  %(prog)s a.sv b.sv                 # Run several scripts, one result per line
  %(prog)s --parallel a.sv b.sv      # Run scripts concurrently
  %(prog)s --parse script.sv         # Parse and show the commands
  %(prog)s --debug script.sv         # Trace parsing and evaluation
  %(prog)s -i                        # Interactive mode
        """
  )

  parser.add_argument(
      'scripts',
      nargs='*',
      help='Stackvar script files to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse files and show the commands (for debugging)'
  )

  parser.add_argument(
      '--parallel',
      action='store_true',
      help='Run each script concurrently on its own evaluator'
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


# ============================================================================
# REPORTING
# ============================================================================

def read_script(script_path: str) -> str:
  with open(script_path, 'r', encoding='utf-8') as f:
    return f.read()


def try_read_script(script_path: str) -> Optional[str]:
  """Script text for an error report, or None if it cannot be read again"""
  try:
    return read_script(script_path)
  except (OSError, UnicodeDecodeError):
    return None


def report_read_error(script_path: str, e: Exception) -> None:
  """Explain why a script could not be read"""
  if isinstance(e, FileNotFoundError):
    print(f"Error: Script file '{script_path}' not found", file=sys.stderr)
    print(f"  Hint: Check the file path and make sure the file exists", file=sys.stderr)
  elif isinstance(e, PermissionError):
    print(f"Error: Permission denied reading '{script_path}'", file=sys.stderr)
  elif isinstance(e, UnicodeDecodeError):
    print(f"Error: Cannot decode file '{script_path}': {e}", file=sys.stderr)
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding", file=sys.stderr)
  else:
    print(f"Error: Cannot read '{script_path}': {e}", file=sys.stderr)


def report_script_error(e: StackvarError, source_text: Optional[str] = None) -> None:
  print(format_error(e, source_text), end='', file=sys.stderr)


# ============================================================================
# SCRIPT MODES
# ============================================================================

def parse_files(script_paths: List[str], debug: bool = False) -> int:
  """Parse scripts and show their commands"""
  parser = create_debug_parser() if debug else create_parser()

  for script_path in script_paths:
    try:
      source_text = read_script(script_path)
    except (OSError, UnicodeDecodeError) as e:
      report_read_error(script_path, e)
      return 1

    try:
      commands = parser.parse_string(source_text, script_path)
    except StackvarError as e:
      report_script_error(e, source_text)
      return 1

    print(f"{script_path}: {len(commands)} commands")
    print(pretty_print_commands(commands), end='')

  return 0


def run_script_files(script_paths: List[str], debug: bool = False) -> int:
  """Run each script on a fresh evaluator and print its result"""
  parser = create_debug_parser() if debug else create_parser()

  for script_path in script_paths:
    try:
      source_text = read_script(script_path)
    except (OSError, UnicodeDecodeError) as e:
      report_read_error(script_path, e)
      return 1

    evaluator = create_debug_interpreter() if debug else create_interpreter()
    try:
      commands = parser.parse_string(source_text, script_path)
      value = evaluator.evaluate(commands, filename=script_path)
    except StackvarError as e:
      report_script_error(e, source_text)
      return 1

    print(show(value))

  return 0


def run_script_files_parallel(script_paths: List[str], debug: bool = False) -> int:
  """Run all scripts concurrently, reporting results in argument order"""
  reported = []

  def print_result(script_path, value):
    reported.append(script_path)
    print(show(value))

  try:
    run_scripts_concurrently(script_paths, debug, on_result=print_result)
  except (OSError, UnicodeDecodeError) as e:
    report_read_error(script_paths[len(reported)], e)
    return 1
  except StackvarError as e:
    report_script_error(e, try_read_script(script_paths[len(reported)]))
    return 1

  return 0


# ============================================================================
# INTERACTIVE MODE
# ============================================================================

def setup_readline():
  """Setup readline with history and keyword completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.stackvar_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First time, no history yet
  readline.set_history_length(1000)

  completions = sorted(COMMAND_ARITY) + [":stack", ":vars", ":help", "exit"]

  def completer(text, state):
    options = [cmd for cmd in completions if cmd.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")

  import atexit
  atexit.register(readline.write_history_file, history_file)


def print_help() -> None:
  print("Commands:")
  print("  set <name> <value>   - Bind a variable")
  print("  get <name>           - Show a variable")
  print("  pushvar <name>       - Push a variable's value")
  print("  push <value>         - Push an integer or \"string\"")
  print("  pop                  - Pop and show the top of the stack")
  print("  add                  - Pop two values, push their sum")
  print()
  print("REPL commands:")
  print("  :stack               - Show the operand stack")
  print("  :vars                - Show variable bindings")
  print("  :help                - Show this help")
  print("  exit                 - Exit REPL")


def run_interactive_mode(debug: bool = False) -> None:
  """Read-eval-print loop over a single evaluator"""
  print(f"{VERSION} - Interactive Mode")
  print("Type 'exit' to quit, ':help' for commands")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()

  parser = create_debug_parser() if debug else create_parser()
  evaluator = create_debug_interpreter() if debug else create_interpreter()

  while True:
    try:
      code = input("stackvar> ")
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    stripped = code.strip()
    if stripped == "exit":
      break

    if stripped == ":help":
      print_help()
      continue

    if stripped == ":stack":
      if evaluator.stack:
        for depth, value in enumerate(reversed(evaluator.stack)):
          print(f"  {depth}: {show(value)}")
      else:
        print("  (empty stack)")
      continue

    if stripped == ":vars":
      if evaluator.vars:
        for name, value in evaluator.vars.items():
          print(f"  {name} = {show(value)}")
      else:
        print("  (no variables)")
      continue

    try:
      command = parser.parse_line(code)
      if command is None:
        continue
      result = evaluator.evaluate([command])
    except StackvarError as e:
      print(f"{e.kind}: {e.message}")
      continue

    if isinstance(command, (GetVar, Pop)):
      print(f"=> {show(result)}")


def main() -> None:
  """Main entry point for Stackvar"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args()

  if args.interactive:
    run_interactive_mode(debug=args.debug)
    return

  if not args.scripts:
    arg_parser.print_help()
    return

  if args.parse:
    status = parse_files(args.scripts, debug=args.debug)
  elif args.parallel:
    status = run_script_files_parallel(args.scripts, debug=args.debug)
  else:
    status = run_script_files(args.scripts, debug=args.debug)

  if status:
    sys.exit(status)


if __name__ == "__main__":
  main()
