"""
Stackvar Interpreter
Executes parsed commands against a variable table and an operand stack
"""

from typing import Callable, Dict, List, Optional, Sequence, Tuple
import pykka

from values import Value, Int, String, NOTHING, fits_int64, show, type_name
from error_handling import (
  StackvarError,
  MismatchType,
  MissingVariable,
  EmptyStack,
  IntegerOverflow,
)
from parsing import (
  Command,
  SetVar,
  GetVar,
  PushVar,
  Push,
  Pop,
  Add,
  create_parser,
  parse,
)


# ============================================================================
# EVALUATOR
# ============================================================================

class Evaluator:
  """Holds the variables and the operand stack for one script run.

  Both survive across calls to evaluate(), so an evaluator can be reused
  (the interactive mode does this). The output slot is reset to Nothing at
  the start of every evaluate() call.
  """

  def __init__(self, debug: bool = False):
    self.debug = debug
    self.vars: Dict[str, Value] = {}
    self.stack: List[Value] = []
    self.output: Value = NOTHING

  def pop(self) -> Value:
    """Pop the top of the stack"""
    if not self.stack:
      raise EmptyStack()
    return self.stack.pop()

  def push(self, value: Value) -> None:
    self.stack.append(value)

  def lookup(self, name: str) -> Value:
    """Current value of a variable"""
    try:
      return self.vars[name]
    except KeyError:
      raise MissingVariable(name) from None

  def add(self, lhs: Value, rhs: Value) -> Value:
    """Combine two values: Int sum or String concatenation"""
    if isinstance(lhs, Int) and isinstance(rhs, Int):
      total = lhs.value + rhs.value
      if not fits_int64(total):
        raise IntegerOverflow(lhs.value, rhs.value)
      return Int(total)
    elif isinstance(lhs, String) and isinstance(rhs, String):
      return String(lhs.value + rhs.value)
    raise MismatchType(f"cannot add {type_name(lhs)} and {type_name(rhs)}")

  def execute(self, command: Command) -> None:
    """Run a single command"""
    if isinstance(command, SetVar):
      self.vars[command.name] = command.value
    elif isinstance(command, GetVar):
      self.output = self.lookup(command.name)
    elif isinstance(command, PushVar):
      self.push(self.lookup(command.name))
    elif isinstance(command, Push):
      self.push(command.value)
    elif isinstance(command, Pop):
      self.output = self.pop()
    elif isinstance(command, Add):
      lhs = self.pop()
      rhs = self.pop()
      self.push(self.add(lhs, rhs))
    else:
      raise TypeError(f"Not a Stackvar command: {command!r}")

  def evaluate(self, commands: Sequence[Command], filename: Optional[str] = None) -> Value:
    """Run commands in order and return the last output.

    The first failing command stops the run; whatever it and earlier
    commands already did to the variables and the stack is kept.
    """
    self.output = NOTHING

    for command in commands:
      try:
        self.execute(command)
      except StackvarError as e:
        raise e.with_context(line=getattr(command, 'line', None) or None, filename=filename)

      if self.debug:
        stack_str = ', '.join(show(v) for v in self.stack)
        print(f"  {command!r:<40} stack=[{stack_str}] output={show(self.output)}")

    return self.output

  def snapshot(self) -> Tuple[Dict[str, Value], List[Value]]:
    """Copies of the variable table and the stack"""
    return dict(self.vars), list(self.stack)


def evaluate(commands: Sequence[Command]) -> Value:
  """Evaluate commands on a fresh evaluator"""
  return Evaluator().evaluate(commands)


def run(text: str) -> Value:
  """Parse and evaluate script text"""
  return evaluate(parse(text))


def run_file(script_path: str, debug: bool = False) -> Value:
  """Read, parse and evaluate a script file on a fresh evaluator"""
  parser = create_parser(debug)
  commands = parser.parse_file(script_path)
  return Evaluator(debug=debug).evaluate(commands, filename=script_path)


# ============================================================================
# ACTOR SYSTEM (Using Pykka)
# ============================================================================

class ScriptActor(pykka.ThreadingActor):
  """Actor that runs scripts on its own private evaluator"""

  def __init__(self, debug: bool = False):
    super().__init__()
    self.debug = debug

  def run_file(self, script_path: str) -> Value:
    return run_file(script_path, self.debug)

  def run_text(self, text: str) -> Value:
    commands = create_parser(self.debug).parse_string(text)
    return Evaluator(debug=self.debug).evaluate(commands)


def start_actors(count: int, debug: bool = False) -> List[pykka.ActorRef]:
  return [ScriptActor.start(debug) for _ in range(count)]


def run_scripts_concurrently(script_paths: Sequence[str], debug: bool = False,
                             on_result: Optional[Callable[[str, Value], None]] = None) -> List[Value]:
  """Run each script on its own actor and collect the values in order.

  on_result, when given, is called with each path and value as soon as
  that script's turn comes. The first failure (read error or
  StackvarError), in argument order, is raised after every actor has
  been stopped.
  """
  actor_refs = start_actors(len(script_paths), debug)
  try:
    futures = [ref.proxy().run_file(path) for ref, path in zip(actor_refs, script_paths)]
    results = []
    for script_path, future in zip(script_paths, futures):
      value = future.get()
      if on_result is not None:
        on_result(script_path, value)
      results.append(value)
    return results
  finally:
    for ref in actor_refs:
      ref.stop()


def run_texts_concurrently(texts: Sequence[str], debug: bool = False) -> List[Value]:
  """Run several scripts given as text, each on its own evaluator"""
  actor_refs = start_actors(len(texts), debug)
  try:
    futures = [ref.proxy().run_text(text) for ref, text in zip(actor_refs, texts)]
    return [future.get() for future in futures]
  finally:
    for ref in actor_refs:
      ref.stop()


def stop_all_actors() -> None:
  pykka.ActorRegistry.stop_all()


# ============================================================================
# FACTORY FUNCTIONS (for main.py)
# ============================================================================

def create_interpreter(debug: bool = False) -> Evaluator:
  """Create an evaluator"""
  return Evaluator(debug=debug)


def create_debug_interpreter() -> Evaluator:
  """Create an evaluator that traces every command"""
  return Evaluator(debug=True)
