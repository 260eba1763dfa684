"""
Evaluation tests for Stackvar
"""

import pytest
from parsing import SetVar, GetVar, PushVar, Push, Pop, Add, parse, parse_value
from interpreter import Evaluator, evaluate, run, create_debug_interpreter
from values import NOTHING, Nothing, Int, String, INT_MAX, INT_MIN
from error_handling import (
  MismatchType,
  MissingVariable,
  EmptyStack,
  IntegerOverflow,
  StackvarError,
)


class TestCommands:
  """Semantics of each command"""

  def test_empty_program(self, evaluator):
    assert evaluator.evaluate([]) == NOTHING

  def test_set_does_not_change_output(self, evaluator):
    assert evaluator.evaluate([SetVar("x", Int(1))]) == Nothing()
    assert evaluator.vars == {"x": Int(1)}

  def test_set_overwrites(self, evaluator):
    result = evaluator.evaluate([SetVar("x", Int(1)), SetVar("x", String("b")), GetVar("x")])
    assert result == String("b")

  def test_get_leaves_stack_alone(self, evaluator):
    evaluator.evaluate([SetVar("x", Int(1)), GetVar("x")])
    assert evaluator.stack == []

  def test_pushvar_copies_current_value(self, evaluator):
    evaluator.evaluate([SetVar("x", Int(1)), PushVar("x"), SetVar("x", Int(2)), PushVar("x")])
    assert evaluator.stack == [Int(1), Int(2)]

  def test_pop_is_lifo(self, evaluator):
    result = evaluator.evaluate([Push(Int(1)), Push(Int(2)), Pop()])
    assert result == Int(2)
    assert evaluator.stack == [Int(1)]

  def test_output_is_last_get_or_pop(self, evaluator):
    result = evaluator.evaluate([
        SetVar("x", Int(10)),
        Push(Int(3)),
        Pop(),
        GetVar("x"),
        Push(Int(4)),
    ])
    assert result == Int(10)

  def test_add_pushes_without_touching_output(self, evaluator):
    result = evaluator.evaluate([Push(Int(1)), Push(Int(2)), Add()])
    assert result == NOTHING
    assert evaluator.stack == [Int(3)]


class TestAdd:
  """Operand order and type rules"""

  def test_first_pop_is_left_operand(self):
    assert run('push "a"\npush "b"\nadd\npop') == String("ba")

  def test_ints(self):
    assert run("push -4\npush 10\nadd\npop") == Int(6)

  @pytest.mark.parametrize("first, second", [
      ('1', '"a"'),
      ('"a"', '1'),
  ])
  def test_mixed_types(self, first, second):
    with pytest.raises(MismatchType):
      run(f"push {first}\npush {second}\nadd")

  def test_nothing_cannot_be_added(self, evaluator):
    with pytest.raises(MismatchType):
      evaluator.evaluate([Push(Nothing()), Push(Int(1)), Add()])

  def test_failed_add_consumes_both_operands(self, evaluator):
    with pytest.raises(MismatchType):
      evaluator.evaluate([Push(Int(7)), Push(Int(1)), Push(String("a")), Add()])
    assert evaluator.stack == [Int(7)]

  def test_add_on_empty_stack(self, evaluator):
    with pytest.raises(EmptyStack):
      evaluator.evaluate([Add()])
    assert evaluator.stack == []

  def test_add_with_one_operand_keeps_it_consumed(self, evaluator):
    with pytest.raises(EmptyStack):
      evaluator.evaluate([Push(Int(1)), Add()])
    assert evaluator.stack == []

  def test_overflow_is_an_error(self):
    with pytest.raises(IntegerOverflow):
      run(f"push {INT_MAX}\npush 1\nadd")

  def test_underflow_is_an_error(self):
    with pytest.raises(IntegerOverflow):
      run(f"push {INT_MIN}\npush -1\nadd")

  def test_sum_at_the_limit(self):
    assert run(f"push {INT_MAX - 1}\npush 1\nadd\npop") == Int(INT_MAX)


class TestErrors:
  """Fail-fast evaluation without rollback"""

  def test_missing_variable(self):
    with pytest.raises(MissingVariable) as exc_info:
      run("get y")
    assert exc_info.value == MissingVariable("y")
    assert exc_info.value.name == "y"

  def test_pushvar_missing_variable_leaves_stack(self, evaluator):
    with pytest.raises(MissingVariable):
      evaluator.evaluate([Push(Int(1)), PushVar("nope")])
    assert evaluator.stack == [Int(1)]

  def test_pop_empty_stack(self):
    with pytest.raises(EmptyStack):
      run("pop")

  def test_no_rollback(self, evaluator):
    with pytest.raises(EmptyStack):
      evaluator.evaluate([SetVar("a", Int(1)), Push(Int(2)), Pop(), Pop(), SetVar("b", Int(3))])
    assert evaluator.vars == {"a": Int(1)}
    assert evaluator.stack == []
    assert evaluator.output == Int(2)

  def test_error_records_command_line(self):
    with pytest.raises(StackvarError) as exc_info:
      run("push 1\n\npop\npop")
    assert exc_info.value.line == 4

  def test_not_a_command(self, evaluator):
    with pytest.raises(TypeError):
      evaluator.evaluate(["push 1"])


class TestReuse:
  """State survives across evaluate() calls on one evaluator"""

  def test_variables_and_stack_persist(self, evaluator):
    evaluator.evaluate(parse("set x 1\npush 2"))
    assert evaluator.evaluate(parse("pop")) == Int(2)
    assert evaluator.evaluate(parse("get x")) == Int(1)

  def test_output_resets_each_call(self, evaluator):
    evaluator.evaluate(parse("push 1\npop"))
    assert evaluator.evaluate([]) == NOTHING

  def test_fresh_evaluators_share_nothing(self):
    first = Evaluator()
    first.evaluate(parse("set x 1\npush 1"))
    second = Evaluator()
    assert second.vars == {}
    assert second.stack == []

  def test_snapshot_is_a_copy(self, evaluator):
    evaluator.evaluate(parse("set x 1\npush 1"))
    variables, stack = evaluator.snapshot()
    stack.clear()
    variables.clear()
    assert evaluator.stack == [Int(1)]
    assert evaluator.vars == {"x": Int(1)}


class TestProperties:
  """Language-level properties"""

  @pytest.mark.parametrize("i1, i2", [(0, 0), (1, 2), (-5, 3), (123456789, -987654321)])
  def test_int_sum(self, i1, i2):
    assert run(f"push {i1}\npush {i2}\nadd\npop") == Int(i2 + i1)

  @pytest.mark.parametrize("s1, s2", [("", ""), ("foo", "bar"), ("x", ""), ("héllo", "wörld")])
  def test_string_concatenation(self, s1, s2):
    assert run(f'push "{s1}"\npush "{s2}"\nadd\npop') == String(s2 + s1)

  def test_set_then_get(self):
    assert run("set x 5\nget x") == Int(5)

  def test_empty_script(self):
    assert run("") == NOTHING
    assert run("\n\n   \n") == NOTHING

  @pytest.mark.parametrize("literal", ["0", "-1", "+9", '"text"', '""', '"a"b"', str(INT_MIN)])
  def test_push_pop_returns_the_parsed_literal(self, literal):
    assert run(f"push {literal}\npop") == parse_value(literal)

  def test_evaluate_helper_uses_fresh_state(self):
    assert evaluate(parse("push 1\npop")) == Int(1)
    with pytest.raises(EmptyStack):
      evaluate(parse("pop"))


class TestDebug:
  """Tracing output"""

  def test_debug_evaluator_traces_commands(self, capsys):
    create_debug_interpreter().evaluate(parse("push 1\npop"))
    out = capsys.readouterr().out
    assert "Push(value=Int(1))" in out
    assert "stack=[Int(1)]" in out
    assert "output=Int(1)" in out

  def test_quiet_by_default(self, evaluator, capsys):
    evaluator.evaluate(parse("push 1\npop"))
    assert capsys.readouterr().out == ""
