"""
Error taxonomy for Stackvar parsing and evaluation
One flat family of exceptions plus helpers for rendering error reports
"""

from typing import Any, Optional, Tuple


# ============================================================================
# ERROR CLASSES
# ============================================================================

class StackvarError(Exception):
    """Base class for every parse or evaluation failure.

    Two errors are equal when they have the same kind and payload. The
    diagnostic context (line, source_line, filename) is informational and
    never takes part in comparison.
    """

    def __init__(self, message: str, payload: Optional[str] = None):
        self.message = message
        self.payload = payload
        self.line: Optional[int] = None
        self.source_line: Optional[str] = None
        self.filename: Optional[str] = None
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def key(self) -> Tuple[str, Any]:
        return (self.kind, self.payload)

    def with_context(self, line: Optional[int] = None, source_line: Optional[str] = None,
                     filename: Optional[str] = None) -> 'StackvarError':
        """Attach source location to the error, keeping anything already set"""
        if self.line is None:
            self.line = line
        if self.source_line is None:
            self.source_line = source_line
        if self.filename is None:
            self.filename = filename
        return self

    def __eq__(self, other) -> bool:
        if not isinstance(other, StackvarError):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def __repr__(self) -> str:
        if self.payload is None:
            return self.kind
        return f"{self.kind}({self.payload!r})"

    def __str__(self) -> str:
        return self.message


class MismatchNumParams(StackvarError):
    """A command has the wrong number of tokens for its keyword"""
    def __init__(self, keyword: str = "", expected: int = 0, got: int = 0):
        self.keyword = keyword
        self.expected = expected
        self.got = got
        if keyword:
            message = f"'{keyword}' takes exactly {expected} tokens, got {got}"
        else:
            message = "wrong number of parameters"
        super().__init__(message)


class MismatchType(StackvarError):
    """A literal does not parse, or add got operands it cannot combine"""
    def __init__(self, detail: str = "type mismatch"):
        self.detail = detail
        super().__init__(detail)


class UnknownCommand(StackvarError):
    """The first token of a line is not a known keyword"""
    def __init__(self, token: str):
        self.token = token
        super().__init__(f"unknown command '{token}'", token)


class MissingVariable(StackvarError):
    """A variable was read before it was ever set"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"variable '{name}' is not set", name)


class EmptyStack(StackvarError):
    """pop or add ran against an empty stack"""
    def __init__(self):
        super().__init__("pop from an empty stack")


class IntegerOverflow(StackvarError):
    """An integer sum does not fit in a signed 64-bit integer"""
    def __init__(self, lhs: int = 0, rhs: int = 0):
        self.lhs = lhs
        self.rhs = rhs
        super().__init__(f"{lhs} + {rhs} overflows a signed 64-bit integer")


# ============================================================================
# REPORTING
# ============================================================================

def get_context_lines(source_text: str, line_num: int, context_lines: int = 2) -> str:
    """Get numbered lines around the offending one, with a marker under it"""
    lines = source_text.split('\n')
    start_line = max(0, line_num - context_lines - 1)
    end_line = min(len(lines), line_num + context_lines)

    context_parts = []
    for i in range(start_line, end_line):
        line_prefix = f"{i+1:4d}: "
        context_parts.append(f"{line_prefix}{lines[i]}")
        if i == line_num - 1:
            width = max(1, len(lines[i].rstrip()))
            context_parts.append(f"{'':6}{'^' * width}")

    return '\n'.join(context_parts)


def format_error(error: StackvarError, source_text: Optional[str] = None) -> str:
    """Format an error as a multi-line report"""
    where = error.filename or "<input>"
    if error.line is not None:
        where += f", line {error.line}"

    report = f"{error.kind} in {where}:\n"
    report += f"  {error.message}\n"

    if source_text is not None and error.line is not None:
        report += get_context_lines(source_text, error.line) + "\n"
    elif error.source_line is not None:
        report += f"  Source: {error.source_line.strip()}\n"

    return report
