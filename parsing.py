"""
Stackvar Parser
Turns script text into a list of commands, one command per non-empty line
"""

from typing import List, Optional, Union
from dataclasses import dataclass, field

from pyparsing import ParseException, Regex, StringEnd, ZeroOrMore

from values import Value, Int, String, fits_int64
from error_handling import (
    StackvarError,
    MismatchNumParams,
    MismatchType,
    UnknownCommand,
)


# Only ASCII whitespace separates tokens; vertical tab and non-ASCII spaces
# are ordinary token characters.
ASCII_WHITESPACE = " \t\r\n\f"


# ============================================================================
# COMMANDS
# ============================================================================

@dataclass(frozen=True)
class SetVar:
    name: str
    value: Value
    line: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class GetVar:
    name: str
    line: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class PushVar:
    name: str
    line: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Push:
    value: Value
    line: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Pop:
    line: int = field(default=0, compare=False, repr=False)


@dataclass(frozen=True)
class Add:
    line: int = field(default=0, compare=False, repr=False)


Command = Union[SetVar, GetVar, PushVar, Push, Pop, Add]

# keyword -> number of tokens including the keyword; None means "not checked"
COMMAND_ARITY = {
    'set': 3,
    'get': 2,
    'pushvar': 2,
    'push': 2,
    'pop': None,
    'add': None,
}


def _to_int(tokens) -> int:
    """Integer value of a matched literal, leading zeros dropped"""
    text = tokens[0]
    sign = "-" if text.startswith("-") else ""
    digits = text.lstrip("+-").lstrip("0") or "0"
    return int(sign + digits)


# ============================================================================
# GRAMMAR
# ============================================================================

class StackvarGrammar:
    """Token-level grammar built with pyparsing"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self._setup_grammar()

    def _setup_grammar(self):
        # A token is any run of non-whitespace characters
        token = Regex(r"[^ \t\r\n\f]+").set_whitespace_chars(ASCII_WHITESPACE)
        self.line_tokens = ZeroOrMore(token).set_whitespace_chars(ASCII_WHITESPACE)

        # Decimal integer with optional sign, ASCII digits only, no surrounding
        # whitespace; more than 19 significant digits can never fit in 64 bits
        self.integer_literal = (
            Regex(r"[+-]?0*[0-9]{1,19}").set_parse_action(_to_int) + StringEnd()
        ).leave_whitespace()

    def tokenize_line(self, line: str) -> List[str]:
        """Split one line into tokens"""
        return list(self.line_tokens.parse_string(line))

    def parse_value(self, token: str) -> Value:
        """Parse a literal: "quoted text" is a String, anything else must be an Int"""
        if len(token) > 1 and token.startswith('"') and token.endswith('"'):
            return String(token[1:-1])

        try:
            number = self.integer_literal.parse_string(token)[0]
        except ParseException as e:
            raise MismatchType(f"'{token}' is neither a quoted string nor an integer") from e

        if not fits_int64(number):
            raise MismatchType(f"'{token}' does not fit in a signed 64-bit integer")
        return Int(number)

    def parse_line(self, line: str, line_num: int = 0) -> Optional[Command]:
        """Parse a single line; returns None for a blank line"""
        tokens = self.tokenize_line(line)
        if not tokens:
            return None

        keyword = tokens[0]
        if keyword not in COMMAND_ARITY:
            raise UnknownCommand(keyword)

        expected = COMMAND_ARITY[keyword]
        if expected is not None and len(tokens) != expected:
            raise MismatchNumParams(keyword, expected, len(tokens))

        if keyword == 'set':
            return SetVar(tokens[1], self.parse_value(tokens[2]), line=line_num)
        elif keyword == 'get':
            return GetVar(tokens[1], line=line_num)
        elif keyword == 'pushvar':
            return PushVar(tokens[1], line=line_num)
        elif keyword == 'push':
            return Push(self.parse_value(tokens[1]), line=line_num)
        elif keyword == 'pop':
            return Pop(line=line_num)
        else:
            return Add(line=line_num)

    def parse_program(self, text: str, filename: str = "<input>") -> List[Command]:
        """Parse a whole script; the first bad line aborts the parse"""
        commands = []

        for line_num, line in enumerate(text.split('\n'), 1):
            try:
                command = self.parse_line(line, line_num)
            except StackvarError as e:
                raise e.with_context(line_num, line, filename)

            if command is None:
                continue

            if self.debug:
                print(f"  {filename}:{line_num}: {command!r}")
            commands.append(command)

        return commands


# ============================================================================
# PARSER
# ============================================================================

class StackvarParser:
    """Main Stackvar parser"""

    def __init__(self, debug: bool = False):
        self.debug = debug
        self.grammar = StackvarGrammar(debug)

    def parse_file(self, filepath: str) -> List[Command]:
        """Parse a Stackvar source file.

        Read failures (missing file, permissions, bad UTF-8) propagate as
        the usual OSError / UnicodeDecodeError.
        """
        with open(filepath, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse_string(content, filepath)

    def parse_string(self, text: str, filename: str = "<input>") -> List[Command]:
        if self.debug:
            print(f"Parsing {filename}...")
        commands = self.grammar.parse_program(text, filename)
        if self.debug:
            print(f"Parsed {len(commands)} commands")
        return commands

    def parse_line(self, line: str) -> Optional[Command]:
        return self.grammar.parse_line(line)

    def parse_value(self, token: str) -> Value:
        return self.grammar.parse_value(token)


# Factory functions for creating parsers
def create_parser(debug: bool = False) -> StackvarParser:
    """Create a Stackvar parser"""
    return StackvarParser(debug=debug)


def create_debug_parser() -> StackvarParser:
    """Create a Stackvar parser with debug enabled"""
    return StackvarParser(debug=True)


_default_grammar = StackvarGrammar()


def parse(text: str) -> List[Command]:
    """Parse script text into commands"""
    return _default_grammar.parse_program(text)


def parse_value(token: str) -> Value:
    """Parse a single value token"""
    return _default_grammar.parse_value(token)


def parse_line(line: str) -> Optional[Command]:
    """Parse one line of script text"""
    return _default_grammar.parse_line(line)


def pretty_print_commands(commands: List[Command]) -> str:
    """One command per line, prefixed with its source line number"""
    return ''.join(f"{command.line:4d}: {command!r}\n" for command in commands)
