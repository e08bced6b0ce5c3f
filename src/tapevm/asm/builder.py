import logging as lg
from dataclasses import dataclass
from typing import Any, List, Tuple

from tapevm.common.instrs import Instruction, Opcode, Register, Span, Token, Value


@dataclass(frozen=True)
class LabelLine:
    token: Token


@dataclass(frozen=True)
class ErrorLine:
    ''' Placeholder for a line that failed to parse '''
    pass


AstLine = Instruction | LabelLine | ErrorLine

Actions = List[Tuple[Any, Any]]


class LineBuilder:
    ''' Collects grammar actions of a single source line '''
    offset: int
    op: Opcode | None
    reg: Register | None
    value: Value | None
    label: Token | None
    label_def: Token | None

    def __init__(self, offset: int):
        self.offset = offset    # Line start within the source
        self.op = None
        self.reg = None
        self.value = None
        self.label = None
        self.label_def = None

    def make_token(self, text: str, loc: int, width: int | None = None) -> Token:
        if width is None:
            width = len(text)

        start = self.offset + loc
        return Token(text, Span(start, start + width))

    # Handlers
    def issue_op(self, op: Opcode):
        self.op = op

    def on_reg(self, reg: Register):
        self.reg = reg

    def on_value(self, value: Value):
        self.value = value

    def on_label_ref(self, ref: Tuple[str, int]):
        (name, loc) = ref
        self.label = self.make_token(name, loc)

    def issue_label(self, definition: Tuple[str, int]):
        (name, loc) = definition
        # The span covers the trailing colon
        self.label_def = self.make_token(name, loc, len(name) + 1)

    def process(self, actions: Actions):
        for (func, arg) in actions:
            func(self, arg)

        return self.finish()

    def finish(self) -> AstLine:
        if self.label_def is not None:
            return LabelLine(self.label_def)

        if self.op is None:
            raise ValueError('Line produced neither an instruction nor a label')

        instr = Instruction(self.op, reg=self.reg, value=self.value, label=self.label)
        lg.debug(f'Parsed {instr} @ {self.offset}')
        return instr
