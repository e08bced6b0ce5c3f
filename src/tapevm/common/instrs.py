from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple


I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1


class Opcode(Enum):
    GOL = 'gol'  # cursor - 1, saturating at 0
    GOR = 'gor'  # cursor + 1
    GET = 'get'  # R1 -> T[cursor]
    PUT = 'put'  # T[cursor] -> R1
    JMP = 'jmp'  # goto L1
    JNZ = 'jnz'  # if R1 .ne 0 goto L2
    JLZ = 'jlz'  # if R1 .lt 0 goto L2
    SAV = 'sav'  # IP -> T[cursor]
    RET = 'ret'  # T[cursor] -> IP
    INP = 'inp'  # next input byte -> T[cursor]
    OUT = 'out'  # print T[cursor] as a character
    SET = 'set'  # V1 -> T[cursor]
    ADD = 'add'  # T[cursor] +  V1 -> T[cursor]
    MUL = 'mul'  # T[cursor] *  V1 -> T[cursor]
    DIV = 'div'  # T[cursor] // V1 -> T[cursor]
    DEC = 'dec'  # acc - 1 -> acc


class Register(Enum):
    X = 'x'
    ACC = 'acc'


# Immediate or Register.X
Value = int | Register


class Span(NamedTuple):
    start: int
    end: int


@dataclass(frozen=True)
class Token:
    text: str
    span: Span


@dataclass(frozen=True)
class Instruction:
    op: Opcode
    reg: Register | None = None
    value: Value | None = None
    label: Token | None = None
    target: int | None = None  # Set by the resolver

    def __str__(self) -> str:
        operands = []

        if self.reg is not None:
            operands.append(self.reg.value)

        if isinstance(self.value, Register):
            operands.append(self.value.value)
        elif self.value is not None:
            operands.append(str(self.value))

        if self.label is not None:
            operands.append(self.label.text)

        return ' '.join([self.op.value] + operands)


JUMPS = frozenset([Opcode.JMP, Opcode.JNZ, Opcode.JLZ])

Program = tuple[Instruction, ...]
LabelTable = dict[str, int]


def wrap64(value: int) -> int:
    ''' Two's complement wrap into the signed 64-bit range '''
    value &= (1 << 64) - 1

    if value > I64_MAX:
        value -= 1 << 64

    return value
