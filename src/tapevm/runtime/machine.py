import sys
import logging as lg
from typing import Callable, TextIO, cast

from tapevm.common.instrs import (
    Instruction, LabelTable, Opcode, Program, Register, Token, Value, wrap64
)


MAX_SCALAR = 0x10FFFF
SURROGATES = range(0xD800, 0xE000)


class Halt(Exception):
    pass


class Fault(Exception):
    ''' Fatal runtime error '''
    pass


class DivisionByZero(Fault):
    pass


class BadReturn(Fault):
    pass


class InputClosed(Fault):
    pass


def is_scalar(value: int) -> bool:
    return 0 <= value <= MAX_SCALAR and value not in SURROGATES


def truncating_div(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


class Machine():
    x: int              # General purpose register
    acc: int            # Decrement register
    tape: list[int]
    cursor: int
    ip: int             # Instruction pointer
    jumped: bool        # IP was set by the current instruction
    input_buf: bytes
    input_offset: int

    def __init__(
        self,
        program: Program,
        labels: LabelTable,
        stdin: TextIO | None = None,
        stdout: TextIO | None = None
    ):
        self.program = program
        self.labels = labels
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout

        self.x = 0
        self.acc = 0
        self.tape = []          # Grows on access
        self.cursor = 0
        self.ip = 0
        self.jumped = False
        self.input_buf = b''
        self.input_offset = 0

    # - Helpers - #

    def debug_dump(self, instr: Instruction):
        lg.debug(f'IP:{self.ip} X:{self.x} ACC:{self.acc} CUR:{self.cursor} TAPE:{self.tape}')
        lg.debug(f'  {instr}')

    def grow(self):
        if self.cursor >= len(self.tape):
            self.tape.extend([0] * (self.cursor + 1 - len(self.tape)))

    def cur(self) -> int:
        self.grow()
        return self.tape[self.cursor]

    def set_cur(self, val: int):
        self.grow()
        self.tape[self.cursor] = val

    def reg(self, reg: Register) -> int:
        return self.x if reg == Register.X else self.acc

    def set_reg(self, reg: Register, val: int):
        if reg == Register.X:
            self.x = val
        else:
            self.acc = val

    def val_of(self, val: Value | None) -> int:
        if isinstance(val, Register):
            return self.x

        return cast(int, val)

    def arithm(self, instr: Instruction, op: Callable[[int, int], int]):
        self.set_cur(wrap64(op(self.cur(), self.val_of(instr.value))))

    def refill(self):
        self.stdout.flush()

        try:
            line = self.stdin.readline()
        except (OSError, ValueError) as e:
            raise InputClosed("couldn't read line of stdin") from e

        if line == '':
            raise InputClosed('standard input is closed')

        self.input_buf = line.encode('utf-8')
        self.input_offset = 0

    # - Operations - #

    def gol(self, _: Instruction):
        self.cursor = max(self.cursor - 1, 0)

    def gor(self, _: Instruction):
        self.cursor += 1

    def get(self, instr: Instruction):
        self.set_cur(self.reg(cast(Register, instr.reg)))

    def put(self, instr: Instruction):
        self.set_reg(cast(Register, instr.reg), self.cur())

    def jmp(self, instr: Instruction):
        if instr.target is not None:
            self.ip = instr.target
        else:
            self.ip = self.labels[cast(Token, instr.label).text]

        self.jumped = True

    def jnz(self, instr: Instruction):
        if self.reg(cast(Register, instr.reg)) != 0:
            self.jmp(instr)

    def jlz(self, instr: Instruction):
        if self.reg(cast(Register, instr.reg)) < 0:
            self.jmp(instr)

    def sav(self, _: Instruction):
        self.set_cur(self.ip)

    def ret(self, _: Instruction):
        addr = self.cur()

        if addr < 0:
            raise BadReturn(f'`ret` instruction failed: {addr} is not an instruction index')

        self.ip = addr
        self.jumped = True

    def inp(self, _: Instruction):
        if self.input_offset == len(self.input_buf):
            consumed = self.input_offset
            self.refill()

            if consumed != 0:
                # Every line after the first is announced by a newline
                self.set_cur(ord('\n'))
                return

        self.set_cur(self.input_buf[self.input_offset])
        self.input_offset += 1

    def out(self, _: Instruction):
        val = self.cur()

        if not is_scalar(val):
            lg.debug(f'Skipping output of {val}')
            return

        self.stdout.write(f'({val}: {chr(val)})')

    def set(self, instr: Instruction):
        self.set_cur(self.val_of(instr.value))

    def add(self, instr: Instruction):
        self.arithm(instr, lambda a, b: a + b)

    def mul(self, instr: Instruction):
        self.arithm(instr, lambda a, b: a * b)

    def div(self, instr: Instruction):
        if self.val_of(instr.value) == 0:
            raise DivisionByZero(f'division by zero at instruction {self.ip}')

        self.arithm(instr, truncating_div)

    def dec(self, _: Instruction):
        self.acc = wrap64(self.acc - 1)

    HANDLERS = {
        Opcode.GOL: gol,
        Opcode.GOR: gor,
        Opcode.GET: get,
        Opcode.PUT: put,
        Opcode.JMP: jmp,
        Opcode.JNZ: jnz,
        Opcode.JLZ: jlz,
        Opcode.SAV: sav,
        Opcode.RET: ret,
        Opcode.INP: inp,
        Opcode.OUT: out,
        Opcode.SET: set,
        Opcode.ADD: add,
        Opcode.MUL: mul,
        Opcode.DIV: div,
        Opcode.DEC: dec
    }

    # -- Implementation -- #

    def exec_next(self):
        if self.ip >= len(self.program):
            raise Halt()

        instr = self.program[self.ip]

        if lg.getLogger().isEnabledFor(lg.DEBUG):
            self.debug_dump(instr)

        handler = self.HANDLERS[instr.op]
        handler(self, instr)

        if self.jumped:
            self.jumped = False
        else:
            self.ip += 1

    def run(self):
        try:
            while True:
                self.exec_next()

        except Halt:
            lg.debug(f'Halted @ {self.ip}')

        finally:
            self.stdout.flush()
