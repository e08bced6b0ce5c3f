# type: ignore
''' Line grammar '''

import pyparsing as pp

from tapevm.common.instrs import I64_MAX, I64_MIN, Opcode, Register
from tapevm.asm.builder import LineBuilder


OVERFLOW_REASON = 'failed to parse integer: number too large to fit in target type'


class IntegerOverflow(pp.ParseFatalException):
    ''' Numeric literal outside of the signed 64-bit range '''

    def __init__(self, pstr: str, loc: int, literal: str):
        super().__init__(pstr, loc, OVERFLOW_REASON)
        self.literal = literal


def g_cmd(literal, op):
    return pp.Keyword(literal).set_parse_action(lambda _: (LineBuilder.issue_op, op))


ident = pp.Word(pp.alphas + '_', pp.alphanums + '_')
word_end = '(?![0-9A-Za-z_])'

reg_indices = {
    'x': Register.X,
    'acc': Register.ACC
}

reg_op = pp.Regex(f'(x|acc){word_end}').set_name('register')
reg_op.set_parse_action(lambda r: (LineBuilder.on_reg, reg_indices[r[0]]))


def on_value(s, loc, r):
    literal = r[0]

    if literal == 'x':
        return (LineBuilder.on_value, Register.X)

    value = int(literal)

    if value < I64_MIN or value > I64_MAX:
        raise IntegerOverflow(s, loc, literal)

    return (LineBuilder.on_value, value)


val_op = pp.Regex(f'(-?[0-9]+|x){word_end}').set_name('number or x')
val_op.set_parse_action(on_value)

label_ref = ident.copy().set_name('label')
label_ref.set_parse_action(lambda s, loc, r: (LineBuilder.on_label_ref, (r[0], loc)))

colon = pp.Literal(':').leave_whitespace().set_name("':'")
label = (ident.copy().set_name('label') + pp.Suppress(colon))
label.set_parse_action(lambda s, loc, r: (LineBuilder.issue_label, (r[0], loc)))

eol = pp.StringEnd().set_name('trailing newline')

# Operands are separated by at least one space or tab
sep = pp.Suppress(pp.White(' \t').set_name('horizontal whitespace'))

# Movement
gol_cmd = g_cmd('gol', Opcode.GOL)
gor_cmd = g_cmd('gor', Opcode.GOR)

# Register transfer
get_cmd = g_cmd('get', Opcode.GET) + sep + reg_op
put_cmd = g_cmd('put', Opcode.PUT) + sep + reg_op

# Control flow
jmp_cmd = g_cmd('jmp', Opcode.JMP) + sep + label_ref
jnz_cmd = g_cmd('jnz', Opcode.JNZ) + sep + reg_op + sep + label_ref
jlz_cmd = g_cmd('jlz', Opcode.JLZ) + sep + reg_op + sep + label_ref
sav_cmd = g_cmd('sav', Opcode.SAV)
ret_cmd = g_cmd('ret', Opcode.RET)

# I/O
inp_cmd = g_cmd('inp', Opcode.INP)
out_cmd = g_cmd('out', Opcode.OUT)

# Arithmetic
set_cmd = g_cmd('set', Opcode.SET) + sep + val_op
add_cmd = g_cmd('add', Opcode.ADD) + sep + val_op
mul_cmd = g_cmd('mul', Opcode.MUL) + sep + val_op
div_cmd = g_cmd('div', Opcode.DIV) + sep + val_op
dec_cmd = g_cmd('dec', Opcode.DEC)

asm_cmds = [
    ('gol', gol_cmd),
    ('gor', gor_cmd),
    ('get', get_cmd),
    ('put', put_cmd),
    ('jmp', jmp_cmd),
    ('jnz', jnz_cmd),
    ('jlz', jlz_cmd),
    ('sav', sav_cmd),
    ('ret', ret_cmd),
    ('inp', inp_cmd),
    ('out', out_cmd),
    ('set', set_cmd),
    ('add', add_cmd),
    ('mul', mul_cmd),
    ('div', div_cmd),
    ('dec', dec_cmd)
]


class Alternative:
    ''' One way a line may be read, tried against the whole line '''
    group: str      # Reported when nothing but the first token was expected
    context: str    # Reported as "while parsing ..."

    def __init__(self, group: str, context: str, expr: pp.ParserElement):
        self.group = group
        self.context = context
        self.expr = (expr + eol).parse_with_tabs()

    def parse(self, line: str):
        return self.expr.parse_string(line)


statements = [
    Alternative('instruction', f'{name} instruction', cmd) for (name, cmd) in asm_cmds
] + [
    Alternative('label', 'label', label)
]


def describe(element: pp.ParserElement) -> str:
    if isinstance(element, pp.Keyword):
        # The keyword itself matched but ran into an identifier character
        return 'horizontal whitespace'

    return element.name
