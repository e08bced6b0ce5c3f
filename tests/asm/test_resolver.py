import pytest

from tapevm.common.instrs import Instruction, Opcode, Span, Token
from tapevm.asm.errors import RedefinedLabel, ResolutionError, UnknownLabel
from tapevm.asm.parser import parse_source
from tapevm.asm.resolver import resolve


def resolve_source(source: str):
    parsed = parse_source(source)
    assert parsed.lines is not None
    return resolve(parsed.lines)


def resolve_errors(source: str):
    with pytest.raises(ResolutionError) as e:
        resolve_source(source)

    return e.value.errors


def test_forward_and_backward_labels():
    (program, labels) = resolve_source('start:\njmp end\nset 1\nend:\njnz x start\n')

    assert labels == {'start': 0, 'end': 2}
    assert [instr.op for instr in program] == [Opcode.JMP, Opcode.SET, Opcode.JNZ]
    assert program[0].target == 2
    assert program[2].target == 0
    assert program[0].label == Token('end', Span(11, 14))


def test_skip_label():
    (program, labels) = resolve_source('jmp skip\nset 99\nskip:\nset 1\nout\n')

    assert labels == {'skip': 2}
    assert program[0].target == 2
    assert len(program) == 4


def test_label_at_end():
    (program, labels) = resolve_source('jmp done\ngol\ndone:\n')

    assert labels['done'] == len(program) == 2


def test_error_lines_take_no_index():
    parsed = parse_source('bad!\nhere:\ngol\njmp here\n')
    assert parsed.lines is not None

    (program, labels) = resolve(parsed.lines)

    assert labels == {'here': 0}
    assert program == (
        Instruction(Opcode.GOL),
        Instruction(Opcode.JMP, label=Token('here', Span(19, 23)), target=0)
    )


def test_redefinition():
    errors = resolve_errors('a:\na:\nout\n')

    assert errors == [RedefinedLabel('a', Span(0, 2), Span(3, 5))]


def test_redefinitions_point_at_the_first_definition():
    errors = resolve_errors('a:\na:\nout\na:\n')

    assert errors == [
        RedefinedLabel('a', Span(0, 2), Span(3, 5)),
        RedefinedLabel('a', Span(0, 2), Span(10, 12))
    ]


def test_unknown_label():
    errors = resolve_errors('jmp nowhere\n')

    assert errors == [UnknownLabel(Token('nowhere', Span(4, 11)))]


def test_unknown_label_even_if_unreachable():
    errors = resolve_errors('jmp end\njnz x nowhere\nend:\n')

    assert errors == [UnknownLabel(Token('nowhere', Span(14, 21)))]


def test_all_errors_are_collected():
    errors = resolve_errors('jmp missing\nb:\nb:\njlz acc gone\n')

    assert errors == [
        RedefinedLabel('b', Span(12, 14), Span(15, 17)),
        UnknownLabel(Token('missing', Span(4, 11))),
        UnknownLabel(Token('gone', Span(26, 30)))
    ]


def test_labels_are_case_sensitive():
    errors = resolve_errors('Loop:\njmp loop\n')

    assert errors == [UnknownLabel(Token('loop', Span(10, 14)))]
