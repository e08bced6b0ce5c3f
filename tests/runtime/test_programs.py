import pytest

import tapevm.runtime.machine as machine
from tapevm.runtime.interpreter import compile_source

from unit_utils import find_file, load_file, run_source


def simple_with_capture(name: str, capsys):
    stdin = ''
    input_file = find_file(f'testdata/programs/{name}.in')

    if input_file.exists():
        stdin = input_file.read_text()

    run_source(load_file(f'testdata/programs/{name}.tape'), stdin)

    output = load_file(f'testdata/programs/{name}.log')
    assert capsys.readouterr().out == output


def test_hello(capsys):
    simple_with_capture('hello', capsys)


def test_countdown(capsys):
    simple_with_capture('countdown', capsys)


def test_echo(capsys):
    simple_with_capture('echo', capsys)


def test_subroutine(capsys):
    simple_with_capture('subroutine', capsys)


def test_skip(capsys):
    simple_with_capture('skip', capsys)


def test_arith(capsys):
    simple_with_capture('arith', capsys)


def test_recovered(capsys):
    compilation = compile_source(load_file('testdata/programs/recovered.tape'))

    assert len(compilation.parse_errors) == 1
    simple_with_capture('recovered', capsys)


def test_label_errors_block_execution():
    compilation = compile_source('a:\na:\nout\n')

    assert compilation.program is None
    assert len(compilation.label_errors) == 1


def test_no_tree_without_final_newline():
    compilation = compile_source('set 65\nout')

    assert compilation.program is None
    assert compilation.label_errors == []
    assert len(compilation.parse_errors) == 1


def test_echo_without_input():
    with pytest.raises(machine.InputClosed):
        run_source(load_file('testdata/programs/echo.tape'))
