import sys
import logging as lg
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, TextIO

import click

from tapevm.common.instrs import LabelTable, Program
from tapevm.common.settings import RunSettings
from tapevm.asm.errors import LabelError, ParseError, ResolutionError
from tapevm.asm.parser import parse_source
from tapevm.asm.resolver import resolve
import tapevm.runtime.machine as machine
import tapevm.tools.diagnostics as diag


EXIT_HALT = 0
EXIT_SYNTAX_ERROR = 1
EXIT_LABEL_ERROR = 2
EXIT_KEYBOARD = 3
EXIT_EXEC_ERROR = 100
EXIT_READ_ERROR = 101


@dataclass
class Compilation:
    parse_errors: List[ParseError] = field(default_factory=list)
    label_errors: List[LabelError] = field(default_factory=list)
    program: Program | None = None
    labels: LabelTable = field(default_factory=dict)


def compile_source(source: str) -> Compilation:
    ''' Source text to a resolved program, keeping every diagnostic '''
    parsed = parse_source(source)
    result = Compilation(parse_errors=parsed.errors)

    if parsed.lines is None:
        return result

    try:
        (result.program, result.labels) = resolve(parsed.lines)

    except ResolutionError as e:
        result.label_errors = e.errors

    return result


def execute(
    program: Program,
    labels: LabelTable,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None
):
    proc = machine.Machine(program, labels, stdin=stdin, stdout=stdout)
    proc.run()
    return proc


def report(compilation: Compilation, source: str, path: str, settings: RunSettings):
    for error in compilation.parse_errors:
        click.echo(diag.render_parse_error(source, error, path), err=True, color=settings.color)

    for label_error in compilation.label_errors:
        click.echo(diag.render_label_error(source, label_error, path), err=True, color=settings.color)


def interpret(source: str, path: str, settings: RunSettings) -> int:
    compilation = compile_source(source)
    report(compilation, source, path, settings)

    if compilation.label_errors:
        lg.info('Program not started because of label errors')
        return EXIT_LABEL_ERROR

    if compilation.program is None:
        lg.info('Program not started because no syntax tree was produced')
        return EXIT_SYNTAX_ERROR

    execute(compilation.program, compilation.labels)
    return EXIT_HALT


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.option('--color/--no-color', default=None, help='Force or disable colored diagnostics')
@click.argument('path', type=click.Path(exists=True, dir_okay=False, path_type=Path))
def run(verbose: bool, color: bool | None, path: Path):
    settings = RunSettings().update(verbose=verbose, color=color)
    lg.basicConfig(level=lg.DEBUG if settings.verbose else lg.INFO)
    lg.debug(f'Running {path}')

    try:
        source = path.read_text(encoding='utf-8')

    except (OSError, UnicodeDecodeError) as e:
        lg.error(f'failed to read input file {path}: {e}')
        sys.exit(EXIT_READ_ERROR)

    try:
        sys.exit(interpret(source, str(path), settings))

    except machine.Fault as e:
        lg.error(f'Execution halted on runtime error: {e}')
        sys.exit(EXIT_EXEC_ERROR)

    except KeyboardInterrupt:
        lg.info('Execution halted by the user')
        sys.exit(EXIT_KEYBOARD)


if __name__ == '__main__':
    run()
