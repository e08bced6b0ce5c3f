''' Human readable reports for parse and label errors '''

from typing import Iterable, List, Tuple, cast

import click

from tapevm.common.instrs import Span
from tapevm.asm.errors import LabelError, ParseError, RedefinedLabel, UnknownLabel


TOKEN_NAMES = {
    '\n': 'newline',
    ' ': 'space',
    ',': 'comma',
    '.': 'dot',
    '\'': 'single quote',
    '"': 'double quote',
    '`': 'backtick'
}

Annotation = Tuple[Span, str, str]  # span, message, color


def say_token(ch: str) -> str:
    if ch in TOKEN_NAMES:
        return TOKEN_NAMES[ch]

    escaped = ch.encode('unicode_escape').decode('ascii')
    return f"'{escaped}'"


def join_expected(names: Iterable[str]) -> str:
    expected = sorted(names)

    if len(expected) == 0:
        return 'something else'

    if len(expected) == 1:
        return expected[0]

    if len(expected) == 2:
        return f'{expected[0]} or {expected[1]}'

    return f'{", ".join(expected[:-1])}, or {expected[-1]}'


def parse_error_message(err: ParseError, color: bool = True) -> str:
    if err.reason is not None:
        return err.reason

    context = f' while parsing {err.label}' if err.label is not None else ''

    if err.found is None:
        found = 'end of input'
    else:
        found = say_token(err.found)
        found = click.style(found, fg='red') if color else found

    return f'Expected {join_expected(err.expected)}{context}, found {found}'


def locate(source: str, pos: int) -> Tuple[int, int]:
    ''' 1-based line and column of a source offset '''
    line_no = source.count('\n', 0, pos) + 1
    col = pos - (source.rfind('\n', 0, pos) + 1) + 1
    return (line_no, col)


def source_line(source: str, line_no: int) -> str:
    lines = source.split('\n')

    if line_no > len(lines):
        return ''

    return lines[line_no - 1].rstrip('\r')


def build_report(
    code: int,
    message: str,
    path: str,
    source: str,
    anchor: int,
    annotations: List[Annotation]
) -> str:
    (line_no, col) = locate(source, anchor)

    lines_used = sorted({locate(source, span.start)[0] for (span, _, _) in annotations})
    gutter = len(str(lines_used[-1]))
    pad = ' ' * gutter

    report = [
        click.style(f'error[E{code:03}]', fg='red', bold=True) + f': {message}',
        f'{pad}--> {path}:{line_no}:{col}',
        f'{pad} |'
    ]

    for current in lines_used:
        report.append(f'{current:>{gutter}} | {source_line(source, current)}')

        for (span, note, fg) in annotations:
            (span_line, span_col) = locate(source, span.start)

            if span_line != current:
                continue

            width = max(span.end - span.start, 1)
            marker = ' ' * (span_col - 1) + '^' * width
            report.append(f'{pad} | ' + click.style(f'{marker} {note}', fg=fg))

    return '\n'.join(report) + '\n'


def render_parse_error(source: str, err: ParseError, path: str) -> str:
    note = err.reason if err.reason is not None else 'unexpected token'
    annotations: List[Annotation] = [(err.span, note, 'red')]

    if err.unclosed is not None:
        annotations.append((err.unclosed, 'Unclosed delimiter', 'yellow'))

    return build_report(0, parse_error_message(err), path, source, err.span.start, annotations)


def render_label_error(source: str, err: LabelError, path: str) -> str:
    if isinstance(err, UnknownLabel):
        return build_report(
            1,
            f'unknown label `{err.token.text}`',
            path,
            source,
            err.token.span.start,
            [(err.token.span, 'this label is not defined', 'red')]
        )

    err = cast(RedefinedLabel, err)
    return build_report(
        2,
        f'multiple definitions of label `{err.label}`',
        path,
        source,
        err.second.start,
        [
            (err.first, 'first defined here', 'blue'),
            (err.second, 'later defined here', 'red')
        ]
    )
