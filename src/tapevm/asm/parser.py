import logging as lg
from dataclasses import dataclass, field
from typing import List

import pyparsing as pp

import tapevm.asm.grammar as grammar
from tapevm.asm.builder import AstLine, ErrorLine, LineBuilder
from tapevm.asm.errors import ParseError
from tapevm.common.instrs import Span


@dataclass
class ParseResult:
    lines: List[AstLine] | None     # None when no AST could be produced
    errors: List[ParseError] = field(default_factory=list)


def merge_failures(
    text: str,
    offset: int,
    terminated: bool,
    failures: List[tuple[grammar.Alternative, pp.ParseException]]
) -> ParseError:
    start = len(text) - len(text.lstrip())
    furthest = max(exc.loc for (_, exc) in failures)
    expected = set()
    context = None

    for (alternative, exc) in failures:
        if exc.loc != furthest:
            continue

        if exc.loc == start:
            expected.add(alternative.group)
        else:
            expected.add(grammar.describe(exc.parser_element))

            if context is None:
                context = alternative.context

    if furthest < len(text):
        found = text[furthest]
    elif terminated:
        found = '\n'
    else:
        found = None

    pos = offset + furthest
    span = Span(pos, pos + 1) if found is not None else Span(pos, pos)
    return ParseError(span, frozenset(expected), found, label=context)


def parse_line(text: str, offset: int, terminated: bool) -> AstLine | ParseError:
    failures = []

    for alternative in grammar.statements:
        try:
            actions = alternative.parse(text)

        except grammar.IntegerOverflow as e:
            pos = offset + e.loc
            return ParseError(
                Span(pos, pos + len(e.literal)),
                frozenset(),
                e.literal,
                reason=e.msg
            )

        except pp.ParseException as e:
            failures.append((alternative, e))
            continue

        return LineBuilder(offset).process(list(actions))

    return merge_failures(text, offset, terminated, failures)


def parse_source(source: str) -> ParseResult:
    ''' Parses every line, replacing the malformed ones with ErrorLine '''
    result = ParseResult([])
    offset = 0

    for text in source.split('\n'):
        line_offset = offset
        offset += len(text) + 1
        terminated = offset <= len(source)

        if text.strip() == '':
            continue

        if not terminated:
            lg.debug(f'Missing newline after the last line @ {len(source)}')
            end = Span(len(source), len(source))
            result.errors.append(ParseError(end, frozenset(['trailing newline']), None))
            result.lines = None
            return result

        line = parse_line(text, line_offset, terminated)

        if isinstance(line, ParseError):
            lg.debug(f'Recovering from a parse error @ {line.span.start}')
            result.errors.append(line)
            line = ErrorLine()

        result.lines.append(line)

    return result
