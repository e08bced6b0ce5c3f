from dataclasses import dataclass
from typing import List

from tapevm.common.instrs import Span, Token


@dataclass(frozen=True)
class ParseError:
    span: Span
    expected: frozenset[str]
    found: str | None           # None stands for the end of input
    label: str | None = None    # What was being parsed
    unclosed: Span | None = None
    reason: str | None = None   # Custom message replacing the expectations


@dataclass(frozen=True)
class UnknownLabel:
    token: Token


@dataclass(frozen=True)
class RedefinedLabel:
    label: str
    first: Span
    second: Span


LabelError = UnknownLabel | RedefinedLabel


class ResolutionError(Exception):
    errors: List[LabelError]

    def __init__(self, errors: List[LabelError]):
        super().__init__(f'{len(errors)} label error(s)')
        self.errors = errors
