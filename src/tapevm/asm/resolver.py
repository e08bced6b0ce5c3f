''' Label resolution pass '''

import logging as lg
from dataclasses import replace
from typing import Dict, Iterable, List

from tapevm.common.instrs import JUMPS, Instruction, LabelTable, Program, Span
from tapevm.asm.builder import AstLine, LabelLine
from tapevm.asm.errors import LabelError, RedefinedLabel, ResolutionError, UnknownLabel


def collect_labels(lines: Iterable[AstLine], errors: List[LabelError]) -> LabelTable:
    labels: LabelTable = dict()
    spans: Dict[str, Span] = dict()
    instr_idx = 0

    for line in lines:
        if isinstance(line, Instruction):
            instr_idx += 1
            continue

        if not isinstance(line, LabelLine):
            continue

        name = line.token.text

        if name in spans:
            errors.append(RedefinedLabel(name, spans[name], line.token.span))
            continue

        labels[name] = instr_idx
        spans[name] = line.token.span
        lg.debug(f'Label {name} @ {instr_idx}')

    return labels


def check_references(
    instructions: Iterable[Instruction],
    labels: LabelTable,
    errors: List[LabelError]
):
    for instr in instructions:
        if instr.op not in JUMPS or instr.label is None:
            continue

        if instr.label.text not in labels:
            lg.debug(f'Unknown label {instr.label.text} @ {instr.label.span.start}')
            errors.append(UnknownLabel(instr.label))


def link(instr: Instruction, labels: LabelTable) -> Instruction:
    if instr.op in JUMPS and instr.label is not None:
        return replace(instr, target=labels[instr.label.text])

    return instr


def resolve(lines: List[AstLine]) -> tuple[Program, LabelTable]:
    ''' Strips label and error lines, checking every jump target

    Raises ResolutionError with every problem found in both passes.
    '''
    errors: List[LabelError] = []
    labels = collect_labels(lines, errors)

    instructions = [line for line in lines if isinstance(line, Instruction)]
    check_references(instructions, labels, errors)

    if errors:
        raise ResolutionError(errors)

    program = tuple(link(instr, labels) for instr in instructions)
    return (program, labels)
