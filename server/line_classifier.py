#!/usr/bin/env python3
"""
Heuristic Line Classifier
Wraps math-looking lines of undelimited text in dollar delimiters
One line of memory: the previous line's math state
"""

import re
from enum import Enum
from typing import Callable, List, Optional, Tuple


# Substrings that hint a line holds math rather than prose
TERMS = ('\\', '_', '^', '=', '+', '/', '∂', '√')

SHORT_LINE_LIMIT = 12
DISPLAY_LINE_LIMIT = 20

# Word gaps that belong to arithmetic, not to prose
ARITHMETIC_GAPS = (' + ', ' - ', ' = ')
DENSITY_RATIO_LIMIT = 0.6

CONTINUATION_PUNCTUATION = (',', '.')

LINE_BREAK_RE = re.compile(r'(\r\n|\r|\n)')


class Classification(Enum):
    PROSE = 'prose'
    SHORT_INLINE_MATH = 'short_inline_math'
    LONG_INLINE_MATH = 'long_inline_math'
    DISPLAY_MATH = 'display_math'


class MathState(Enum):
    NO_MATH = 'no_math'
    SHORT_MATH = 'short_math'
    DISPLAY_MATH = 'display_math'


TraceHook = Callable[[int, str, Classification], None]


def has_term(line: str) -> bool:
    return any(term in line for term in TERMS)


def gap_density(text: str) -> float:
    """Spaces per character"""
    if not text:
        return 0.0
    return text.count(' ') / len(text)


def density_ratio(line: str) -> float:
    """
    Word-gap density after removing arithmetic gaps, relative to before
    Prose keeps its gaps (ratio near 1), equations lose most of them
    """
    before = gap_density(line)
    if before == 0:
        return 0.0
    stripped = line
    for gap in ARITHMETIC_GAPS:
        stripped = stripped.replace(gap, '')
    return gap_density(stripped) / before


def split_lines(text: str) -> List[Tuple[str, str]]:
    """(line, terminator) pairs; the last line has an empty terminator"""
    parts = LINE_BREAK_RE.split(text)
    return list(zip(parts[0::2], parts[1::2] + ['']))


class ClassifierPass:
    """
    A single pass over one document
    Owns the math state, so every call to classify_text starts from NO_MATH
    """

    def __init__(self, trace: Optional[TraceHook] = None):
        self.state = MathState.NO_MATH
        self.trace = trace
        self._parts: List[str] = []
        self._pending_break = ''

    def classify(self, line: str) -> Classification:
        length = len(line)

        if length == 1 and self.state is MathState.NO_MATH:
            return Classification.SHORT_INLINE_MATH

        if not has_term(line):
            return Classification.PROSE

        if length < SHORT_LINE_LIMIT:
            return Classification.SHORT_INLINE_MATH

        # Only math-dense equations get a display block; prose-like lines stay inline
        math_dense = density_ratio(line) < DENSITY_RATIO_LIMIT
        if math_dense and '=' in line and length > DISPLAY_LINE_LIMIT:
            return Classification.DISPLAY_MATH

        return Classification.LONG_INLINE_MATH

    def feed(self, index: int, line: str, terminator: str):
        classification = self.classify(line)
        if self.trace:
            self.trace(index, line, classification)

        if classification is Classification.DISPLAY_MATH:
            if self.state is MathState.DISPLAY_MATH:
                # Adjacent display lines share one block
                self._parts.append(self._pending_break + line.strip())
            else:
                self._parts.append('$$' + line.strip())
            self._pending_break = terminator
            self.state = MathState.DISPLAY_MATH
            return

        if self.state is MathState.DISPLAY_MATH:
            line = self._close_display(line)

        if classification is Classification.PROSE:
            self._parts.append(line + terminator)
            self.state = MathState.NO_MATH
            return

        if len(line) == 1:
            content = line
        else:
            content = line.strip()
        self._parts.append(f'${content}${terminator}')
        self.state = MathState.SHORT_MATH

    def _close_display(self, line: str) -> str:
        """
        Emit the closing $$ of an open display block
        Leading , or . is spliced onto the closing marker and the line
        break before it is dropped; returns what is left of the line
        """
        if line.startswith(CONTINUATION_PUNCTUATION):
            self._parts.append('$$' + line[0])
            line = line[1:]
        else:
            self._parts.append('$$' + self._pending_break)
        self._pending_break = ''
        return line

    def finish(self) -> str:
        if self.state is MathState.DISPLAY_MATH:
            self._parts.append('$$' + self._pending_break)
            self._pending_break = ''
        return ''.join(self._parts)


def classify_text(text: str, trace: Optional[TraceHook] = None) -> str:
    """
    Insert dollar delimiters around math-looking lines
    Lines are re-joined by concatenation; each branch emits its own line break
    """
    if not text:
        return ''

    lines = split_lines(text)
    classifier = ClassifierPass(trace)
    for index, (line, terminator) in enumerate(lines):
        classifier.feed(index, line, terminator)
    return classifier.finish()
