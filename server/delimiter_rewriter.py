#!/usr/bin/env python3
"""
Explicit Delimiter Rewriter
Rewrites \\( ... \\) and \\[ ... \\] pairs to dollar delimiters
"""

import re


INLINE_OPEN = '\\('
DISPLAY_OPEN = '\\['

# Inline spans stay on one line, display spans may cross line breaks
INLINE_SPAN_RE = re.compile(r'\\\(([^\r\n]*?)\\\)')
DISPLAY_SPAN_RE = re.compile(r'\\\[(.*?)\\\]', re.DOTALL)


def has_explicit_delimiters(text: str) -> bool:
    """True when an inline or display open marker occurs anywhere in text"""
    return INLINE_OPEN in text or DISPLAY_OPEN in text


class DelimiterRewriter:
    def __init__(self):
        pass

    def process(self, text: str) -> str:
        """
        Rewrite explicit math delimiters
        Unmatched open markers are left as they are
        """
        # \(a\) -> $a$
        text = INLINE_SPAN_RE.sub(
            lambda match: f'${match.group(1).strip()}$',
            text
        )

        # \[a\] -> blank line, $$, a, $$, blank line
        text = DISPLAY_SPAN_RE.sub(
            lambda match: f'\n$$\n{match.group(1).strip()}\n$$\n',
            text
        )

        return text


def rewrite_explicit_delimiters(text: str) -> str:
    return DelimiterRewriter().process(text)
