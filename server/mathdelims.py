#!/usr/bin/env python3
"""
Command line converter
Converts files in place, stdin to stdout, or the clipboard contents
"""

import argparse
import logging
import sys
from pathlib import Path

from system_clipboard import ClipboardError, get_clipboard, set_clipboard
from document_store import DocumentError, DocumentStore
from math_converter import MathConverter

logger = logging.getLogger('mathdelims.cli')


def convert_files(converter, paths, to_stdout=False) -> int:
    store = DocumentStore()
    failures = 0
    for name in paths:
        try:
            filepath = Path(name).resolve()
            if not filepath.is_file():
                raise DocumentError(f"File not found: {name}")
            content = store.read(filepath)
            converted = converter.convert(content)
            if to_stdout:
                sys.stdout.write(converted)
            else:
                store.write(filepath, converted)
                logger.info(f"Converted {filepath}")
        except DocumentError as e:
            logger.error(str(e))
            failures += 1
    return 1 if failures else 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description='Convert \\( \\) and \\[ \\] math delimiters to $ and $$')
    parser.add_argument('files', nargs='*', help='Markdown files to convert in place')
    parser.add_argument('--stdout', action='store_true', help='Print converted files instead of writing them')
    parser.add_argument('--clipboard', action='store_true', help='Convert the clipboard contents')
    parser.add_argument('--trace', action='store_true', help='Log the classification of every line')
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.trace else logging.INFO,
        format='%(levelname)s - %(message)s',
        stream=sys.stderr
    )
    converter = MathConverter(trace=args.trace)

    if args.clipboard:
        try:
            set_clipboard(converter.convert(get_clipboard()))
        except ClipboardError as e:
            logger.error(f"Clipboard unavailable: {e}")
            return 1
        return 0

    if args.files:
        return convert_files(converter, args.files, to_stdout=args.stdout)

    sys.stdout.write(converter.convert(sys.stdin.read()))
    return 0


if __name__ == '__main__':
    sys.exit(main())
