#!/usr/bin/env python3
"""
System Clipboard Access
Uses pbpaste/pbcopy, PowerShell, or xclip/xsel depending on the platform
"""

import os
import shutil
import subprocess
import sys
from typing import List, Optional


class ClipboardError(Exception):
    """No clipboard tool is available or the tool failed"""


def _run(cmd: List[str], input_text: Optional[str] = None) -> subprocess.CompletedProcess:
    try:
        result = subprocess.run(
            cmd,
            input=input_text.encode('utf-8') if input_text is not None else None,
            stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False,
        )
    except OSError as e:
        raise ClipboardError(f"Cannot run {cmd[0]}: {e}") from e
    if result.returncode != 0:
        message = result.stderr.decode('utf-8', 'ignore').strip()
        raise ClipboardError(f"{cmd[0]} exited with {result.returncode}: {message}")
    return result


def _read_command() -> List[str]:
    if sys.platform == 'darwin':
        return ['pbpaste']
    if os.name == 'nt':
        return ['powershell', '-NoProfile', '-Command', 'Get-Clipboard']
    if shutil.which('xclip'):
        return ['xclip', '-selection', 'clipboard', '-o']
    if shutil.which('xsel'):
        return ['xsel', '--clipboard', '--output']
    raise ClipboardError("No clipboard tool found (install xclip or xsel)")


def _write_command() -> List[str]:
    if sys.platform == 'darwin':
        return ['pbcopy']
    if os.name == 'nt':
        return ['powershell', '-NoProfile', '-Command', 'Set-Clipboard -Value ([Console]::In.ReadToEnd())']
    if shutil.which('xclip'):
        return ['xclip', '-selection', 'clipboard']
    if shutil.which('xsel'):
        return ['xsel', '--clipboard', '--input']
    raise ClipboardError("No clipboard tool found (install xclip or xsel)")


def get_clipboard() -> str:
    return _run(_read_command()).stdout.decode('utf-8', 'ignore')


def set_clipboard(text: str):
    _run(_write_command(), input_text=text)
