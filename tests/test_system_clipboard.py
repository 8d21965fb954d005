import subprocess

import pytest
import system_clipboard
from system_clipboard import ClipboardError


def fake_run(returncode=0, stdout=b'', stderr=b''):
    calls = []

    def run(cmd, input=None, **kwargs):
        calls.append((cmd, input))
        return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)

    return run, calls


def test_get_clipboard(monkeypatch):
    run, calls = fake_run(stdout='x^2'.encode('utf-8'))
    monkeypatch.setattr(system_clipboard, '_read_command', lambda: ['pbpaste'])
    monkeypatch.setattr(subprocess, 'run', run)
    assert system_clipboard.get_clipboard() == 'x^2'
    assert calls == [(['pbpaste'], None)]


def test_set_clipboard_sends_utf8(monkeypatch):
    run, calls = fake_run()
    monkeypatch.setattr(system_clipboard, '_write_command', lambda: ['pbcopy'])
    monkeypatch.setattr(subprocess, 'run', run)
    system_clipboard.set_clipboard('∂f')
    assert calls == [(['pbcopy'], '∂f'.encode('utf-8'))]


def test_failing_tool_raises(monkeypatch):
    run, _ = fake_run(returncode=1, stderr=b'no display')
    monkeypatch.setattr(system_clipboard, '_read_command', lambda: ['xclip'])
    monkeypatch.setattr(subprocess, 'run', run)
    with pytest.raises(ClipboardError, match='no display'):
        system_clipboard.get_clipboard()


def test_missing_tool_raises(monkeypatch):
    def run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(system_clipboard, '_read_command', lambda: ['xsel'])
    monkeypatch.setattr(subprocess, 'run', run)
    with pytest.raises(ClipboardError, match='Cannot run xsel'):
        system_clipboard.get_clipboard()
