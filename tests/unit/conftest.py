"""Shared fixtures for vendorbuild unit tests."""

from pathlib import Path
from typing import Callable, List, Optional

import pytest

from vendorbuild.build.command_runner import CommandRunner, ExitResult


class ScriptedRunner(CommandRunner):
    """CommandRunner double that records calls and replays scripted results.

    Results are matched by command prefix: the first rule whose prefix matches
    the start of the command wins. Unmatched commands succeed with no output.
    A rule may also carry a side effect, e.g. to create files a real tool
    would have produced.
    """

    def __init__(self):
        self.calls: List[dict] = []
        self._rules: List[tuple] = []

    def script(
        self,
        prefix: List[str],
        result: Optional[ExitResult] = None,
        side_effect: Optional[Callable[[List[str], Optional[Path]], None]] = None,
        raises: Optional[Exception] = None,
        first: bool = False,
    ) -> None:
        rule = (list(prefix), result, side_effect, raises)
        if first:
            self._rules.insert(0, rule)
        else:
            self._rules.append(rule)

    def run(self, args, cwd=None, env=None, input_text=None) -> ExitResult:
        cmd = [str(arg) for arg in args]
        self.calls.append({"args": cmd, "cwd": cwd, "env": env, "input_text": input_text})
        for prefix, result, side_effect, raises in self._rules:
            if cmd[: len(prefix)] == prefix:
                if raises is not None:
                    raise raises
                if side_effect is not None:
                    side_effect(cmd, cwd)
                return result or ExitResult(0)
        return ExitResult(0)

    def commands(self) -> List[List[str]]:
        return [call["args"] for call in self.calls]

    def invoked(self, *prefix: str) -> int:
        """Number of calls whose command starts with prefix."""
        return sum(1 for cmd in self.commands() if cmd[: len(prefix)] == list(prefix))


@pytest.fixture
def runner():
    """Scripted fake command runner."""
    return ScriptedRunner()
