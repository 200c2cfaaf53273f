"""Human-in-the-loop confirmation for high-risk requests.

The engine only reports that approval is needed; obtaining the answer is the
host's job. ``ConsoleApprover`` is the terminal implementation.
"""

from __future__ import annotations

import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import TextIO

from llm_governance.domain.risk import RiskLevel

_AFFIRMATIVE = frozenset({"y", "yes"})
CONFIRM_PROMPT = "[GOVERNANCE] Do you confirm you have reviewed this? [y/N] "
NON_INTERACTIVE_NOTICE = (
    "[GOVERNANCE] Non-interactive session detected. "
    "High Risk action cannot be confirmed interactively."
)


@dataclass(frozen=True)
class ApprovalRequest:
    risk_level: RiskLevel
    risk_category: str
    justification: str
    request_id: str | None = None

    def render(self) -> str:
        return (
            "High Risk Content Detected!\n\n"
            f"Risk Level: {self.risk_level.value}\n"
            f"Category: {self.risk_category}\n"
            f"Reason: {self.justification}\n\n"
            "Do you confirm you have reviewed it and want to proceed?"
        )


Approver = Callable[[ApprovalRequest], bool]


class ConsoleApprover:
    def __init__(
        self,
        *,
        input_fn: Callable[[str], str] = input,
        output: TextIO | None = None,
        error_output: TextIO | None = None,
        interactive: bool | None = None,
        non_interactive_default: bool = False,
    ) -> None:
        self._input_fn = input_fn
        self._output = output
        self._error_output = error_output
        self._interactive = interactive
        self._non_interactive_default = non_interactive_default

    def _is_interactive(self) -> bool:
        if self._interactive is not None:
            return self._interactive
        return sys.stdin.isatty()

    def __call__(self, request: ApprovalRequest) -> bool:
        if not self._is_interactive():
            err = self._error_output or sys.stderr
            print("\n" + request.render(), file=err)
            print(NON_INTERACTIVE_NOTICE, file=err)
            return self._non_interactive_default

        out = self._output or sys.stdout
        print("\n" + request.render(), file=out)
        try:
            answer = self._input_fn(CONFIRM_PROMPT)
        except EOFError:
            return False
        return answer.strip().lower() in _AFFIRMATIVE
