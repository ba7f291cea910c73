"""
User interaction used while sending tokens.

The orchestrator never talks to the terminal directly; it goes through an
``Interaction``. ``NonInteractive`` is the library default and never blocks.
"""
import sys
from dataclasses import dataclass
from typing import Protocol, TextIO, Optional

from .exceptions import MissingPassword
from .units import to_decimal


@dataclass(frozen=True)
class PromptConfig:
    """Wording of the interactive prompts."""
    confirm_message: str = "Proceed with transfer?"
    password_message: str = "Keystore password"
    delimiter: str = ": "


@dataclass(frozen=True)
class TransferSummary:
    """What is about to be sent, for display and confirmation."""
    token: str
    sender: str
    to: str
    amount: int
    decimals: int
    log_id: Optional[str] = None

    @property
    def display_amount(self) -> str:
        return to_decimal(self.amount, self.decimals)

    def lines(self):
        lines = [
            f"Token: {self.token}",
            f"{self.sender} -> {self.display_amount} ({self.amount} base units) -> {self.to}",
        ]
        if self.log_id:
            lines.append(f"Transfer id: {self.log_id}")
        return lines


class Interaction(Protocol):
    """Protocol for prompting the user"""
    config: PromptConfig

    @property
    def is_interactive(self) -> bool:
        ...

    def show_summary(self, summary: TransferSummary) -> None:
        ...

    def confirm(self, message: str) -> bool:
        """Ask a yes/no question; False means the transfer is abandoned"""
        ...

    def prompt_secret(self, message: str) -> str:
        """Read a secret such as a keystore password"""
        ...


class NonInteractive:
    """
    Interaction for unattended use.

    Summaries are written to ``stream``; confirmations are declined and
    secrets cannot be prompted for.
    """

    def __init__(self, config: Optional[PromptConfig] = None, stream: Optional[TextIO] = None):
        self.config = config or PromptConfig()
        self.stream = stream

    @property
    def is_interactive(self) -> bool:
        return False

    def show_summary(self, summary: TransferSummary) -> None:
        stream = self.stream or sys.stdout
        for line in summary.lines():
            print(line, file=stream)

    def confirm(self, message: str) -> bool:
        return False

    def prompt_secret(self, message: str) -> str:
        raise MissingPassword()
