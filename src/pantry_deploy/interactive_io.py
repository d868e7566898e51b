"""
Operator interaction for the secrets provisioning script
"""
import sys
import getpass
from typing import Callable, Iterable, Optional, Protocol, TextIO

AFFIRMATIVE_ANSWERS = ('yes', 'y')


class InteractiveIO(Protocol):
    """Blocking operator interface used by the provisioner"""

    def confirm(self, prompt: str) -> bool:
        ...

    def prompt_value(self, prompt: str) -> str:
        ...

    def report(self, lines: Iterable[str]) -> None:
        ...


def is_affirmative(answer: str) -> bool:
    """True only for an explicit yes/y, case-insensitive"""
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


class ConsoleIO:
    """InteractiveIO over stdin/stdout"""

    def __init__(
        self,
        echo: bool = False,
        output: Optional[TextIO] = None,
        read_line: Callable[[str], str] = input,
        read_secret: Callable[[str], str] = getpass.getpass,
    ):
        """
        Args:
            echo: Show secret values as they are typed
            output: Stream for report lines (defaults to stdout)
            read_line: Reader for visible answers
            read_secret: Reader for hidden answers
        """
        self.echo = echo
        self.output = output or sys.stdout
        self._read_line = read_line
        self._read_secret = read_secret

    def confirm(self, prompt: str) -> bool:
        try:
            answer = self._read_line(prompt)
        except EOFError:
            return False
        return is_affirmative(answer)

    def prompt_value(self, prompt: str) -> str:
        reader = self._read_line if self.echo else self._read_secret
        try:
            return reader(prompt).strip()
        except EOFError:
            return ''

    def report(self, lines: Iterable[str]) -> None:
        for line in lines:
            print(line, file=self.output)
        self.output.flush()
