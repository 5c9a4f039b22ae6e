from __future__ import annotations
import time
from typing import Callable, Iterable, List, Optional

from rich.console import Console
from rich.text import Text

from .errors import BackendError
from .models import BootEntry, OsFamily


FAMILY_STYLES = {
    OsFamily.WINDOWS: 'bold cyan',
    OsFamily.LINUX: 'bold yellow',
    OsFamily.OTHER: 'bold white',
}


def is_yes(answer: str) -> bool:
    """Empty input or 'y' in any case is yes, anything else (even 'yes') is no.

    Pressing Enter therefore accepts, including the final restart prompt.
    """
    return answer.strip().lower() in ('', 'y')


def menu_row(index: int, entry: BootEntry) -> Text:
    row = Text.assemble((f'[{index}] ', 'bold'), (entry.description, FAMILY_STYLES[entry.os_family]))
    if entry.tags:
        row.append(f" ({', '.join(entry.tags)})", style='green')
    row.append(f'  {entry.os_family.value}', style='dim')
    if entry.location:
        row.append(f'  {entry.location}', style='dim')
    return row


class ConsoleUI:
    """Terminal front end shared by the selection session and the commit sequencer."""

    def __init__(
        self,
        console: Optional[Console] = None,
        input_func: Callable[[], str] = input,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.console = console or Console(highlight=False)
        self.input_func = input_func
        self.sleep = sleep

    def _ask(self, prompt: str) -> str:
        self.console.print(Text(prompt), end='')
        return self.input_func()

    def show_menu(self, entries: List[BootEntry]) -> None:
        self.console.print()
        self.console.print(Text('Select the system to boot on the next restart only:', style='bold'))
        for i, entry in enumerate(entries, 1):
            self.console.print(menu_row(i, entry))
        self.console.print(Text.assemble(('[R] ', 'bold'), 'Refresh   ', ('[C] ', 'bold'), 'Cancel'))

    def read_choice(self) -> str:
        return self._ask('Choice: ')

    def confirm(self, question: str) -> bool:
        try:
            return is_yes(self._ask(f'{question} [Y/n] '))
        except EOFError:
            self.console.print()
            return False

    def countdown(self, seconds: int) -> None:
        for remaining in range(seconds, 0, -1):
            self.console.print(Text(f'Restarting in {remaining}...', style='bold yellow'))
            self.sleep(1)

    def pause(self, seconds: float = 2.0) -> None:
        self.sleep(seconds)

    def info(self, text: str) -> None:
        self.console.print(Text(text))

    def success(self, text: str) -> None:
        self.console.print(Text(text, style='green'))

    def warn(self, text: str) -> None:
        self.console.print(Text(text, style='yellow'))

    def error(self, text: str) -> None:
        self.console.print(Text(text, style='bold red'))

    def backend_error(self, err: BackendError) -> None:
        self.error(f'Error: {err}')
        if err.output:
            self.console.print(Text(err.output, style='dim'))

    def fatal(self, text: str, causes: Iterable[str] = ()) -> None:
        self.error(text)
        causes = list(causes)
        if causes:
            self.console.print(Text('Likely causes:', style='bold'))
            for cause in causes:
                self.console.print(Text(f'  - {cause}'))
