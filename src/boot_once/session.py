from __future__ import annotations
import logging
from enum import Enum
from typing import Callable, List, Optional

from .errors import BackendError
from .models import BootEntry

logger = logging.getLogger(__name__)


class State(Enum):
    LISTING = 'listing'
    AWAITING_INPUT = 'awaiting input'
    REFRESHING = 'refreshing'
    SELECTED = 'selected'
    CANCELLED = 'cancelled'


class SelectionSession:
    """Interactive menu loop over a boot entry catalog.

    ``load`` re-enumerates the boot store on refresh; ``ui`` needs
    ``show_menu``, ``read_choice``, ``error``, ``backend_error`` and
    ``pause``. The loop runs until the operator picks an entry or cancels.
    """

    def __init__(self, entries: List[BootEntry], load: Callable[[], List[BootEntry]], ui) -> None:
        self.entries = list(entries)
        self.load = load
        self.ui = ui
        self.state = State.LISTING
        self.selected: Optional[BootEntry] = None

    def handle(self, text: str) -> State:
        choice = text.strip().lower()
        if choice == 'c':
            return State.CANCELLED
        if choice == 'r':
            return State.REFRESHING
        if choice.isdigit() and choice.isascii():
            n = int(choice)
            if 1 <= n <= len(self.entries):
                self.selected = self.entries[n - 1]
                return State.SELECTED
        return State.AWAITING_INPUT

    def refresh(self) -> None:
        try:
            entries = self.load()
        except BackendError as e:
            logger.warning('Refresh failed, keeping previous catalog: %s', e)
            self.ui.backend_error(e)
            self.ui.pause()
            return
        self.entries = list(entries)

    def run(self) -> Optional[BootEntry]:
        """Return the chosen entry, or None when the operator cancels."""
        while True:
            if self.state is State.LISTING:
                self.ui.show_menu(self.entries)
                self.state = State.AWAITING_INPUT
            elif self.state is State.AWAITING_INPUT:
                try:
                    text = self.ui.read_choice()
                except EOFError:
                    self.state = State.CANCELLED
                    continue
                self.state = self.handle(text)
                if self.state is State.AWAITING_INPUT:
                    self.ui.error('Invalid selection.')
            elif self.state is State.REFRESHING:
                self.refresh()
                self.state = State.LISTING
            elif self.state is State.SELECTED:
                logger.info('Selected %s (%s)', self.selected.description, self.selected.identifier)
                return self.selected
            else:
                logger.info('Selection cancelled')
                return None
