from __future__ import annotations
import time

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QLabel, QListWidget, QListWidgetItem,
    QPushButton, QMessageBox, QHBoxLayout, QTextEdit, QApplication
)

from boot_once.catalog import list_bootable_entries
from boot_once.cli import get_backends, make_sequencer
from boot_once.config import Settings
from boot_once.errors import BackendError
from boot_once.models import BootEntry


class QtPrompter:
    """Prompts for CommitSequencer backed by message boxes and the log pane."""

    def __init__(self, window: 'BootOnceApp') -> None:
        self.window = window

    def confirm(self, question: str) -> bool:
        ret = QMessageBox.question(self.window, 'Confirm', question,
                                   QMessageBox.Yes | QMessageBox.No, QMessageBox.Yes)
        return ret == QMessageBox.Yes

    def countdown(self, seconds: int) -> None:
        for remaining in range(seconds, 0, -1):
            self.window.log_line(f'Restarting in {remaining}...')
            QApplication.processEvents()
            time.sleep(1)

    def info(self, text: str) -> None:
        self.window.log_line(text)

    success = info

    def warn(self, text: str) -> None:
        self.window.log_line('Warning: ' + text)


class BootOnceApp(QWidget):
    def __init__(self, settings: Settings | None = None):
        super().__init__()
        self.setWindowTitle('Boot once')
        self.resize(640, 420)

        self.settings = settings or Settings()
        self.backends = get_backends()
        self.sequencer = make_sequencer(self.settings, self.backends, QtPrompter(self))

        self._build_ui()
        self.refresh()

    def _build_ui(self):
        layout = QVBoxLayout(self)
        layout.addWidget(QLabel('Select the system to boot on the next restart only'))

        self.list = QListWidget()
        layout.addWidget(self.list)

        btn_row = QHBoxLayout()
        self.btn_refresh = QPushButton('Refresh')
        self.btn_apply = QPushButton('Boot once')
        btn_row.addWidget(self.btn_refresh)
        btn_row.addWidget(self.btn_apply)
        layout.addLayout(btn_row)

        layout.addWidget(QLabel('Log'))
        self.log = QTextEdit()
        self.log.setReadOnly(True)
        layout.addWidget(self.log, 1)

        self.btn_refresh.clicked.connect(self.refresh)
        self.btn_apply.clicked.connect(self.apply_selection)

    def log_line(self, text: str):
        self.log.append(text)

    def refresh(self):
        try:
            entries = list_bootable_entries(self.backends.store, hide_recovery=self.settings.hide_recovery)
        except BackendError as e:
            # keep whatever is listed already
            QMessageBox.warning(self, 'Refresh failed', f'{e}\n\n{e.output}')
            self.log_line(f'Error: {e}')
            return
        self.list.clear()
        for e in entries:
            tags = f"  ({', '.join(e.tags)})" if e.tags else ''
            item = QListWidgetItem(f'{e.description}{tags}  [{e.os_family.value}]')
            item.setData(Qt.UserRole, e)
            self.list.addItem(item)
        self.log_line(f'Found {self.list.count()} bootable entries')

    def apply_selection(self):
        item = self.list.currentItem()
        if not item:
            QMessageBox.information(self, 'Boot once', 'Select an entry first')
            return
        entry: BootEntry = item.data(Qt.UserRole)
        try:
            result = self.sequencer.commit_one_time_boot(entry)
        except BackendError as e:
            QMessageBox.critical(self, 'Failed', f'{e}\n\n{e.output}')
            self.log_line(f'Error: {e}')
            return
        if result.restart_confirmed and not result.restart_requested:
            QMessageBox.critical(self, 'Failed', result.message)
        self.log_line(result.message)
