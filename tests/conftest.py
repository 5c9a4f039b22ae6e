import io
import subprocess

import pytest
from rich.console import Console

from boot_once.console import ConsoleUI
from boot_once.models import EncryptionStatus


ENUM_ALL = """\

Firmware Boot Manager
---------------------
identifier              {fwbootmgr}
displayorder            {bootmgr}
                        {7e3a1c52-0b2c-11ef-9a3d-806e6f6e6963}
timeout                 2

Windows Boot Manager
--------------------
identifier              {bootmgr}
device                  partition=\\Device\\HarddiskVolume1
path                    \\EFI\\Microsoft\\Boot\\bootmgfw.efi
description             Windows Boot Manager
locale                  en-US
default                 {current}
resumeobject            {5a1b2c3d-0000-11ef-9a3d-806e6f6e6963}
displayorder            {current}
toolsdisplayorder       {memdiag}
timeout                 30

Firmware Application (101fffff)
-------------------------------
identifier              {7e3a1c52-0b2c-11ef-9a3d-806e6f6e6963}
device                  partition=\\Device\\HarddiskVolume1
path                    \\EFI\\ubuntu\\shimx64.efi
description             ubuntu

Windows Boot Loader
-------------------
identifier              {current}
device                  partition=C:
path                    \\WINDOWS\\system32\\winload.efi
description             Windows 11
locale                  en-US
recoverysequence        {9c2d7a10-0b2c-11ef-9a3d-806e6f6e6963}
osdevice                partition=C:
systemroot              \\WINDOWS

Windows Boot Loader
-------------------
identifier              {9c2d7a10-0b2c-11ef-9a3d-806e6f6e6963}
device                  ramdisk=[\\Device\\HarddiskVolume4]\\Recovery\\WindowsRE\\Winre.wim
path                    \\windows\\system32\\winload.efi
description             Windows Recovery Environment

Resume from Hibernate
---------------------
identifier              {5a1b2c3d-0000-11ef-9a3d-806e6f6e6963}
device                  partition=C:
path                    \\WINDOWS\\system32\\winresume.efi
description             Windows Resume Application

Windows Memory Tester
---------------------
identifier              {memdiag}
device                  partition=\\Device\\HarddiskVolume1
path                    \\EFI\\Microsoft\\Boot\\memtest.efi
description             Windows Memory Diagnostic

Debugger Settings
-----------------
identifier              {dbgsettings}
debugtype               Local
"""


SCENARIO_A = """\
Windows Boot Manager
--------------------
identifier              {bootmgr}
description             Windows Boot Manager

Windows Boot Loader
-------------------
identifier              {current}
identifier              {default}
device                  partition=C:
path                    \\WINDOWS\\system32\\winload.efi
description             Windows 11

Windows Boot Loader
-------------------
identifier              {abc-123}
device                  partition=D:
path                    \\boot\\vmlinuz
description             Ubuntu
"""


def completed(returncode=0, stdout='', stderr=''):
    return subprocess.CompletedProcess(['bcdedit'], returncode, stdout, stderr)


class FakeStore:
    def __init__(self, outputs=None, set_status=0, set_output=''):
        # outputs: list of CompletedProcess returned by successive enumerate calls
        self.outputs = list(outputs or [completed(stdout=ENUM_ALL)])
        self.set_status = set_status
        self.set_output = set_output
        self.enumerate_calls = 0
        self.sequence = []
        self.firmware = []

    def available(self):
        return True

    def enumerate(self):
        self.enumerate_calls += 1
        if len(self.outputs) > 1:
            return self.outputs.pop(0)
        return self.outputs[0]

    def set_bootsequence(self, identifier, firmware=False):
        cp = completed(self.set_status, self.set_output)
        if self.set_status == 0:
            self.sequence.append(identifier)
            self.firmware.append(firmware)
        return cp


class FakeEncryption:
    def __init__(self, status=EncryptionStatus.NOT_PROTECTED, suspend_ok=True, error=None):
        self._status = status
        self.suspend_ok = suspend_ok
        self.error = error
        self.status_calls = []
        self.suspended = []

    def status(self, volume):
        self.status_calls.append(volume)
        if self.error is not None:
            raise self.error
        return self._status

    def suspend(self, volume, reboot_count):
        if self.suspend_ok:
            self.suspended.append((volume, reboot_count))
            return True, 'Key protectors are disabled for volume C:.'
        return False, 'ERROR: An error occurred (code 0x80310000)'


class FakeRestarter:
    def __init__(self, ok=True):
        self.ok = ok
        self.calls = 0

    def restart(self):
        self.calls += 1
        return self.ok, '' if self.ok else 'Access is denied.(5)'


class ScriptedInput:
    """Feeds canned lines to ConsoleUI; raises EOFError once exhausted."""

    def __init__(self, lines):
        self.lines = list(lines)
        self.prompts = 0

    def __call__(self):
        self.prompts += 1
        if not self.lines:
            raise EOFError
        return self.lines.pop(0)


@pytest.fixture
def make_ui():
    def _make(lines=()):
        out = io.StringIO()
        feed = ScriptedInput(lines)
        sleeps = []
        ui = ConsoleUI(
            console=Console(file=out, width=200, color_system=None, highlight=False),
            input_func=feed,
            sleep=sleeps.append,
        )
        ui.output = out
        ui.feed = feed
        ui.sleeps = sleeps
        return ui
    return _make
