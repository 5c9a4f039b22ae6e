from __future__ import annotations
import logging
import os
import re
import subprocess
from typing import List, Protocol

from .common import run, which
from boot_once.errors import BackendError, EncryptionUnavailable
from boot_once.models import EncryptionStatus

logger = logging.getLogger(__name__)


class BootStore(Protocol):
    def available(self) -> bool: ...

    def enumerate(self) -> subprocess.CompletedProcess: ...

    def set_bootsequence(self, identifier: str, firmware: bool = False) -> subprocess.CompletedProcess: ...


class EncryptionBackend(Protocol):
    def status(self, volume: str) -> EncryptionStatus: ...

    def suspend(self, volume: str, reboot_count: int) -> tuple[bool, str]: ...


class Restarter(Protocol):
    def restart(self) -> tuple[bool, str]: ...


def system_volume() -> str:
    return os.environ.get('SystemDrive') or 'C:'


class BcdeditStore:
    def __init__(self) -> None:
        self.bcdedit = 'bcdedit'

    def _run_bcd(self, args: List[str]) -> subprocess.CompletedProcess:
        """Run bcdedit via cmd.exe to avoid PowerShell argument binding/brace issues."""
        try:
            return run(['cmd.exe', '/d', '/c', self.bcdedit, *args], hide_window=True)
        except OSError as e:
            raise BackendError(f'Could not run {self.bcdedit}: {e}', output=str(e)) from e

    def available(self) -> bool:
        return which(self.bcdedit) is not None

    def enumerate(self) -> subprocess.CompletedProcess:
        return self._run_bcd(['/enum', 'all'])

    def set_bootsequence(self, identifier: str, firmware: bool = False) -> subprocess.CompletedProcess:
        # bcdedit wants the braces; sentinels like {current} already carry them
        eid = identifier if identifier.startswith('{') else f'{{{identifier}}}'
        if firmware:
            # firmware applications are sequenced by the firmware boot manager
            return self._run_bcd(['/set', '{fwbootmgr}', 'bootsequence', eid])
        return self._run_bcd(['/bootsequence', eid])


_PROTECTION_RE = re.compile(r'(?im)^\s*(?:protection status|保护状态)\s*:\s*(.+)$')


class BitLockerBackend:
    def __init__(self) -> None:
        self.manage_bde = 'manage-bde'

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        if which(self.manage_bde) is None:
            raise EncryptionUnavailable(f'{self.manage_bde} not found')
        try:
            return run([self.manage_bde, *args], hide_window=True)
        except OSError as e:
            raise EncryptionUnavailable(str(e)) from e

    def status(self, volume: str) -> EncryptionStatus:
        cp = self._run(['-status', volume])
        text = cp.stdout or ''
        if cp.returncode != 0:
            raise EncryptionUnavailable((cp.stderr or text).strip() or f'manage-bde exited with {cp.returncode}')
        m = _PROTECTION_RE.search(text)
        if not m:
            raise EncryptionUnavailable(f'No protection status reported for {volume}')
        value = m.group(1).strip().lower()
        logger.debug('BitLocker protection status for %s: %s', volume, value)
        if 'on' in value.split() or '开' in value:
            return EncryptionStatus.PROTECTED
        return EncryptionStatus.NOT_PROTECTED

    def suspend(self, volume: str, reboot_count: int) -> tuple[bool, str]:
        try:
            cp = self._run(['-protectors', '-disable', volume, '-RebootCount', str(reboot_count)])
        except EncryptionUnavailable as e:
            return False, str(e)
        return (cp.returncode == 0, (cp.stdout or cp.stderr or '').strip())


class ShutdownRestarter:
    def restart(self) -> tuple[bool, str]:
        try:
            cp = run(['shutdown', '/r', '/t', '0'], hide_window=True)
        except OSError as e:
            return False, str(e)
        return (cp.returncode == 0, cp.stderr or cp.stdout)
