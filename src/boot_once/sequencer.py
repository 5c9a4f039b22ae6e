from __future__ import annotations
import logging
from typing import Optional

from .errors import BackendError, EncryptionUnavailable
from .models import BootEntry, CommitResult, EncryptionStatus, HeaderKind, Suspension
from .platforms.windows import BootStore, EncryptionBackend, Restarter

logger = logging.getLogger(__name__)


class CommitSequencer:
    """Set a one-time boot override, optionally suspend BitLocker, then restart.

    Collaborators are injected: ``store`` (bcdedit), ``encryption``
    (manage-bde, may be None), ``restarter`` and ``ui`` for prompts.
    """

    def __init__(self, store: BootStore, encryption: Optional[EncryptionBackend],
                 restarter: Restarter, ui, volume: str = 'C:',
                 countdown: int = 5, reboot_count: int = 1) -> None:
        self.store = store
        self.encryption = encryption
        self.restarter = restarter
        self.ui = ui
        self.volume = volume
        self.countdown = countdown
        self.reboot_count = reboot_count

    def set_override(self, identifier: str, firmware: bool = False) -> None:
        cp = self.store.set_bootsequence(identifier, firmware=firmware)
        if cp.returncode != 0:
            output = ((cp.stdout or '') + (cp.stderr or '')).strip()
            raise BackendError(f'Could not set one-time boot to {identifier}', cp.returncode, output)
        logger.info('One-time boot sequence set to %s', identifier)

    def encryption_status(self) -> EncryptionStatus:
        if self.encryption is None:
            return EncryptionStatus.UNAVAILABLE
        try:
            return self.encryption.status(self.volume)
        except EncryptionUnavailable as e:
            logger.info('Encryption status unavailable for %s: %s', self.volume, e)
            return EncryptionStatus.UNAVAILABLE

    def offer_suspension(self) -> Suspension:
        status = self.encryption_status()
        if status is EncryptionStatus.UNAVAILABLE:
            self.ui.info('Drive encryption status not available; skipping BitLocker suspension.')
            return Suspension.NOT_APPLICABLE
        if status is EncryptionStatus.NOT_PROTECTED:
            logger.debug('%s is not protected', self.volume)
            return Suspension.NOT_APPLICABLE

        if not self.ui.confirm(f'BitLocker protects {self.volume}. Suspend it for the next restart?'):
            return Suspension.DECLINED
        ok, msg = self.encryption.suspend(self.volume, self.reboot_count)
        if ok:
            self.ui.success(f'BitLocker suspended on {self.volume} for {self.reboot_count} restart(s).')
            return Suspension.SUSPENDED
        logger.warning('BitLocker suspension failed: %s', msg)
        self.ui.warn(f'Could not suspend BitLocker: {msg}')
        return Suspension.FAILED

    def commit_one_time_boot(self, entry: BootEntry) -> CommitResult:
        """Run the full commit sequence for ``entry``.

        Raises BackendError when the override cannot be set; nothing else
        is attempted in that case. Returns only if the restart is declined
        or the restart request fails.
        """
        self.set_override(entry.identifier, firmware=entry.header is HeaderKind.FIRMWARE)
        result = CommitResult(entry=entry, override_set=True)
        self.ui.success(f'Next restart will boot: {entry.description}')

        result.suspension = self.offer_suspension()

        if not self.ui.confirm('Restart now?'):
            result.message = f'{entry.description} will be booted on the next restart.'
            if result.suspended:
                result.message += ' BitLocker stays suspended until then.'
            return result

        self.countdown_then_restart(result)
        return result

    def countdown_then_restart(self, result: CommitResult) -> None:
        result.restart_confirmed = True
        self.ui.countdown(self.countdown)
        ok, msg = self.restarter.restart()
        result.restart_requested = ok
        if ok:
            result.message = 'Restarting.'
        else:
            logger.error('Restart request failed: %s', msg)
            result.message = f'Restart request failed: {msg}'.strip()
