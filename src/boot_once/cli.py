from __future__ import annotations
import argparse
import json
import logging
from functools import partial
from typing import List, NamedTuple, Optional

from .catalog import list_bootable_entries
from .config import Settings
from .console import ConsoleUI
from .errors import BackendError, NoBootableEntries
from .models import BootEntry
from .platforms.windows import (
    BcdeditStore, BitLockerBackend, BootStore, EncryptionBackend, Restarter, ShutdownRestarter,
)
from .sequencer import CommitSequencer
from .session import SelectionSession

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BACKEND = 1
EXIT_NO_ENTRIES = 2

BACKEND_CAUSES = [
    'The program is not running as Administrator.',
    'bcdedit is missing or the system is not Windows.',
    'The boot configuration store is locked by another tool.',
]

NO_ENTRY_CAUSES = [
    'The boot store lists no loader or firmware entries with a description.',
    'All entries were filtered out (try without --hide-recovery).',
    'Run "bcdedit /enum all" as Administrator to inspect the store.',
]


class Backends(NamedTuple):
    store: BootStore
    encryption: Optional[EncryptionBackend]
    restarter: Restarter


def get_backends() -> Backends:
    return Backends(BcdeditStore(), BitLockerBackend(), ShutdownRestarter())


def format_entries(entries: List[BootEntry], output: str) -> str:
    if output == 'json':
        return json.dumps([
            {
                'identifier': e.identifier,
                'description': e.description,
                'os_family': e.os_family.value,
                'device': e.device,
                'path': e.path,
                'is_current': e.is_current,
                'is_default': e.is_default,
            } for e in entries
        ], ensure_ascii=False, indent=2)
    lines = ['#\tIDENTIFIER\tFAMILY\tTAGS\tDESCRIPTION']
    for i, e in enumerate(entries, 1):
        lines.append(f"{i}\t{e.identifier}\t{e.os_family.value}\t{','.join(e.tags) or '-'}\t{e.description}")
    return '\n'.join(lines)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='boot-once', description='Boot another installed system on the next restart only')
    sub = p.add_subparsers(dest='cmd', required=False)

    p.add_argument('--gui', action='store_true', help='Open the graphical selector instead of the console menu')
    p.add_argument('--no-elevate', action='store_true', help='Do not try to relaunch with administrator rights')
    p.add_argument('--countdown', type=int, default=5, metavar='SECONDS', help='Countdown before restarting (default: 5)')
    p.add_argument('--reboot-count', type=int, default=1, metavar='N', help='Restarts BitLocker stays suspended for (default: 1)')
    p.add_argument('--volume', metavar='DRIVE', help='System volume checked for BitLocker (default: %%SystemDrive%%)')
    p.add_argument('--hide-recovery', action='store_true', help='Hide Windows Recovery Environment entries')
    p.add_argument('-v', '--verbose', action='store_true', help='Show debug logging')
    p.add_argument('--log-file', metavar='PATH', help='Also write a debug log to PATH')

    list_p = sub.add_parser('list', help='List bootable entries')
    list_p.add_argument('-o', '--output', choices=['text', 'json'], default='text')

    set_p = sub.add_parser('set', help='Set the one-time boot entry without prompting')
    set_p.add_argument('id', help='Entry identifier ({GUID} or {current})')
    set_p.add_argument('--firmware', action='store_true', help='The entry is a firmware application (sets {fwbootmgr} bootsequence)')

    sub.add_parser('reboot', help='Restart immediately')

    return p


def make_sequencer(settings: Settings, backends: Backends, ui) -> CommitSequencer:
    return CommitSequencer(
        backends.store, backends.encryption, backends.restarter, ui,
        volume=settings.volume, countdown=settings.countdown, reboot_count=settings.reboot_count,
    )


def load_catalog(store: BootStore, hide_recovery: bool = False) -> List[BootEntry]:
    entries = list_bootable_entries(store, hide_recovery=hide_recovery)
    if not entries:
        raise NoBootableEntries('No bootable entries were found')
    return entries


def run_interactive(settings: Settings, backends: Backends, ui: ConsoleUI) -> int:
    load = partial(list_bootable_entries, backends.store, hide_recovery=settings.hide_recovery)
    try:
        entries = load_catalog(backends.store, settings.hide_recovery)
    except BackendError as e:
        ui.backend_error(e)
        ui.fatal('Could not read the boot configuration.', BACKEND_CAUSES)
        return EXIT_BACKEND
    except NoBootableEntries as e:
        ui.fatal(f'{e}.', NO_ENTRY_CAUSES)
        return EXIT_NO_ENTRIES

    entry = SelectionSession(entries, load, ui).run()
    if entry is None:
        ui.info('Cancelled. Nothing was changed.')
        return EXIT_OK

    sequencer = make_sequencer(settings, backends, ui)
    try:
        result = sequencer.commit_one_time_boot(entry)
    except BackendError as e:
        logger.error('Setting one-time boot failed: %s', e)
        ui.backend_error(e)
        ui.fatal('The one-time boot entry was not set.', BACKEND_CAUSES)
        return EXIT_BACKEND

    if result.restart_confirmed and not result.restart_requested:
        ui.error(result.message)
        return EXIT_BACKEND
    ui.info(result.message)
    return EXIT_OK


def run_cli(args: argparse.Namespace, backends: Backends | None = None, ui: ConsoleUI | None = None) -> int:
    settings = Settings.from_args(args)
    backends = backends or get_backends()
    ui = ui or ConsoleUI()
    if args.cmd == 'reboot':
        ok, msg = backends.restarter.restart()
        if not ok:
            ui.error(f'Restart request failed: {msg}')
        return EXIT_OK if ok else EXIT_BACKEND

    if not backends.store.available():
        ui.fatal('bcdedit was not found on this system.', BACKEND_CAUSES)
        return EXIT_NO_ENTRIES
    if args.cmd is None:
        return run_interactive(settings, backends, ui)
    if args.cmd == 'list':
        try:
            entries = list_bootable_entries(backends.store, hide_recovery=settings.hide_recovery)
        except BackendError as e:
            ui.backend_error(e)
            return EXIT_BACKEND
        print(format_entries(entries, getattr(args, 'output', 'text')))
        return EXIT_OK
    if args.cmd == 'set':
        try:
            make_sequencer(settings, backends, ui).set_override(args.id, firmware=args.firmware)
        except BackendError as e:
            ui.backend_error(e)
            return EXIT_BACKEND
        ui.success(f'Next restart will boot: {args.id}')
        return EXIT_OK
    return EXIT_OK
