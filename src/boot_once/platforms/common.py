from __future__ import annotations
import logging
import os
import platform
import shutil
import subprocess
import sys
from typing import List

logger = logging.getLogger(__name__)


def is_admin() -> bool:
    system = platform.system()
    try:
        if system == 'Windows':
            import ctypes
            return ctypes.windll.shell32.IsUserAnAdmin() != 0
        else:
            return os.geteuid() == 0
    except (AttributeError, OSError):
        return False


def which(cmd: str) -> str | None:
    return shutil.which(cmd)


def current_platform() -> str:
    return platform.system()


def run(cmd: List[str], hide_window: bool = False) -> subprocess.CompletedProcess:
    """Run a command and capture its text output.

    A missing executable propagates as ``OSError``; callers decide whether
    that is fatal for their backend.
    """
    kwargs = {
        'capture_output': True,
        'text': True,
        'check': False,
    }
    if hide_window and platform.system() == 'Windows':
        kwargs['creationflags'] = subprocess.CREATE_NO_WINDOW

    logger.debug('Running %s', subprocess.list2cmdline(cmd))
    cp = subprocess.run(cmd, **kwargs)
    logger.debug('%s exited with status %d', cmd[0], cp.returncode)
    return cp


def elevate_if_needed(want_gui: bool = False) -> bool:
    """Ensure the process runs with admin/root.

    Returns True if a privileged re-launch was initiated and the current
    process should exit. Returns False if already elevated or if elevation
    could not be initiated.
    """
    if is_admin():
        return False

    system = current_platform()
    exe = sys.executable or sys.argv[0]

    # Frozen builds re-run themselves; otherwise go through the entry module.
    if getattr(sys, 'frozen', False):
        relaunch_args = sys.argv[1:]
    else:
        relaunch_args = ['-m', 'boot_once.main', *sys.argv[1:]]

    if system == 'Windows':
        try:
            import ctypes
            ShellExecuteW = ctypes.windll.shell32.ShellExecuteW
            cmdline = subprocess.list2cmdline(relaunch_args)
            ret = ShellExecuteW(None, 'runas', exe, cmdline, None, 1)
        except (AttributeError, OSError):
            logger.warning('Could not request elevation', exc_info=True)
            return False
        if int(ret) <= 32:
            logger.warning('Elevation request refused (ShellExecuteW returned %s)', ret)
            return False
        return True

    pk = which('pkexec')
    if pk and want_gui:
        env_args = []
        for key in ('DISPLAY', 'XAUTHORITY', 'WAYLAND_DISPLAY', 'XDG_RUNTIME_DIR'):
            val = os.environ.get(key)
            if val:
                env_args += [f'{key}={val}']
        try:
            subprocess.Popen([pk, 'env', *env_args, exe, *relaunch_args])
            return True
        except OSError:
            logger.warning('pkexec relaunch failed', exc_info=True)

    sudo = which('sudo')
    if sudo and not want_gui:
        try:
            os.execvp(sudo, [sudo, exe, *relaunch_args])
        except OSError:
            logger.warning('sudo relaunch failed', exc_info=True)
    return False
