from __future__ import annotations
import argparse
from dataclasses import dataclass
from typing import Optional

from .platforms.windows import system_volume


@dataclass(frozen=True)
class Settings:
    countdown: int = 5
    reboot_count: int = 1
    volume: str = 'C:'
    hide_recovery: bool = False
    elevate: bool = True
    gui: bool = False
    verbose: bool = False
    log_file: Optional[str] = None

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> 'Settings':
        return cls(
            countdown=max(0, getattr(args, 'countdown', 5)),
            reboot_count=max(1, getattr(args, 'reboot_count', 1)),
            volume=getattr(args, 'volume', None) or system_volume(),
            hide_recovery=getattr(args, 'hide_recovery', False),
            elevate=not getattr(args, 'no_elevate', False),
            gui=getattr(args, 'gui', False),
            verbose=getattr(args, 'verbose', False),
            log_file=getattr(args, 'log_file', None),
        )
