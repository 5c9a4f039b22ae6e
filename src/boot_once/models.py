from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


SENTINEL_CURRENT = '{current}'
SENTINEL_DEFAULT = '{default}'


class OsFamily(str, Enum):
    WINDOWS = 'Windows'
    LINUX = 'Linux'
    OTHER = 'Other'


class HeaderKind(str, Enum):
    BOOT_MANAGER = 'bootmgr'
    BOOT_LOADER = 'osloader'
    FIRMWARE = 'firmware'
    LEGACY = 'legacy'


@dataclass(frozen=True)
class BootEntry:
    identifier: str  # '{GUID}' or a sentinel such as '{current}'
    description: str
    device: str = ''
    path: str = ''
    os_family: OsFamily = OsFamily.OTHER
    is_current: bool = False
    is_default: bool = False
    header: Optional[HeaderKind] = None
    properties: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)  # raw key/value pairs

    @property
    def tags(self) -> list[str]:
        tags = []
        if self.is_current:
            tags.append('Current')
        if self.is_default:
            tags.append('Default')
        return tags

    @property
    def location(self) -> str:
        """Best-effort 'device path' text for display."""
        return ' '.join(p for p in (self.device, self.path) if p)


class EncryptionStatus(str, Enum):
    UNAVAILABLE = 'not available'
    NOT_PROTECTED = 'not protected'
    PROTECTED = 'protected'


class Suspension(str, Enum):
    NOT_APPLICABLE = 'not applicable'  # unavailable or volume not protected
    DECLINED = 'declined'
    SUSPENDED = 'suspended'
    FAILED = 'failed'


@dataclass
class CommitResult:
    entry: BootEntry
    override_set: bool = False
    suspension: Suspension = Suspension.NOT_APPLICABLE
    restart_confirmed: bool = False
    restart_requested: bool = False
    message: str = ''

    @property
    def suspended(self) -> bool:
        return self.suspension is Suspension.SUSPENDED
