"""Boot entry catalog built from ``bcdedit /enum all`` output.

The text is split into typed tokens first (headers, separator rules,
``key value`` properties, indented continuation values and blank lines)
and a small accumulator turns the token stream into records. Records are
then filtered down to the entries an operator may pick for a one-time
boot, in the order bcdedit listed them.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional

from .errors import BackendError
from .models import SENTINEL_CURRENT, SENTINEL_DEFAULT, BootEntry, HeaderKind, OsFamily
from .platforms.windows import BootStore

logger = logging.getLogger(__name__)


HEADER_PATTERNS: Dict[HeaderKind, re.Pattern] = {
    HeaderKind.BOOT_MANAGER: re.compile(
        r'^(?:windows boot manager|firmware boot manager|windows 启动管理器|固件启动管理器)$', re.I),
    HeaderKind.BOOT_LOADER: re.compile(
        r'^(?:windows boot loader|windows 启动加载器)$', re.I),
    HeaderKind.FIRMWARE: re.compile(
        r'^(?:firmware application|固件应用程序)(?:\s*\([0-9a-f]+\))?$', re.I),
    HeaderKind.LEGACY: re.compile(
        r'^(?:windows legacy os loader|resume from hibernate|real-mode boot sector|从休眠状态恢复)$', re.I),
}

SEPARATOR_RE = re.compile(r'^-+$')

# Localised key names mapped onto the fields BootEntry knows about.
KEY_ALIASES = {
    'identifier': 'identifier',
    '标识符': 'identifier',
    'description': 'description',
    '描述': 'description',
    '说明': 'description',
    '說明': 'description',
    'device': 'device',
    '设备': 'device',
    'path': 'path',
    '路径': 'path',
}

EXCLUDED_DESCRIPTIONS = frozenset({
    'windows memory diagnostic',
    'windows resume application',
})

ERROR_MARKERS = (
    'an error occurred',
    'the boot configuration data store could not be opened',
    'access is denied',
    'the parameter is incorrect',
    '拒绝访问',
    '无法打开启动配置数据存储',
)

WINDOWS_PATTERN = re.compile(r'windows|\bwin\s?(?:7|8|8\.1|10|11|xp)\b', re.I)

LINUX_NAME_FRAGMENTS = (
    'linux', 'ubuntu', 'debian', 'fedora', 'manjaro', 'opensuse', 'centos',
    'red hat', 'rocky', 'pop!_os', 'pop_os', 'elementary', 'gentoo', 'nixos',
    'zorin', 'endeavouros', 'grub', 'systemd-boot', 'refind',
)

# short names only count as whole words ("Search" is not Arch)
LINUX_NAME_WORDS = re.compile(r'\b(?:arch|mint|alma|suse|rhel|kali)\b', re.I)

LINUX_LOADER_SUFFIXES = (
    'shimx64.efi', 'shimaa64.efi', 'shimia32.efi',
    'grubx64.efi', 'grubaa64.efi', 'grubia32.efi', 'grub.efi',
    'systemd-bootx64.efi', 'systemd-bootaa64.efi',
    'refind_x64.efi', 'elilo.efi', 'vmlinuz', '.elf',
)

RECOVERY_INDICATORS = (
    'windows recovery environment',
    'windows 恢复环境',
    'winre.wim',
    'recovery',
    '恢复',
)


class TokenType(Enum):
    HEADER = 'header'
    SEPARATOR = 'separator'
    PROPERTY = 'property'
    CONTINUATION = 'continuation'
    BLANK = 'blank'


@dataclass(frozen=True)
class Token:
    type: TokenType
    key: str = ''
    value: str = ''
    kind: Optional[HeaderKind] = None  # only for recognised headers


@dataclass
class Record:
    header: Optional[HeaderKind]
    title: str = ''
    fields: Dict[str, str] = field(default_factory=dict)
    properties: List[List[str]] = field(default_factory=list)
    is_current: bool = False
    is_default: bool = False

    def prop(self, key: str) -> str:
        for k, v in self.properties:
            if k.lower() == key:
                return v
        return ''


def match_header(line: str) -> Optional[HeaderKind]:
    for kind, pattern in HEADER_PATTERNS.items():
        if pattern.match(line):
            return kind
    return None


def _is_separator(line: str) -> bool:
    return bool(SEPARATOR_RE.match(line.strip()))


def tokenize(text: str) -> Iterator[Token]:
    lines = text.splitlines()
    for i, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            yield Token(TokenType.BLANK)
            continue
        if _is_separator(stripped):
            yield Token(TokenType.SEPARATOR)
            continue
        indented = line[0].isspace()
        kind = None if indented else match_header(stripped)
        underlined = i + 1 < len(lines) and _is_separator(lines[i + 1])
        if kind is not None or (underlined and not indented):
            yield Token(TokenType.HEADER, value=stripped, kind=kind)
        elif indented:
            yield Token(TokenType.CONTINUATION, value=stripped)
        else:
            parts = stripped.split(None, 1)
            yield Token(TokenType.PROPERTY, key=parts[0], value=parts[1].strip() if len(parts) > 1 else '')


def parse_records(text: str) -> List[Record]:
    records: List[Record] = []
    current: Optional[Record] = None
    for tok in tokenize(text):
        if tok.type is TokenType.HEADER:
            current = Record(header=tok.kind, title=tok.value)
            records.append(current)
        elif tok.type is TokenType.PROPERTY:
            if current is None:
                # stray properties before the first header
                current = Record(header=None)
                records.append(current)
            name = KEY_ALIASES.get(tok.key.lower())
            if name == 'identifier':
                sentinel = tok.value.lower()
                current.is_current |= sentinel == SENTINEL_CURRENT
                current.is_default |= sentinel == SENTINEL_DEFAULT
                current.fields.setdefault('identifier', tok.value)
            elif name is not None:
                current.fields[name] = tok.value
            else:
                current.properties.append([tok.key, tok.value])
        elif tok.type is TokenType.CONTINUATION:
            if current is not None and current.properties:
                prop = current.properties[-1]
                prop[1] = f'{prop[1]} {tok.value}'.strip()
    return records


def classify(description: str, path: str = '') -> OsFamily:
    desc = (description or '').lower()
    if WINDOWS_PATTERN.search(desc):
        return OsFamily.WINDOWS
    if any(frag in desc for frag in LINUX_NAME_FRAGMENTS) or LINUX_NAME_WORDS.search(desc):
        return OsFamily.LINUX
    if (path or '').lower().replace('/', '\\').endswith(LINUX_LOADER_SUFFIXES):
        return OsFamily.LINUX
    return OsFamily.OTHER


def is_recovery_entry(entry: BootEntry) -> bool:
    haystack = f'{entry.description} {entry.path}'.lower()
    return any(ind in haystack for ind in RECOVERY_INDICATORS)


def is_bootable(record: Record) -> bool:
    if record.header is None or record.header is HeaderKind.BOOT_MANAGER:
        return False
    if not record.fields.get('identifier'):
        return False
    description = record.fields.get('description', '').strip()
    if not description:
        return False
    return description.lower() not in EXCLUDED_DESCRIPTIONS


def to_entry(record: Record) -> BootEntry:
    description = record.fields.get('description', '').strip()
    path = record.fields.get('path', '')
    return BootEntry(
        identifier=record.fields['identifier'],
        description=description,
        device=record.fields.get('device', ''),
        path=path,
        os_family=classify(description, path),
        is_current=record.is_current,
        is_default=record.is_default,
        header=record.header,
        properties=tuple((k, v) for k, v in record.properties),
    )


def parse_entries(text: str, hide_recovery: bool = False) -> List[BootEntry]:
    entries = [to_entry(r) for r in parse_records(text) if is_bootable(r)]
    if hide_recovery:
        entries = [e for e in entries if not is_recovery_entry(e)]
    return entries


def has_error_marker(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in ERROR_MARKERS)


def list_bootable_entries(store: BootStore, hide_recovery: bool = False) -> List[BootEntry]:
    """Enumerate the boot store and return its bootable entries.

    Raises BackendError when bcdedit exits non-zero or reports an error in
    its output. An empty list is a valid answer here; callers decide
    whether that is fatal.
    """
    cp = store.enumerate()
    stdout = cp.stdout or ''
    output = stdout + (cp.stderr or '')
    if cp.returncode != 0 or has_error_marker(output):
        raise BackendError('The boot store could not be enumerated', cp.returncode, output.strip())
    entries = parse_entries(stdout, hide_recovery=hide_recovery)
    logger.info('Found %d bootable entries', len(entries))
    return entries
