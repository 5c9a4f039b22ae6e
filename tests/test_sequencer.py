import pytest

from boot_once.catalog import parse_entries
from boot_once.console import is_yes
from boot_once.errors import BackendError, EncryptionUnavailable
from boot_once.models import EncryptionStatus, Suspension
from boot_once.sequencer import CommitSequencer

from conftest import SCENARIO_A, FakeEncryption, FakeRestarter, FakeStore


@pytest.fixture
def ubuntu():
    return parse_entries(SCENARIO_A)[1]


def make(ui, store=None, encryption=None, restarter=None, countdown=5):
    store = store or FakeStore()
    encryption = encryption if encryption is not None else FakeEncryption()
    restarter = restarter or FakeRestarter()
    return CommitSequencer(store, encryption, restarter, ui, volume='C:', countdown=countdown), store, encryption, restarter


@pytest.mark.parametrize('answer,expected', [
    ('', True), ('y', True), ('Y', True), ('  y ', True),
    ('n', False), ('N', False), ('yes', False), ('no', False), ('x', False),
])
def test_is_yes(answer, expected):
    assert is_yes(answer) is expected


def test_set_failure_aborts_everything(make_ui, ubuntu):
    ui = make_ui([])
    store = FakeStore(set_status=1, set_output='The boot configuration data store could not be opened.')
    seq, store, encryption, restarter = make(ui, store=store)
    with pytest.raises(BackendError) as exc:
        seq.commit_one_time_boot(ubuntu)
    assert exc.value.returncode == 1
    assert 'could not be opened' in exc.value.output
    assert encryption.status_calls == []
    assert restarter.calls == 0
    assert ui.feed.prompts == 0


def test_protected_suspend_then_decline_restart(make_ui, ubuntu):
    ui = make_ui(['', 'n'])
    seq, store, encryption, restarter = make(ui, encryption=FakeEncryption(EncryptionStatus.PROTECTED))
    result = seq.commit_one_time_boot(ubuntu)
    assert store.sequence == ['{abc-123}']
    assert result.override_set
    assert result.suspension is Suspension.SUSPENDED
    assert result.suspended
    assert not result.restart_confirmed
    assert not result.restart_requested
    assert encryption.suspended == [('C:', 1)]
    assert restarter.calls == 0
    assert 'stays suspended' in result.message


def test_always_checks_current_system_volume(make_ui):
    entries = parse_entries(SCENARIO_A)
    for entry in entries:
        ui = make_ui(['n'])
        seq, _, encryption, _ = make(ui)
        seq.volume = 'E:'
        seq.commit_one_time_boot(entry)
        assert encryption.status_calls == ['E:']


def test_protected_suspension_declined(make_ui, ubuntu):
    ui = make_ui(['n', 'n'])
    seq, _, encryption, _ = make(ui, encryption=FakeEncryption(EncryptionStatus.PROTECTED))
    result = seq.commit_one_time_boot(ubuntu)
    assert result.suspension is Suspension.DECLINED
    assert encryption.suspended == []


def test_suspension_failure_does_not_abort(make_ui, ubuntu):
    ui = make_ui(['y', 'n'])
    enc = FakeEncryption(EncryptionStatus.PROTECTED, suspend_ok=False)
    seq, store, _, _ = make(ui, encryption=enc)
    result = seq.commit_one_time_boot(ubuntu)
    assert result.override_set
    assert result.suspension is Suspension.FAILED
    assert 'Could not suspend BitLocker' in ui.output.getvalue()


def test_not_protected_skips_prompt(make_ui, ubuntu):
    ui = make_ui(['n'])
    seq, _, encryption, _ = make(ui)
    result = seq.commit_one_time_boot(ubuntu)
    assert result.suspension is Suspension.NOT_APPLICABLE
    assert ui.feed.prompts == 1


@pytest.mark.parametrize('encryption', [
    FakeEncryption(error=EncryptionUnavailable('manage-bde not found')),
    FakeEncryption(EncryptionStatus.UNAVAILABLE),
])
def test_unavailable_encryption_is_informational(make_ui, ubuntu, encryption):
    ui = make_ui(['n'])
    seq, _, _, _ = make(ui, encryption=encryption)
    result = seq.commit_one_time_boot(ubuntu)
    assert result.suspension is Suspension.NOT_APPLICABLE
    assert 'not available' in ui.output.getvalue()


def test_no_encryption_backend(make_ui, ubuntu):
    ui = make_ui(['n'])
    seq = CommitSequencer(FakeStore(), None, FakeRestarter(), ui)
    assert seq.commit_one_time_boot(ubuntu).suspension is Suspension.NOT_APPLICABLE


def test_confirm_restart_counts_down(make_ui, ubuntu):
    ui = make_ui([''])
    seq, _, _, restarter = make(ui)
    result = seq.commit_one_time_boot(ubuntu)
    assert ui.sleeps == [1, 1, 1, 1, 1]
    assert restarter.calls == 1
    assert result.restart_confirmed
    assert result.restart_requested
    out = ui.output.getvalue()
    for n in range(5, 0, -1):
        assert f'Restarting in {n}...' in out


def test_restart_request_failure(make_ui, ubuntu):
    ui = make_ui(['y'])
    seq, _, _, _ = make(ui, restarter=FakeRestarter(ok=False), countdown=0)
    result = seq.commit_one_time_boot(ubuntu)
    assert ui.sleeps == []
    assert result.restart_confirmed
    assert not result.restart_requested
    assert 'Access is denied' in result.message


def test_eof_at_restart_prompt_declines(make_ui, ubuntu):
    ui = make_ui([])
    seq, _, _, restarter = make(ui)
    result = seq.commit_one_time_boot(ubuntu)
    assert result.override_set
    assert restarter.calls == 0


def test_firmware_entry_uses_firmware_sequence(make_ui):
    from conftest import ENUM_ALL

    ubuntu_fw, windows11 = parse_entries(ENUM_ALL)[:2]
    for entry, firmware in ((ubuntu_fw, True), (windows11, False)):
        ui = make_ui(['n'])
        seq, store, _, _ = make(ui)
        seq.commit_one_time_boot(entry)
        assert store.sequence == [entry.identifier]
        assert store.firmware == [firmware]


def test_reboot_count_passed_to_suspend(make_ui, ubuntu):
    enc = FakeEncryption(EncryptionStatus.PROTECTED)
    seq = CommitSequencer(FakeStore(), enc, FakeRestarter(), make_ui(['y', 'n']), volume='C:', reboot_count=2)
    result = seq.commit_one_time_boot(ubuntu)
    assert result.suspension is Suspension.SUSPENDED
    assert enc.suspended == [('C:', 2)]


def test_sequencer_collaborators_typed_with_protocols():
    from typing import Optional, get_type_hints

    from boot_once.platforms.windows import BootStore, EncryptionBackend, Restarter

    hints = get_type_hints(CommitSequencer.__init__)
    assert hints['store'] is BootStore
    assert hints['encryption'] == Optional[EncryptionBackend]
    assert hints['restarter'] is Restarter
