"""Tests for the credential file."""

import os
import stat

from credentials import CredentialStore


def mode_of(path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


def test_prepare_creates_owner_only_file(tmp_path) -> None:
    path = tmp_path / 'secure' / 'user_passwords.txt'
    store = CredentialStore(str(path))

    store.prepare()

    assert path.exists()
    assert path.read_text() == ''
    assert mode_of(path) == 0o600


def test_prepare_keeps_existing_rows(tmp_path) -> None:
    path = tmp_path / 'user_passwords.txt'
    path.write_text('alice:OldPassword12\n')
    os.chmod(path, 0o644)

    CredentialStore(str(path)).prepare()

    assert path.read_text() == 'alice:OldPassword12\n'
    assert mode_of(path) == 0o600


def test_append_adds_rows(credential_store) -> None:
    credential_store.append('alice', 'Abc123!@#xyz')
    credential_store.append('alice', 'Zyx987)(*cba')

    with open(credential_store.path, encoding='utf-8') as file:
        assert file.read().splitlines() == ['alice:Abc123!@#xyz', 'alice:Zyx987)(*cba']


def test_append_reasserts_permissions(credential_store) -> None:
    os.chmod(credential_store.path, 0o666)

    credential_store.append('bob', 'Password1234')

    assert mode_of(credential_store.path) == 0o600
