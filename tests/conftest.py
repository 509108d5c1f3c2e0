"""Shared fixtures: an in-memory account provider and temporary-path settings."""

import logging

import pytest

from config import ProvisionConfig
from credentials import CredentialStore
from system_accounts import ProvisionError


class FakeAccounts:
    """Account provider that keeps groups, users and homes in dictionaries."""

    def __init__(self) -> None:
        self.groups: dict[str, set[str]] = {}
        self.users: dict[str, dict] = {}
        self.passwords: dict[str, str] = {}
        self.homes: dict[str, dict] = {}
        self.calls: list[tuple] = []
        self.fail_groups: set[str] = set()
        self.fail_users: set[str] = set()
        self.fail_passwords: set[str] = set()
        self.fail_chown = False
        self.fail_chmod = False
        self.links: set[str] = set()

    # groups
    def group_exists(self, name):
        if '\x00' in name:
            raise ValueError('embedded null byte')
        return name in self.groups

    def create_group(self, name):
        self.calls.append(('create_group', name))
        if name in self.fail_groups or name in self.groups:
            raise ProvisionError(['groupadd', name], f"groupadd: cannot create group '{name}'")
        self.groups[name] = set()

    # users
    def user_exists(self, name):
        if '\x00' in name:
            raise ValueError('embedded null byte')
        return name in self.users

    def primary_group(self, name):
        return self.users[name]['primary']

    def create_user(self, name, home, shell, primary_group, groups=()):
        self.calls.append(('create_user', name))
        missing = [g for g in (primary_group, *groups) if g not in self.groups]
        if name in self.fail_users or missing:
            raise ProvisionError(['useradd', name], f"useradd: cannot create user '{name}'")
        self.users[name] = {'primary': primary_group, 'home': home, 'shell': shell}
        for group in groups:
            self.groups[group].add(name)
        self.homes[home] = {'owner': None, 'mode': None}

    def set_primary_group(self, name, group):
        self.calls.append(('set_primary_group', name, group))
        self.users[name]['primary'] = group

    def add_to_groups(self, name, groups):
        self.calls.append(('add_to_groups', name, tuple(groups)))
        missing = [g for g in groups if g not in self.groups]
        if missing:
            raise ProvisionError(['usermod', name], f"usermod: group '{missing[0]}' does not exist")
        for group in groups:
            self.groups[group].add(name)

    def supplementary_groups(self, name):
        return {group for group, members in self.groups.items() if name in members}

    def set_password(self, name, password):
        self.calls.append(('set_password', name))
        if name in self.fail_passwords:
            raise ProvisionError(['chpasswd'], f'chpasswd: (user {name}) pam_chauthtok() failed')
        self.passwords[name] = password

    # home directories
    def home_exists(self, path):
        return path in self.homes

    def is_link(self, path):
        return path in self.links

    def make_home(self, path):
        self.calls.append(('make_home', path))
        self.homes[path] = {'owner': None, 'mode': None}

    def chown_tree(self, path, user, group):
        if self.fail_chown:
            raise PermissionError(1, 'Operation not permitted', path)
        self.homes[path]['owner'] = (user, group)

    def set_mode(self, path, mode):
        if self.fail_chmod:
            raise PermissionError(1, 'Operation not permitted', path)
        self.homes[path]['mode'] = mode


@pytest.fixture
def accounts() -> FakeAccounts:
    """Create an empty fake account provider."""
    return FakeAccounts()


@pytest.fixture
def config(tmp_path) -> ProvisionConfig:
    """Settings pointing every output at a temporary directory."""
    return ProvisionConfig(
        password_file=str(tmp_path / 'secure' / 'user_passwords.txt'),
        log_file=str(tmp_path / 'log' / 'user_management.log'),
        home_base='/home',
        require_root=False,
    )


@pytest.fixture
def credential_store(config) -> CredentialStore:
    """A prepared credential store in the temporary directory."""
    store = CredentialStore(config.password_file)
    store.prepare()
    return store


@pytest.fixture
def write_users(tmp_path):
    """Write a user list file and return its path."""

    def _write(content: str, name: str = 'users.txt') -> str:
        path = tmp_path / name
        path.write_text(content, encoding='utf-8')
        return str(path)

    return _write


@pytest.fixture(autouse=True)
def reset_root_logger():
    """Drop handlers installed by setup_logging during a test."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if type(handler) in (logging.FileHandler, logging.StreamHandler):
            root.removeHandler(handler)
            handler.close()
