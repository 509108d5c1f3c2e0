"""
Functions that bring groups, accounts and home directories to the requested state

Every function here takes an account provider (see system_accounts.SystemAccounts)
so it can run against a fake in tests. Failures are logged and reported through
return values; nothing raises past a single step.
"""
import logging
import subprocess
from system_accounts import ProvisionError

HOME_MODE = 0o700

ACCOUNT_ERRORS = (ProvisionError, subprocess.CalledProcessError, OSError)
"""Errors a provider call may raise that are handled per step"""


def ensure_group(accounts, name):
    """
    Create a group if it does not already exist

    :param accounts: Account provider
    :type accounts: SystemAccounts
    :param name: Group name, empty names are ignored
    :type name: str
    :return: True if the group exists afterwards
    :rtype: bool
    """
    if not name:
        return False
    if accounts.group_exists(name):
        return True
    try:
        accounts.create_group(name)
    except ACCOUNT_ERRORS as exception:
        logging.error('Failed to create group: %s (%s)', name, exception)
        return False
    logging.info('Created group: %s', name)
    return True


def update_existing_user(accounts, username, primary_group, supplementary_groups):
    """
    Align an existing account's primary group and add supplementary groups

    Supplementary groups are only ever added. Memberships the user already has
    are left alone even if they are not listed.

    :param accounts: Account provider
    :type accounts: SystemAccounts
    :param username: Username
    :type username: str
    :param primary_group: Desired primary group
    :type primary_group: str
    :param supplementary_groups: Groups the user must be a member of
    :type supplementary_groups: Sequence[str]
    """
    logging.info("User '%s' already exists. Will update groups/home/password as needed.",
                 username)

    if accounts.group_exists(primary_group):
        try:
            current_primary_group = accounts.primary_group(username)
            if current_primary_group != primary_group:
                accounts.set_primary_group(username, primary_group)
                logging.info('Set primary group for %s -> %s', username, primary_group)
        except (KeyError,) + ACCOUNT_ERRORS as exception:
            logging.warning('Failed to set primary group for %s -> %s: %s',
                            username, primary_group, exception)

    if supplementary_groups:
        group_list = ','.join(supplementary_groups)
        try:
            accounts.add_to_groups(username, supplementary_groups)
        except ACCOUNT_ERRORS as exception:
            logging.warning('Failed to add %s to supplementary groups: %s (%s)',
                            username, group_list, exception)
        else:
            logging.info('Added %s to supplementary groups: %s', username, group_list)


def ensure_home(accounts, home, username, primary_group):
    """
    Make sure a home directory exists, belongs to the user and is mode 700

    Every failure here is a warning only. A home path that is a symlink is
    left untouched so its target is never re-owned.

    :param accounts: Account provider
    :type accounts: SystemAccounts
    :param home: Home directory path
    :type home: str
    :param username: Owner
    :type username: str
    :param primary_group: Owning group
    :type primary_group: str
    """
    if accounts.is_link(home):
        logging.warning('Home directory %s is a symlink, not changing ownership or mode', home)
        return

    if not accounts.home_exists(home):
        try:
            accounts.make_home(home)
        except OSError as exception:
            logging.warning('Failed to create home directory %s: %s', home, exception)
        else:
            logging.info('Created home directory: %s', home)

    try:
        accounts.chown_tree(home, username, primary_group)
    except (LookupError,) + ACCOUNT_ERRORS:
        logging.warning('Failed to chown %s', home)

    try:
        accounts.set_mode(home, HOME_MODE)
    except ACCOUNT_ERRORS:
        logging.warning('Failed to chmod %s', home)


def ensure_user(accounts, config, username, primary_group, supplementary_groups=()):
    """
    Create or update an account, then enforce its home directory

    :param accounts: Account provider
    :type accounts: SystemAccounts
    :param config: Provisioning settings (home location, shell)
    :type config: ProvisionConfig
    :param username: Username
    :type username: str
    :param primary_group: Primary group name
    :type primary_group: str
    :param supplementary_groups: Supplementary group names
    :type supplementary_groups: Sequence[str]
    :return: False only if the account could not be created
    :rtype: bool
    """
    home = config.home_dir(username)

    if accounts.user_exists(username):
        update_existing_user(accounts, username, primary_group, supplementary_groups)
    else:
        try:
            accounts.create_user(username, home, config.shell, primary_group,
                                 supplementary_groups)
        except ACCOUNT_ERRORS as exception:
            logging.error('Failed to create user: %s (%s)', username, exception)
            return False
        logging.info('Created user: %s (primary group: %s, supplementary: %s)',
                     username, primary_group, ','.join(supplementary_groups) or 'none')

    ensure_home(accounts, home, username, primary_group)
    return True
