"""
Provision local Linux accounts in bulk from a user list file

Usage: sudo provision-users <users_file>

Each line of the file is ``username;group1,group2``. For every line the groups
and the user's own primary group are created if missing, the account is created
or updated, its home directory is locked down and a new random password is set
and appended to the credential file.
"""
import argparse
import logging
import os
import sys
from collections import Counter, namedtuple
from audit_log import setup_logging
from config import ProvisionConfig
from credentials import CredentialStore
from parse_users import \
    KIND_COMMENT, \
    KIND_MISSING_USERNAME, \
    KIND_UNDECODABLE, \
    read_user_file
from passwords import generate_password
from reconcile import \
    ACCOUNT_ERRORS, \
    ensure_group, \
    ensure_user
from system_accounts import SystemAccounts

EXIT_OK = 0
EXIT_PRECONDITION = 2

STATUS_SUCCESS = 'success'
STATUS_SKIPPED = 'skipped'
STATUS_FAILED = 'failed'

RecordOutcome = namedtuple('RecordOutcome', ('line_no', 'username', 'status', 'detail'))
"""Result of processing one input line"""


def provision_record(record, line_no, accounts, config, credential_store):
    """
    Run one user through the whole pipeline

    Workflow:
        1. Ensure supplementary groups exist
        2. Ensure the primary group (same name as the user) exists
        3. Create or update the account and enforce its home directory
        4. Generate and set a password
        5. Append the credential to the credential file

    :param record: Parsed user entry
    :type record: UserRecord
    :param int line_no: Line number in the input file
    :param accounts: Account provider
    :type accounts: SystemAccounts
    :param config: Provisioning settings
    :type config: ProvisionConfig
    :param credential_store: Credential file
    :type credential_store: CredentialStore
    :returns: Outcome of the record
    :rtype: RecordOutcome
    """
    username = record.username

    for group in record.groups:
        ensure_group(accounts, group)
    ensure_group(accounts, username)

    if not ensure_user(accounts, config, username, username, record.groups):
        logging.error('Line %d: Failed to create/update user %s', line_no, username)
        return RecordOutcome(line_no, username, STATUS_FAILED, 'account creation failed')

    password = generate_password(config.password_length)
    try:
        accounts.set_password(username, password)
    except ACCOUNT_ERRORS as exception:
        logging.error('Failed to set password for user: %s (%s)', username, exception)
        print(f"ERROR: Failed to set password for user '{username}'")
        return RecordOutcome(line_no, username, STATUS_FAILED, 'password assignment failed')

    try:
        credential_store.append(username, password)
    except OSError as exception:
        logging.error('Password set for user: %s but storing credentials failed: %s',
                      username, exception)
        return RecordOutcome(line_no, username, STATUS_FAILED, 'credential store failed')

    logging.info('Set password for user: %s and stored credentials.', username)
    print(f"Created/updated user '{username}' with home {config.home_dir(username)}")
    return RecordOutcome(line_no, username, STATUS_SUCCESS, 'provisioned')


def process_file(filepath, accounts, config, credential_store):
    """
    Provision every user listed in a file

    A failing line never stops the run, it is logged and the next line is
    processed.

    :param str filepath: Path to the user list
    :param accounts: Account provider
    :type accounts: SystemAccounts
    :param config: Provisioning settings
    :type config: ProvisionConfig
    :param credential_store: Credential file
    :type credential_store: CredentialStore
    :returns: One outcome per comment, invalid line or user entry
    :rtype: list[RecordOutcome]
    """
    outcomes = []
    for parsed in read_user_file(filepath):
        if parsed.kind == KIND_COMMENT:
            logging.info('Skipping comment line %d', parsed.line_no)
            outcomes.append(RecordOutcome(parsed.line_no, None, STATUS_SKIPPED, 'comment'))
        elif parsed.kind == KIND_MISSING_USERNAME:
            logging.error('Line %d: No username found. Skipping.', parsed.line_no)
            outcomes.append(RecordOutcome(parsed.line_no, None, STATUS_FAILED,
                                          'no username'))
        elif parsed.kind == KIND_UNDECODABLE:
            logging.error('Line %d: Not valid UTF-8. Skipping.', parsed.line_no)
            outcomes.append(RecordOutcome(parsed.line_no, None, STATUS_FAILED,
                                          'not valid UTF-8'))
        else:
            username = parsed.record.username
            try:
                outcome = provision_record(parsed.record, parsed.line_no, accounts,
                                           config, credential_store)
            except (ValueError, LookupError) + ACCOUNT_ERRORS as exception:
                logging.error('Line %d: Failed to create/update user %s (%s)',
                              parsed.line_no, username, exception)
                outcome = RecordOutcome(parsed.line_no, username, STATUS_FAILED, str(exception))
            outcomes.append(outcome)
    return outcomes


def summarize(outcomes):
    """
    Count outcomes per status

    :param outcomes: Outcomes of a run
    :type outcomes: list[RecordOutcome]
    :returns: Mapping of status to count, every status present
    :rtype: dict
    """
    counts = Counter(outcome.status for outcome in outcomes)
    return {status: counts.get(status, 0)
            for status in (STATUS_SUCCESS, STATUS_SKIPPED, STATUS_FAILED)}


def check_preconditions(input_file, config):
    """
    Validate privilege and input file before touching anything

    :param input_file: Input path from the command line, may be None
    :type input_file: str
    :param config: Provisioning settings
    :type config: ProvisionConfig
    :returns: Error message, or None if the run can proceed
    :rtype: str
    """
    if config.require_root and os.geteuid() != 0:
        return 'ERROR: This script must be run as root (or with sudo).'
    if not input_file:
        return f'Usage: sudo {os.path.basename(sys.argv[0])} <users_file>'
    if not os.path.isfile(input_file):
        return f"ERROR: Input file '{input_file}' not found."
    return None


def build_arg_parser():
    parser = argparse.ArgumentParser(
        description='Create or update Linux users, groups and passwords from a file.')
    parser.add_argument('input_file', nargs='?',
                        help='user list, one "username;group1,group2" per line')
    return parser


def main(argv=None, config=None, accounts=None):
    """
    Provision users listed in the file given on the command line

    :param argv: Command line arguments, defaults to sys.argv[1:]
    :type argv: list[str]
    :param config: Provisioning settings, defaults to the fixed system paths
    :type config: ProvisionConfig
    :param accounts: Account provider, defaults to SystemAccounts
    :type accounts: SystemAccounts
    :returns: Process exit status
    :rtype: int
    """
    if config is None:
        config = ProvisionConfig()
    if accounts is None:
        accounts = SystemAccounts()
    args = build_arg_parser().parse_args(argv)

    error = check_preconditions(args.input_file, config)
    if error is not None:
        print(error, file=sys.stderr)
        return EXIT_PRECONDITION

    credential_store = CredentialStore(config.password_file)
    credential_store.prepare()
    setup_logging(config.log_file)
    logging.info("Starting user provisioning from '%s'", args.input_file)

    outcomes = process_file(args.input_file, accounts, config, credential_store)

    counts = summarize(outcomes)
    logging.info('Processed %d entries: %d succeeded, %d skipped, %d failed',
                 len(outcomes), counts[STATUS_SUCCESS], counts[STATUS_SKIPPED],
                 counts[STATUS_FAILED])
    logging.info('User provisioning completed.')
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
