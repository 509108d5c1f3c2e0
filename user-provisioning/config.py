"""Runtime settings for user provisioning"""
import os

PASSWORD_FILE = '/var/secure/user_passwords.txt'
LOG_FILE = '/var/log/user_management.log'
HOME_BASE = '/home'
DEFAULT_SHELL = '/bin/bash'
PASSWORD_LENGTH = 12


class ProvisionConfig:
    """
    Settings passed through the provisioning pipeline

    The command line always runs with the defaults, the paths are not
    meant to be changed by operators. Tests point them at a temporary directory.

    :param password_file: file that receives username:password rows
    :type password_file: str
    :param log_file: audit log file
    :type log_file: str
    :param home_base: directory under which home directories are created
    :type home_base: str
    :param shell: login shell for new accounts
    :type shell: str
    :param password_length: length of generated passwords
    :type password_length: int
    :param require_root: refuse to run unless the effective uid is 0
    :type require_root: bool
    """

    def __init__(self, password_file=PASSWORD_FILE, log_file=LOG_FILE,
                 home_base=HOME_BASE, shell=DEFAULT_SHELL,
                 password_length=PASSWORD_LENGTH, require_root=True):
        self.password_file = password_file
        self.log_file = log_file
        self.home_base = home_base
        self.shell = shell
        self.password_length = password_length
        self.require_root = require_root

    @property
    def secure_dir(self):
        """Directory holding the credential file"""
        return os.path.dirname(self.password_file)

    def home_dir(self, username):
        """
        Home directory path for a given user

        :param username: Username
        :type username: str
        :return: Path of the user's home directory
        :rtype: str
        """
        return os.path.join(self.home_base, username)
