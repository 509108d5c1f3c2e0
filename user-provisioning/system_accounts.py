"""
Functions for interfacing with the local account databases

Must be ran as root. Lookups go through the grp and pwd modules, changes
shell out to the shadow-utils commands (groupadd, useradd, usermod, chpasswd).
"""
import grp
import os
import pwd
import shutil
import subprocess


class ProvisionError(RuntimeError):
    """An account command exited non-zero"""

    def __init__(self, command, stderr=''):
        self.command = command
        self.stderr = (stderr or '').strip()
        message = f"'{' '.join(command)}' failed"
        if self.stderr:
            message += f': {self.stderr}'
        super().__init__(message)


def run_command(command, stdin=None):
    """
    Run an account management command

    :param command: Command and arguments
    :type command: list[str]
    :param stdin: Text sent to the command's standard input
    :type stdin: str
    :raises ProvisionError: if the command exits non-zero
    :returns: Shell output
    :rtype: str
    """
    try:
        output = subprocess.run(command, input=stdin, capture_output=True,
                                check=True, text=True)
    except subprocess.CalledProcessError as exception:
        raise ProvisionError(command, exception.stderr) from exception
    return output.stdout


class SystemAccounts:
    """Group, user, password and home directory operations on this host"""

    def group_exists(self, name):
        """
        Check if a group exists in the group database

        Command equivalent: getent group <name>

        :param str name: Group name
        :returns: True if the group exists
        :rtype: bool
        """
        try:
            grp.getgrnam(name)
        except KeyError:
            return False
        return True

    def create_group(self, name):
        """
        Command: groupadd <name>

        :param str name: Group name
        """
        run_command(['groupadd', name])

    def user_exists(self, name):
        """
        Check if a user exists in the account database

        :param str name: Username
        :returns: True if the account exists
        :rtype: bool
        """
        try:
            pwd.getpwnam(name)
        except KeyError:
            return False
        return True

    def primary_group(self, name):
        """
        Name of a user's current primary group

        :param str name: Username
        :returns: Group name, or the numeric gid if it has no group entry
        :rtype: str
        """
        gid = pwd.getpwnam(name).pw_gid
        try:
            return grp.getgrgid(gid).gr_name
        except KeyError:
            return str(gid)

    def create_user(self, name, home, shell, primary_group, groups=()):
        """
        Create an account with its home directory in one step

        Command: useradd -m -d <home> -s <shell> -g <primary> [-G <g1,g2>] <name>

        :param str name: Username
        :param str home: Home directory path
        :param str shell: Login shell
        :param str primary_group: Primary group name
        :param groups: Supplementary group names
        :type groups: Sequence[str]
        """
        command = ['useradd', '-m', '-d', home, '-s', shell, '-g', primary_group]
        if groups:
            command += ['-G', ','.join(groups)]
        command.append(name)
        run_command(command)

    def set_primary_group(self, name, group):
        """
        Command: usermod -g <group> <name>
        """
        run_command(['usermod', '-g', group, name])

    def add_to_groups(self, name, groups):
        """
        Append a user to supplementary groups, keeping existing memberships

        Command: usermod -a -G <g1,g2> <name>
        """
        run_command(['usermod', '-a', '-G', ','.join(groups), name])

    def set_password(self, name, password):
        """
        Set a password without knowing the old one

        Command: echo '<name>:<password>' | chpasswd
        """
        run_command(['chpasswd'], stdin=f'{name}:{password}\n')

    def home_exists(self, path):
        return os.path.isdir(path)

    def is_link(self, path):
        return os.path.islink(path)

    def make_home(self, path):
        os.makedirs(path, exist_ok=True)

    def chown_tree(self, path, user, group):
        """
        Recursively change ownership of a directory

        Command equivalent: chown -R <user>:<group> <path>
        """
        shutil.chown(path, user, group)
        for root, dirs, files in os.walk(path):
            for entry in dirs + files:
                entry_path = os.path.join(root, entry)
                if os.path.islink(entry_path):
                    os.lchown(entry_path, pwd.getpwnam(user).pw_uid,
                              grp.getgrnam(group).gr_gid)
                else:
                    shutil.chown(entry_path, user, group)

    def set_mode(self, path, mode):
        os.chmod(path, mode)
