"""Owner-only storage of generated credentials"""
import logging
import os

SECURE_FILE_MODE = 0o600


class CredentialStore:
    """
    Append-only ``username:password`` file

    The file is never read back by this program.

    :param path: Credential file path
    :type path: str
    """

    def __init__(self, path):
        self.path = path

    def prepare(self):
        """
        Create the secure directory and an owner-only credential file

        Must run before the first append so no row is ever written to a
        world-readable file.
        """
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        descriptor = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_APPEND,
                             SECURE_FILE_MODE)
        os.close(descriptor)
        os.chmod(self.path, SECURE_FILE_MODE)

    def append(self, username, password):
        """
        Record a credential and re-apply mode 600 afterwards

        Another process may have loosened the permissions since the last write.

        :param username: Username
        :type username: str
        :param password: Plaintext password that was just set
        :type password: str
        """
        descriptor = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_APPEND,
                             SECURE_FILE_MODE)
        with os.fdopen(descriptor, 'a', encoding='UTF-8') as file:
            file.write(f'{username}:{password}\n')
        os.chmod(self.path, SECURE_FILE_MODE)
        logging.debug('Stored credentials for %s in %s', username, self.path)
