"""Audit log setup: timestamped lines to the log file and the console"""
import logging
import os
import sys

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def prepare_log_file(path):
    """
    Create the log file owner-only if it is missing and re-assert mode 600

    :param path: Log file path
    :type path: str
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    descriptor = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
    os.close(descriptor)
    os.chmod(path, 0o600)


def setup_logging(path, level=logging.INFO):
    """
    Send log records to the audit log file and to stdout

    Lines look like ``2024-01-31 09:15:00 [INFO] Created group: dev``.

    :param path: Log file path
    :type path: str
    :param level: Lowest level to record
    :type level: int
    """
    prepare_log_file(path)
    logging.addLevelName(logging.WARNING, 'WARN')
    logging.basicConfig(format=LOG_FORMAT,
                        datefmt=DATE_FORMAT,
                        handlers=[
                            logging.FileHandler(path, mode='a', encoding='utf-8'),
                            logging.StreamHandler(sys.stdout)
                        ],
                        level=level,
                        force=True)
