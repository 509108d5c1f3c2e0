"""Password generation with fallback randomness sources"""
import base64
import hashlib
import logging
import secrets
import string
import time

PASSWORD_LENGTH = 12
PASSWORD_SYMBOLS = '!@#$%&*()_+-='
PASSWORD_ALPHABET = frozenset(string.ascii_letters + string.digits + PASSWORD_SYMBOLS)
ALPHANUMERIC = frozenset(string.ascii_letters + string.digits)

ENTROPY_DEVICE = '/dev/urandom'
ENTROPY_READ_SIZE = 512
ENTROPY_MAX_BYTES = 8192


def keep_allowed(text, allowed, length):
    """Filter text down to allowed characters and truncate it"""
    return ''.join(character for character in text if character in allowed)[:length]


def password_from_csprng(length=PASSWORD_LENGTH):
    """
    Base64 of 18 random bytes from the OS CSPRNG, filtered to the alphabet

    :param length: Length of password desired
    :type length: int
    :return: Candidate password, possibly shorter than length
    :rtype: str
    """
    encoded = base64.b64encode(secrets.token_bytes(18)).decode('ascii')
    return keep_allowed(encoded, PASSWORD_ALPHABET, length)


def password_from_entropy_device(length=PASSWORD_LENGTH, device=None):
    """
    Raw bytes from the entropy device, keeping the ones in the alphabet

    Reads stop once enough characters are collected or ENTROPY_MAX_BYTES
    have been read.

    :param length: Length of password desired
    :type length: int
    :param device: Path of the entropy device, defaults to ENTROPY_DEVICE
    :type device: str
    :return: Candidate password, possibly shorter than length
    :rtype: str
    """
    if device is None:
        device = ENTROPY_DEVICE
    password = ''
    read_total = 0
    with open(device, 'rb') as source:
        while len(password) < length and read_total < ENTROPY_MAX_BYTES:
            chunk = source.read(ENTROPY_READ_SIZE)
            if not chunk:
                break
            read_total += len(chunk)
            password += keep_allowed(chunk.decode('latin-1'), PASSWORD_ALPHABET,
                                     length - len(password))
    return password


def password_from_clock(length=PASSWORD_LENGTH):
    """
    Last resort: hash the current nanosecond timestamp

    Only alphanumerics are kept.

    :param length: Length of password desired
    :type length: int
    :return: Candidate password
    :rtype: str
    """
    digest = hashlib.sha256(str(time.time_ns()).encode('ascii')).hexdigest()
    encoded = base64.b64encode(digest.encode('ascii')).decode('ascii')
    return keep_allowed(encoded, ALPHANUMERIC, length)


PASSWORD_SOURCES = [
    password_from_csprng,
    password_from_entropy_device,
    password_from_clock,
]
"""Randomness sources in the order they are tried"""


def generate_password(length=PASSWORD_LENGTH, sources=None):
    """
    Generate a random password

    Each source is tried in order until one produces a full-length password.
    A source that errors out or comes up short is skipped. Never raises.

    :param length: Length of password desired
    :type length: int
    :param sources: Override of PASSWORD_SOURCES
    :type sources: list[Callable[[int], str]]
    :return: Randomly generated password
    :rtype: str
    """
    if sources is None:
        sources = PASSWORD_SOURCES
    password = ''
    for source in sources:
        try:
            password = source(length)
        except (OSError, NotImplementedError) as exception:
            logging.debug('Password source %s unavailable: %s', source.__name__, exception)
            continue
        if len(password) >= length:
            return password[:length]
        logging.debug('Password source %s produced only %d characters',
                      source.__name__, len(password))
    return password
