"""Functions for reading the user list file"""
from collections import namedtuple

UserRecord = namedtuple('UserRecord', ('username', 'groups'))
"""A requested account: username and its ordered supplementary groups"""

ParsedLine = namedtuple('ParsedLine', ('line_no', 'kind', 'record'))
"""One meaningful input line. kind is one of the KIND_* constants"""

KIND_COMMENT = 'comment'
KIND_RECORD = 'record'
KIND_MISSING_USERNAME = 'missing_username'
KIND_UNDECODABLE = 'undecodable'


def remove_whitespace(text):
    """Strip every whitespace character, not just the edges"""
    return ''.join(text.split())


def parse_line(line, line_no):
    """
    Parse a single line of the user list

    Lines look like ``username;group1,group2``. Whitespace anywhere on the line
    is ignored. A line without a ``;`` is treated as a username with no groups.

    :param line: Raw line from the file
    :type line: str
    :param line_no: 1-based line number, carried for error messages
    :type line_no: int
    :return: Parsed line, or None if the line is blank
    :rtype: ParsedLine
    """
    line = line.strip()
    if not line:
        return None
    if line.startswith('#'):
        return ParsedLine(line_no, KIND_COMMENT, None)

    username, _, group_list = line.partition(';')
    username = remove_whitespace(username)
    group_list = remove_whitespace(group_list)

    if not username:
        return ParsedLine(line_no, KIND_MISSING_USERNAME, None)

    groups = []
    for group in group_list.split(','):
        if group and group not in groups:
            groups.append(group)

    return ParsedLine(line_no, KIND_RECORD, UserRecord(username, tuple(groups)))


def read_user_file(filepath):
    """
    Lazily read a user list file

    Blank lines are dropped. Comment lines, lines without a username and lines
    that are not valid UTF-8 are still yielded so the caller can report them.

    :param filepath: Path to input file
    :type filepath: str
    :return: Generator of parsed lines in file order
    :rtype: Iterator[ParsedLine]
    """
    with open(filepath, 'rb') as file:
        for line_no, raw_line in enumerate(file, start=1):
            try:
                line = raw_line.decode('UTF-8')
            except UnicodeDecodeError:
                yield ParsedLine(line_no, KIND_UNDECODABLE, None)
                continue
            parsed = parse_line(line, line_no)
            if parsed is not None:
                yield parsed
