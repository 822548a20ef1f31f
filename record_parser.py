"""
Parse batch timing logs into timing records.

The input is line oriented. Each batch starts with a header line whose first
token is the batch UUID; the lines that follow are ``start,end,step``
triples with en-NZ formatted timestamps.
"""

import gzip
import re
from collections import namedtuple
from datetime import datetime

from errors import MalformedRecord


TimingRecord = namedtuple('TimingRecord', ['start', 'end', 'step'])

BATCH_HEADER_PATTERN = re.compile(
    r'^[0-9a-f]{8}(?:-[0-9a-f]{4}){3}-[0-9a-f]{12}', re.IGNORECASE
)

# en-NZ first (day before month), then ISO fallbacks
DATE_FORMATS = (
    '%d/%m/%Y %I:%M:%S %p',
    '%d/%m/%Y %H:%M:%S',
    '%d/%m/%Y %I:%M %p',
    '%d/%m/%Y %H:%M',
    '%Y-%m-%d %H:%M:%S.%f',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%dT%H:%M:%S',
)

_MERIDIEM = re.compile(r'\b([ap])\.?\s*m\.?$', re.IGNORECASE)


def read_batch_file(filepath):
    """Read a batch log as UTF-8 text, dropping any byte-order mark (gzipped if the name ends in .gz)."""
    if str(filepath).endswith('.gz'):
        with gzip.open(filepath, 'rt', encoding='utf-8-sig') as f:
            return f.read()
    with open(filepath, 'r', encoding='utf-8-sig') as f:
        return f.read()


def is_batch_header(line):
    """Return True if the line starts with a batch identifier."""
    return BATCH_HEADER_PATTERN.match(line) is not None


def parse_timestamp(text, formats=DATE_FORMATS):
    """
    Parse a timestamp using the first matching format.

    en-NZ renders the meridiem as ``a.m.``/``p.m.``; it is normalised to
    AM/PM before matching.

    Raises:
        ValueError: if no format matches
    """
    value = _MERIDIEM.sub(lambda m: m.group(1).upper() + 'M', text.strip())
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    raise ValueError(f"unrecognised timestamp {text!r}")


def parse_line(line, line_number):
    """
    Parse one data line into a TimingRecord.

    Raises:
        MalformedRecord: wrong field count, bad timestamp or empty step
    """
    fields = [field.strip() for field in line.split(',')]
    if len(fields) != 3:
        raise MalformedRecord(line_number, line, f"expected 3 fields, got {len(fields)}")

    start_text, end_text, step = fields
    try:
        start = parse_timestamp(start_text)
        end = parse_timestamp(end_text)
    except ValueError as e:
        raise MalformedRecord(line_number, line, str(e)) from e

    if not step:
        raise MalformedRecord(line_number, line, "empty step label")

    return TimingRecord(start, end, step)


def parse_records(text, errors=None):
    """
    Parse raw batch log text into an ordered list of TimingRecord.

    Header lines and blank lines are dropped. By default the first malformed
    line raises MalformedRecord. If ``errors`` is a list, malformed lines are
    appended to it and skipped instead.

    Returns:
        list: TimingRecord in input order
    """
    records = []

    if text.startswith('\ufeff'):
        text = text[1:]

    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip() or is_batch_header(line):
            continue

        try:
            records.append(parse_line(line, line_number))
        except MalformedRecord as e:
            if errors is None:
                raise
            errors.append(e)

    return records
