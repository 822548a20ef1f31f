"""
Error kinds raised by the batch timing analysis.

Load-time errors (MalformedRecord, NegativeDuration) abort a load unless the
caller passes an ``errors`` list to collect them. Aggregate and fit errors
only affect the query that raised them.
"""


class TimingAnalysisError(Exception):
    """Base class for all timing analysis errors."""


class MalformedRecord(TimingAnalysisError, ValueError):
    """A data line could not be parsed into (start, end, step)."""

    def __init__(self, line_number, line, reason):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"line {line_number}: {reason}: {line!r}")


class NegativeDuration(TimingAnalysisError, ValueError):
    """A record ends before it starts."""

    def __init__(self, row, start, end):
        self.row = row
        self.start = start
        self.end = end
        super().__init__(f"row {row}: end {end} is before start {start}")


class EmptyAggregateInput(TimingAnalysisError, ValueError):
    """An aggregate was requested over zero values."""

    def __init__(self, what):
        self.what = what
        super().__init__(f"cannot compute {what} of an empty sequence")


class UnknownGroupKey(TimingAnalysisError, KeyError):
    """A group key matched no rows."""

    def __init__(self, key, available):
        self.key = key
        self.available = sorted(available, key=str)
        super().__init__(f"no rows for group {key!r} (available: {self.available})")

    def __str__(self):
        return self.args[0]


class UnknownColumn(TimingAnalysisError, KeyError):
    """A column name is not part of the table."""

    def __init__(self, name, available):
        self.name = name
        self.available = list(available)
        super().__init__(f"unknown column {name!r} (available: {self.available})")

    def __str__(self):
        return self.args[0]


class DuplicateColumn(TimingAnalysisError, ValueError):
    """A derived column would overwrite an existing one."""

    def __init__(self, name):
        self.name = name
        super().__init__(f"column {name!r} already exists")


class DistributionFitFailure(TimingAnalysisError):
    """A distribution family could not be estimated from the sample."""

    def __init__(self, family, reason):
        self.family = family
        self.reason = reason
        super().__init__(f"{family}: {reason}")
