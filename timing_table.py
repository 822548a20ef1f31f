"""
Column-oriented table of step timing records.

Columns are read-only numpy arrays aligned to row order. Derived columns can
be appended but never replaced; filtering and grouping build new tables.
"""

import numpy as np

from errors import DuplicateColumn, NegativeDuration, UnknownColumn


START = 'start'
END = 'end'
STEP = 'step'
DURATION = 'duration'
HOUR_OF_DAY = 'hour_of_day'
HOURS_SINCE_ORIGIN = 'hours_since_origin'

DEFAULT_ORIGIN_ROW = 1

ONE_SECOND = np.timedelta64(1, 's')
ONE_HOUR = np.timedelta64(1, 'h')


def _frozen(values, dtype=None):
    array = np.asarray(values, dtype=dtype)
    array.flags.writeable = False
    return array


def _to_python(value):
    if isinstance(value, np.generic):
        return value.item()
    return value


class TimingTable:
    """An ordered, append-only-columns table of timing rows."""

    def __init__(self, columns):
        lengths = {len(values) for values in columns.values()}
        if len(lengths) > 1:
            raise ValueError(f"columns have mismatched lengths: {sorted(lengths)}")
        self._columns = {name: _frozen(values) for name, values in columns.items()}

    @classmethod
    def load(cls, records, errors=None):
        """
        Build a table from TimingRecord rows and compute ``duration``.

        A record ending before it starts raises NegativeDuration. If
        ``errors`` is a list, the error is appended there and the row is
        left out of the table instead.
        """
        starts, ends, steps = [], [], []

        for row, record in enumerate(records):
            if record.end < record.start:
                error = NegativeDuration(row, record.start, record.end)
                if errors is None:
                    raise error
                errors.append(error)
                continue
            starts.append(record.start)
            ends.append(record.end)
            steps.append(record.step)

        start = np.array(starts, dtype='datetime64[us]')
        end = np.array(ends, dtype='datetime64[us]')
        duration = (end - start) / ONE_SECOND

        return cls({
            START: start,
            END: end,
            STEP: np.array(steps, dtype=object),
            DURATION: duration.astype(float),
        })

    def __len__(self):
        for values in self._columns.values():
            return len(values)
        return 0

    def __repr__(self):
        return f"TimingTable(rows={len(self)}, columns={self.column_names})"

    @property
    def column_names(self):
        return list(self._columns)

    def column(self, name):
        """Return one column as a read-only array aligned to row order."""
        try:
            return self._columns[name]
        except KeyError:
            raise UnknownColumn(name, self._columns) from None

    def rows(self):
        """Yield each row as a dict of column name -> Python value."""
        names = self.column_names
        for i in range(len(self)):
            yield {name: _to_python(self._columns[name][i]) for name in names}

    def add_derived_column(self, name, row_fn):
        """Append a column computed from each row. Returns the table."""
        if name in self._columns:
            raise DuplicateColumn(name)
        values = [row_fn(row) for row in self.rows()]
        self._columns[name] = _frozen(values)
        return self

    def take(self, indices):
        """Return a new table holding the rows at ``indices`` in that order."""
        indices = np.asarray(indices, dtype=int)
        return TimingTable({name: values[indices] for name, values in self._columns.items()})

    def filter(self, predicate):
        """Return a new table with the rows for which ``predicate(row)`` holds."""
        keep = [i for i, row in enumerate(self.rows()) if predicate(row)]
        return self.take(keep)

    def group_by(self, key_fn):
        """
        Partition rows by ``key_fn(row)``.

        Returns:
            dict: {key: TimingTable} with row order kept within each group
        """
        partitions = {}
        for i, row in enumerate(self.rows()):
            partitions.setdefault(key_fn(row), []).append(i)
        return {key: self.take(indices) for key, indices in partitions.items()}

    def group_by_column(self, name):
        """Partition rows by the value of one column."""
        self.column(name)
        return self.group_by(lambda row: row[name])


def add_hour_of_day(table):
    """Append the hour (0-23) of each row's start time."""
    return table.add_derived_column(HOUR_OF_DAY, lambda row: row[START].hour)


def add_hours_since_origin(table, origin_row=DEFAULT_ORIGIN_ROW):
    """
    Append whole hours elapsed between the origin row's start and each start.

    Values are floored, so rows before the origin (unsorted data) come out
    negative.
    """
    starts = table.column(START)
    if not 0 <= origin_row < len(starts):
        raise IndexError(f"origin row {origin_row} out of range for {len(starts)} rows")
    origin = starts[origin_row]
    return table.add_derived_column(
        HOURS_SINCE_ORIGIN,
        lambda row: int((np.datetime64(row[START], 'us') - origin) // ONE_HOUR),
    )
