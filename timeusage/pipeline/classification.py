# ========================
# timeusage/pipeline/classification.py
# ========================

"""
Column Classification Module

Partitions the activity columns of the survey into three groups:

1. "primary needs" (sleeping, eating, ...): columns starting with t01, t03,
   t11, t1801 and t1803.
2. work: columns starting with t05 and t1805.
3. other (leisure): columns starting with t02, t04, t06, t07, t08, t09, t10,
   t12, t13, t14, t15, t16 and t18, when not already in one of the groups
   above.

Work-related travel (t1805) matches both the work and the t18 rules. It is
counted as work only, so that no column is summed into two groups; earlier
versions of this analysis also added it to "other".

See https://www.kaggle.com/bls/american-time-use-survey for the activity codes.
"""

import logging
from typing import Iterable, NamedTuple, Tuple

logger = logging.getLogger(__name__)

PRIMARY_NEEDS_PREFIXES = ("t01", "t03", "t11", "t1801", "t1803")
WORKING_PREFIXES = ("t05", "t1805")
OTHER_PREFIXES = (
    "t02", "t04", "t06", "t07", "t08", "t09", "t10",
    "t12", "t13", "t14", "t15", "t16", "t18",
)


class ClassifiedColumns(NamedTuple):
    """Column names of each activity group, in header order."""
    primary_needs: Tuple[str, ...]
    work: Tuple[str, ...]
    other: Tuple[str, ...]


def is_primary_needs(column_name: str) -> bool:
    return column_name.startswith(PRIMARY_NEEDS_PREFIXES)


def is_working(column_name: str) -> bool:
    return column_name.startswith(WORKING_PREFIXES)


def is_other(column_name: str) -> bool:
    # t18 also covers the travel codes t1801, t1803 and t1805
    return (column_name.startswith(OTHER_PREFIXES)
            and not is_primary_needs(column_name)
            and not is_working(column_name))


def classify(column_names: Iterable[str]) -> ClassifiedColumns:
    """
    Split column names into primary needs, work and other activities.

    Columns that match no group (the identifier, the demographic codes, ...)
    are left out.

    Args:
        column_names: Column names in header order

    Returns:
        ClassifiedColumns: The three disjoint groups
    """
    primary_needs, work, other = [], [], []
    unclassified = 0

    for name in column_names:
        if is_primary_needs(name):
            primary_needs.append(name)
        elif is_working(name):
            work.append(name)
        elif is_other(name):
            other.append(name)
        else:
            unclassified += 1

    logger.info(
        f"Classified columns: {len(primary_needs)} primary needs, {len(work)} work, "
        f"{len(other)} other ({unclassified} unclassified)"
    )
    return ClassifiedColumns(tuple(primary_needs), tuple(work), tuple(other))
