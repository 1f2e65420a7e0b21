# ========================
# timeusage/pipeline/models.py
# ========================

"""
Record types shared by the summary and grouping stages.
"""

from dataclasses import dataclass

# Summary and report column names
WORKING = "working"
SEX = "sex"
AGE = "age"
PRIMARY_NEEDS = "primaryNeeds"
WORK = "work"
OTHER = "other"

GROUP_KEY = [WORKING, SEX, AGE]
HOUR_COLUMNS = [PRIMARY_NEEDS, WORK, OTHER]
REPORT_COLUMNS = GROUP_KEY + HOUR_COLUMNS

WORKING_LABELS = ("working", "not working")
SEX_LABELS = ("male", "female")
AGE_LABELS = ("young", "active", "elder")


@dataclass(frozen=True)
class TimeUsageRow:
    """
    One row of the summarised or grouped data set.

    Attributes:
        working: Working status, "working" or "not working"
        sex: "male" or "female"
        age: Life period, "young", "active" or "elder"
        primary_needs: Daily hours spent on primary needs
        work: Daily hours spent working
        other: Daily hours spent on other activities
    """
    working: str
    sex: str
    age: str
    primary_needs: float
    work: float
    other: float

    @property
    def key(self):
        return (self.working, self.sex, self.age)

    def to_dict(self):
        return {
            WORKING: self.working,
            SEX: self.sex,
            AGE: self.age,
            PRIMARY_NEEDS: self.primary_needs,
            WORK: self.work,
            OTHER: self.other,
        }
