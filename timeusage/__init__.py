"""
Time Usage Analysis

Average daily time spent on primary needs, work and other activities by
working status, sex and age, from American Time Use Survey summary files.
"""

__version__ = "1.0.0"
