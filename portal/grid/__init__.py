"""
Staff grid makers.

A grid maker turns a queryable model into what the staff admin table needs:
the base query, the ordered column keys, filter and sort metadata, and one
flat row per record.
"""

from portal.grid.base import GridMaker, GridPage  # noqa: F401
from portal.grid.circles import CirclesGridMaker  # noqa: F401
