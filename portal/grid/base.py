"""
GridMaker: the contract between a model and the staff admin table.

Subclasses describe *what* the table shows (``base_query``, ``columns``,
``filterable_keys``, ``map``); ``get_page`` is the generic runner that
applies filters and sorting, pages through the result and maps each record
into a row.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import timezone

from portal.core.exceptions import ValidationError
from portal.grid.columns import Column
from portal.grid.filters import apply_filters

DIRECTIONS = ("asc", "desc")


@dataclass
class GridPage:
    """One page of mapped grid rows plus the paging window that produced it."""

    total: int
    limit: int
    offset: int
    records: list[dict] = field(default_factory=list)


class GridMaker(ABC):
    """Base class for grid makers over a single mapped model."""

    #: Mapped class the grid lists; filters and sorting address its table.
    model = None

    #: Zone timestamps are shown in; datetime filter values are read in it too.
    display_tz = timezone.utc

    @abstractmethod
    def base_query(self):
        """Return the query every listing starts from, with eager loads applied."""

    @abstractmethod
    def columns(self) -> list[Column]:
        """Return the ordered column descriptors of the grid."""

    @abstractmethod
    def filterable_keys(self) -> dict:
        """Return the filter descriptor of every filterable key."""

    @abstractmethod
    def map(self, record) -> dict:
        """Turn one fetched record into a row keyed by column key."""

    def keys(self) -> list[str]:
        return [column.key for column in self.columns()]

    def sortable_keys(self) -> list[str]:
        return [column.key for column in self.columns() if column.sortable]

    def get_page(
        self,
        limit: int,
        offset: int = 0,
        order_by: str | None = None,
        direction: str = "asc",
        filters: list[dict] | None = None,
        mode: str = "and",
    ) -> GridPage:
        """Run the grid query and map one page of records.

        Args:
            limit: Maximum number of rows to return.
            offset: Number of rows to skip.
            order_by: A key from ``sortable_keys()``; defaults to the primary key.
            direction: ``"asc"`` or ``"desc"``.
            filters: Filter items checked against ``filterable_keys()``.
            mode: ``"and"`` / ``"or"`` combination of the filter items.

        Raises:
            ValidationError: On an unsortable key, unknown direction or bad filter.
        """
        if direction not in DIRECTIONS:
            raise ValidationError(
                f"Unknown sort direction '{direction}'", details={"direction": list(DIRECTIONS)},
            )
        if order_by is not None and order_by not in self.sortable_keys():
            raise ValidationError(
                f"'{order_by}' is not sortable", details={"sortable_keys": self.sortable_keys()},
            )

        query = apply_filters(
            self.base_query(), self.model, self.filterable_keys(), filters or [], mode,
            tz=self.display_tz,
        )
        total = query.order_by(None).count()

        pk = self.model.__table__.c.id
        sort_column = self.model.__table__.c[order_by] if order_by else pk
        ordering = [sort_column.desc() if direction == "desc" else sort_column.asc()]
        if sort_column is not pk:
            # Rows with equal sort values keep a stable order across pages
            ordering.append(pk.asc())

        records = query.order_by(*ordering).limit(limit).offset(offset).all()
        return GridPage(
            total=total,
            limit=limit,
            offset=offset,
            records=[self.map(record) for record in records],
        )
