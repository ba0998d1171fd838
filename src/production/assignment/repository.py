"""Repository for the Assignment aggregate."""

from protean.exceptions import ObjectNotFoundError

from production.assignment.assignment import Assignment
from production.domain import production
from production.errors import NotFound

# Protean querysets page at 100 records by default
_QUERY_LIMIT = 10_000


@production.repository(part_of=Assignment)
class AssignmentRepository:
    def get_assignment(self, assignment_id: str) -> Assignment:
        try:
            return self.get(str(assignment_id))
        except ObjectNotFoundError:
            raise NotFound("Assignment", assignment_id) from None

    def for_order(self, order_number: str) -> list[Assignment]:
        """All assignments of an order, in item then position order."""
        results = self._dao.query.filter(order_number=order_number).limit(_QUERY_LIMIT).all().items
        return sorted(results, key=lambda a: (str(a.item_id), a.category, a.position or 0))

    def for_item(self, item_id: str) -> list[Assignment]:
        results = self._dao.query.filter(item_id=str(item_id)).limit(_QUERY_LIMIT).all().items
        return sorted(results, key=lambda a: (a.category, a.position or 0))

    def in_category(self, category: str) -> list[Assignment]:
        return self._dao.query.filter(category=category).limit(_QUERY_LIMIT).all().items
