"""Assignment aggregate (CQRS) — one team's production work on an item.

An Assignment asks a single team to produce ``quantity`` units of a
category-specific spec ("5000 glass bottles, 100ml flint"). It carries the
Tracking Ledger: an append-only list of completion entries and their running
total. The ledger is the only source of truth for how much has been made.

Ledger rules:
    total_completed_qty == sum(entry.quantity for entry in completed_entries)
    0 <= total_completed_qty <= quantity
    status == Completed  <=>  total_completed_qty >= quantity
"""

from datetime import UTC, datetime

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String, ValueObject

from production.assignment.events import AssignmentCompleted, CompletionRecorded
from production.domain import production
from production.errors import CapacityExceeded, InvalidRequest
from production.shared.enums import DEFAULT_TEAMS, AssignmentStatus, Category

# Spec fields that identify "the same work" across an order edit
_KEY_FIELDS = (
    "name",
    "material",
    "size",
    "neck_size",
    "neck_type",
    "weight",
    "process",
    "decoration",
    "decoration_no",
    "decoration_details",
    "approval_code",
)

SPEC_FIELDS = _KEY_FIELDS + ("rate_per_1000",)


def _normalize(value) -> str:
    return " ".join(str(value).split()).lower() if value is not None else ""


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@production.value_object(part_of="Assignment")
class AssignmentSpec:
    """What to produce. The fields a team needs on the shop floor."""

    name = String(required=True, max_length=255)
    material = String(max_length=100)
    size = String(max_length=50)
    neck_size = String(max_length=50)
    neck_type = String(max_length=50)
    weight = String(max_length=50)
    process = String(max_length=100)
    decoration = String(max_length=100)
    decoration_no = String(max_length=100)
    decoration_details = String(max_length=500)
    approval_code = String(max_length=100)
    rate_per_1000 = Float(min_value=0.0)

    @classmethod
    def from_payload(cls, data: dict) -> "AssignmentSpec":
        unknown = sorted(set(data) - set(SPEC_FIELDS))
        if unknown:
            raise InvalidRequest({"spec": [f"Unknown spec field(s): {', '.join(unknown)}"]})
        if not data.get("name"):
            raise InvalidRequest({"spec": ["Assignment spec requires a name"]})
        values = {k: v for k, v in data.items() if v is not None}
        for field_name in _KEY_FIELDS:
            if field_name in values:
                values[field_name] = str(values[field_name])
        return cls(**values)

    def key_fields(self) -> tuple:
        return tuple(_normalize(getattr(self, f)) for f in _KEY_FIELDS)

    def to_dict(self) -> dict:
        return {f: getattr(self, f) for f in SPEC_FIELDS if getattr(self, f) is not None}


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@production.entity(part_of="Assignment")
class CompletionEntry:
    """One partial-completion report. Entries are never modified or removed."""

    sequence = Integer(required=True, min_value=1)
    quantity = Integer(required=True, min_value=1)
    completed_at = DateTime(required=True)
    completed_by = String(required=True, max_length=100)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@production.aggregate
class Assignment:
    order_number = String(required=True, max_length=50)
    item_id = Identifier(required=True)
    category = String(required=True, choices=Category)
    position = Integer(default=0)
    team = String(max_length=100)
    spec = ValueObject(AssignmentSpec, required=True)
    quantity = Integer(required=True, min_value=1)
    status = String(
        choices=AssignmentStatus,
        default=AssignmentStatus.PENDING.value,
    )
    total_completed_qty = Integer(default=0, min_value=0)
    completed_entries = HasMany(CompletionEntry)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def completed_quantity_cannot_exceed_ordered(self):
        if (self.total_completed_qty or 0) > (self.quantity or 0):
            raise ValidationError({"total_completed_qty": ["Completed quantity cannot exceed ordered quantity"]})

    @invariant.post
    def status_follows_ledger(self):
        reached = (self.total_completed_qty or 0) >= (self.quantity or 0)
        if reached != (self.status == AssignmentStatus.COMPLETED.value):
            raise ValidationError({"status": ["Status must be Completed exactly when the ordered quantity is reached"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        order_number: str,
        item_id: str,
        category: str,
        spec_data: dict,
        quantity: int,
        team: str | None = None,
        position: int = 0,
    ):
        if category not in DEFAULT_TEAMS:
            raise InvalidRequest({"category": [f"Unknown category '{category}'"]})
        if not _is_positive_int(quantity):
            raise InvalidRequest({"quantity": [f"{category} assignment '{spec_data.get('name')}' needs a positive quantity"]})

        now = datetime.now(UTC)
        return cls(
            order_number=order_number,
            item_id=str(item_id),
            category=category,
            position=position,
            team=team or DEFAULT_TEAMS[category],
            spec=AssignmentSpec.from_payload(spec_data),
            quantity=quantity,
            status=AssignmentStatus.PENDING.value,
            total_completed_qty=0,
            created_at=now,
            updated_at=now,
        )

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def remaining(self) -> int:
        return self.quantity - (self.total_completed_qty or 0)

    @property
    def is_completed(self) -> bool:
        return self.status == AssignmentStatus.COMPLETED.value

    def identity_key(self, item_name: str) -> tuple:
        """Key used to recognise this work when an order is edited."""
        return (_normalize(item_name), self.category) + self.spec.key_fields()

    def ledger(self) -> list:
        """Completion entries in the order they were recorded."""
        return sorted(self.completed_entries or [], key=lambda e: e.sequence)

    # -------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------
    def record_completion(
        self,
        quantity: int,
        completed_by: str,
        completed_at: datetime | None = None,
    ) -> tuple[int, str]:
        """Append a completion entry and return ``(new_total, new_status)``.

        Nothing is mutated when the entry is rejected.
        """
        if not _is_positive_int(quantity):
            raise InvalidRequest({"quantity": [f"Assignment {self.id}: quantity must be a positive integer"]})
        if not completed_by:
            raise InvalidRequest({"author": [f"Assignment {self.id}: completion author is required"]})
        if quantity > self.remaining:
            raise CapacityExceeded(self.id, self.category, quantity, self.remaining)

        now = datetime.now(UTC)
        completed_at = completed_at or now
        new_total = (self.total_completed_qty or 0) + quantity
        just_completed = not self.is_completed and new_total >= self.quantity

        with atomic_change(self):
            self.add_completed_entries(
                CompletionEntry(
                    sequence=len(self.completed_entries or []) + 1,
                    quantity=quantity,
                    completed_at=completed_at,
                    completed_by=completed_by,
                )
            )
            self.total_completed_qty = new_total
            if new_total >= self.quantity:
                self.status = AssignmentStatus.COMPLETED.value
            self.updated_at = now

        self.raise_(
            CompletionRecorded(
                assignment_id=str(self.id),
                order_number=self.order_number,
                item_id=str(self.item_id),
                category=self.category,
                quantity=quantity,
                completed_by=completed_by,
                completed_at=completed_at,
                total_completed_qty=new_total,
                status=self.status,
            )
        )
        if just_completed:
            self.raise_(
                AssignmentCompleted(
                    assignment_id=str(self.id),
                    order_number=self.order_number,
                    item_id=str(self.item_id),
                    category=self.category,
                    quantity=self.quantity,
                    completed_at=completed_at,
                )
            )
        return new_total, self.status

    # -------------------------------------------------------------------
    # Order edits
    # -------------------------------------------------------------------
    def carry_over(self, previous: "Assignment") -> None:
        """Take over the ledger of the assignment this one replaces."""
        carried = previous.total_completed_qty or 0
        if carried > self.quantity:
            raise InvalidRequest(
                {
                    "quantity": [
                        f"{self.category} assignment '{self.spec.name}' already has {carried} unit(s) "
                        f"completed; quantity {self.quantity} is too low"
                    ]
                }
            )

        with atomic_change(self):
            for entry in previous.ledger():
                self.add_completed_entries(
                    CompletionEntry(
                        sequence=entry.sequence,
                        quantity=entry.quantity,
                        completed_at=entry.completed_at,
                        completed_by=entry.completed_by,
                    )
                )
            self.total_completed_qty = carried
            self.status = (
                AssignmentStatus.COMPLETED.value if carried >= self.quantity else AssignmentStatus.PENDING.value
            )
            self.updated_at = datetime.now(UTC)


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0
