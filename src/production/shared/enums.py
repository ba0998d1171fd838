"""Shared vocabulary of the production domain: categories and status values."""

from enum import Enum


class Category(Enum):
    """Production disciplines an assignment can belong to."""

    GLASS = "glass"
    CAPS = "caps"
    BOXES = "boxes"
    PUMPS = "pumps"


# Team that picks up a category when the order does not name one
DEFAULT_TEAMS = {
    Category.GLASS.value: "Glass",
    Category.CAPS.value: "Caps",
    Category.BOXES.value: "Boxes",
    Category.PUMPS.value: "Pumps",
}

CATEGORIES = tuple(c.value for c in Category)


class AssignmentStatus(Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class TeamStatus(Enum):
    """Status of one category of work on an item."""

    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


class OrderStatus(Enum):
    PENDING = "Pending"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"


class QcStatus(Enum):
    """Quality-control verdict. An order without a verdict has ``qc_status = None``."""

    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
