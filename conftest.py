"""
Shared fixtures for the roll tracking tests.
"""
from datetime import datetime
import pytest

from rolltrack.schemas import Roll

RENDERED_AT = datetime(2024, 3, 15, 14, 30)


def make_roll(**overrides) -> Roll:
    """Build a roll with sensible defaults; keyword arguments override fields"""
    data = {
        "roll_id": 1,
        "roll_number": "R-001",
        "roll_seq": 1,
        "stage": "film",
        "weight_kg": "12.5",
        "created_at": datetime(2024, 3, 1, 9, 0),
        "production_order_id": 10,
        "production_order_number": "PO-010",
        "order_id": 100,
        "order_number": "ORD-100",
        "customer_id": "C1",
        "customer_name": "Acme Plastics",
    }
    data.update(overrides)
    return Roll(**data)


@pytest.fixture
def rendered_at():
    return RENDERED_AT


@pytest.fixture
def scenario_rolls():
    """Two rolls: R-001 on film and R-002 done"""
    return [
        make_roll(roll_id=1, roll_number="R-001", stage="film", weight_kg="12.5",
                  created_at=datetime(2024, 3, 1, 9, 0)),
        make_roll(roll_id=2, roll_number="R-002", stage="done", weight_kg="8.333",
                  created_at=datetime(2024, 3, 2, 16, 45)),
    ]


@pytest.fixture
def mixed_rolls():
    """A small pipeline across customers, orders and stages"""
    return [
        make_roll(roll_id=1, roll_number="R-001", stage="film", weight_kg="10",
                  created_at=datetime(2024, 3, 1, 8, 0), customer_id="C1",
                  customer_name="Acme Plastics", item_name="Shopping Bag"),
        make_roll(roll_id=2, roll_number="R-002", stage="printing", weight_kg="20.25",
                  created_at=datetime(2024, 3, 2, 8, 0), customer_id="C2",
                  customer_name="Blue Sea Foods", customer_name_localized="شركة البحر الأزرق",
                  production_order_id=11, production_order_number="PO-011",
                  printed_at=datetime(2024, 3, 2, 12, 0), printed_by_name="Omar"),
        make_roll(roll_id=3, roll_number="R-003", stage="cutting", weight_kg="15.5",
                  created_at=datetime(2024, 3, 3, 8, 0), customer_id="C1",
                  customer_name="Acme Plastics", item_name="Garbage Bag",
                  item_name_localized="كيس نفايات", printed_at=datetime(2024, 3, 3, 10, 0)),
        make_roll(roll_id=4, roll_number="R-004", stage="done", weight_kg="9.75",
                  created_at=datetime(2024, 3, 4, 8, 0), customer_id="C2",
                  customer_name="Blue Sea Foods", production_order_id=11,
                  production_order_number="PO-011", order_number="ORD-200", order_id=200,
                  printed_at=datetime(2024, 3, 4, 9, 0), cut_completed_at=datetime(2024, 3, 4, 11, 0),
                  cut_weight_kg="9.5", waste_kg="0.25"),
        make_roll(roll_id=5, roll_number="R-005", stage="archived", weight_kg=None,
                  created_at=datetime(2024, 3, 5, 8, 0), customer_id="C3",
                  customer_name="Desert Pack"),
    ]
