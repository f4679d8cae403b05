import csv
from datetime import datetime, timezone

from sqlalchemy import inspect, text

from aupgrab.extensions import db
from aupgrab.models import Delivery, FoodBooking, Message
from aupgrab.models.base import as_utc
from aupgrab.models.sheets import BOOKING_HEADERS, SHEET_LAYOUTS, ensure_schema, from_row, to_row

LEGACY_FOOD_TABLE = """
CREATE TABLE food_bookings (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    order_id VARCHAR(40) NOT NULL UNIQUE,
    session_id VARCHAR(120),
    name VARCHAR(120),
    phone VARCHAR(40),
    item_type VARCHAR(120),
    quantity INTEGER NOT NULL,
    special_requests TEXT,
    delivery_location VARCHAR(255),
    total_amount NUMERIC(12, 2) NOT NULL,
    status VARCHAR(24) NOT NULL,
    created_at DATETIME NOT NULL,
    rider_id VARCHAR(40),
    rider_name VARCHAR(120),
    estimated_delivery DATETIME,
    delivery_status VARCHAR(24) NOT NULL
)
"""


def test_layouts_have_fixed_widths():
    widths = {name: len(headers) for name, (_model, headers) in SHEET_LAYOUTS.items()}
    assert widths == {
        "FoodBookings": 17,
        "ParcelsBookings": 17,
        "LaundryBookings": 17,
        "Deliveries": 9,
        "Messages": 5,
    }
    for model, headers in SHEET_LAYOUTS.values():
        assert len(model.ROW_FIELDS) == len(headers)


def test_booking_row_is_positional(submit, services):
    booking = submit()
    services.bookings.assign_rider(booking.order_id, "R001", "Jane", "0918")

    row = to_row(services.orders.find_by_order_id(booking.order_id))

    assert row[BOOKING_HEADERS.index("OrderID")] == booking.order_id
    assert row[1] == "S1"
    assert row[8] == "150.00"
    assert row[9] == "confirmed"
    assert row[10].endswith("Z")
    assert row[11:13] == ["R001", "Jane"]
    assert row[13] == ""
    assert row[14] == "rider_assigned"
    assert row[15] == "0918"
    assert row[16].endswith("Z")


def test_short_legacy_rows_use_defaults():
    row = [
        "ORD-20240101-101010-0001",
        "S1",
        "Ana",
        "0917",
        "Food",
        "3",
        "",
        "Dorm A",
        "99.5",
        "pending",
        "2024-01-01T10:10:10Z",
        "",
        "",
        "",
        "waiting_for_rider",
    ]
    booking = from_row(FoodBooking, row)
    assert booking.quantity == 3
    assert str(booking.total_amount) == "99.5"
    assert booking.rider_phone is None
    assert booking.assigned_at is None
    assert booking.created_at.year == 2024


def test_export_then_import_restores_rows(app, runner, services, submit, tmp_path):
    booking = submit()
    services.chat.send_message(booking.order_id, "hello")
    db.session.commit()

    result = runner.invoke(args=["export-sheets", str(tmp_path)])
    assert result.exit_code == 0
    assert "FoodBookings: 1 rows" in result.output

    with open(tmp_path / "FoodBookings.csv", newline="", encoding="utf-8") as handle:
        header, first = list(csv.reader(handle))
    assert header == BOOKING_HEADERS
    assert first[0] == booking.order_id

    FoodBooking.query.delete()
    Delivery.query.delete()
    Message.query.delete()
    db.session.commit()

    result = runner.invoke(args=["import-sheets", str(tmp_path)])
    assert result.exit_code == 0
    assert "FoodBookings: 1 rows imported" in result.output

    restored = services.orders.find_by_order_id(booking.order_id)
    assert restored.status == "pending"
    assert restored.delivery_status == "waiting_for_rider"
    assert services.tracking.snapshot(booking.order_id) is not None
    assert [m.text for m in services.chat.list_messages(booking.order_id)] == ["hello"]


def test_import_skips_existing_order_ids(runner, submit, tmp_path):
    submit()
    db.session.commit()
    runner.invoke(args=["export-sheets", str(tmp_path)])

    result = runner.invoke(args=["import-sheets", str(tmp_path)])

    assert "FoodBookings: 0 rows imported" in result.output
    assert FoodBooking.query.count() == 1


def test_ensure_schema_adds_appended_columns(app):
    db.session.execute(text("DROP TABLE food_bookings"))
    db.session.execute(text(LEGACY_FOOD_TABLE))
    db.session.commit()

    added = ensure_schema()

    assert set(added) == {"food_bookings.rider_phone", "food_bookings.assigned_at"}
    columns = [col["name"] for col in inspect(db.engine).get_columns("food_bookings")]
    assert columns[-2:] == ["rider_phone", "assigned_at"]
    assert ensure_schema() == []


def test_init_db_command(runner):
    result = runner.invoke(args=["init-db"])
    assert result.exit_code == 0
    assert "Database ready." in result.output


def _write_food_sheet(directory, rows):
    with open(directory / "FoodBookings.csv", "w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(BOOKING_HEADERS)
        writer.writerows(rows)


def _sheet_row(order_id, timestamp):
    return [order_id, "S1", "Ana", "0917", "Food", "1", "", "Dorm A", "50", "pending", timestamp, "", "", "", "waiting_for_rider"]


def test_import_accepts_dates_as_the_sheet_displays_them(runner, services, tmp_path):
    _write_food_sheet(tmp_path, [_sheet_row("ORD-20240115-140322-0001", "1/15/2024 14:03:22")])

    result = runner.invoke(args=["import-sheets", str(tmp_path)])

    assert result.exit_code == 0
    booking = services.orders.find_by_order_id("ORD-20240115-140322-0001")
    assert as_utc(booking.created_at) == datetime(2024, 1, 15, 14, 3, 22, tzinfo=timezone.utc)


def test_import_reports_the_unreadable_row_and_writes_nothing(runner, tmp_path):
    _write_food_sheet(
        tmp_path,
        [
            _sheet_row("ORD-20240115-140322-0001", "2024-01-15T14:03:22Z"),
            _sheet_row("ORD-20240115-140322-0002", "yesterday"),
        ],
    )

    result = runner.invoke(args=["import-sheets", str(tmp_path)])

    assert result.exit_code != 0
    assert "FoodBookings row 3" in result.output
    assert FoodBooking.query.count() == 0
