"""
Positional sheet layout for every table.

Existing data lives in spreadsheets whose columns are addressed by
position, so the column order below is fixed. Records are converted to and
from positional rows only here; the rest of the code works with named
attributes.
"""
import csv
import logging
import os
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sqlalchemy import inspect, text

from aupgrab.errors import ValidationError
from aupgrab.extensions import db
from aupgrab.models.base import as_utc, isoformat_utc, parse_iso_datetime
from aupgrab.models.booking import FoodBooking, LaundryBooking, ParcelBooking
from aupgrab.models.delivery import Delivery
from aupgrab.models.message import Message

logger = logging.getLogger(__name__)

BOOKING_HEADERS = [
    "OrderID",
    "SessionID",
    "Name",
    "Phone",
    "ItemType",
    "Quantity",
    "SpecialRequests",
    "DeliveryLocation",
    "TotalAmount",
    "Status",
    "Timestamp",
    "RiderID",
    "RiderName",
    "EstimatedDelivery",
    "DeliveryStatus",
    "RiderPhone",
    "AssignedAt",
]
DELIVERY_HEADERS = [
    "OrderID",
    "SessionID",
    "Status",
    "Timestamp",
    "RiderID",
    "RiderLocation",
    "EstimatedArrival",
    "Notes",
    "LastUpdated",
]
MESSAGE_HEADERS = ["Timestamp", "OrderID", "SenderType", "SenderID", "MessageText"]

# Formats the spreadsheet UI renders dates in when a sheet is downloaded as CSV.
SHEET_DATETIME_FORMATS = (
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
)

SHEET_LAYOUTS = {
    "FoodBookings": (FoodBooking, BOOKING_HEADERS),
    "ParcelsBookings": (ParcelBooking, BOOKING_HEADERS),
    "LaundryBookings": (LaundryBooking, BOOKING_HEADERS),
    "Deliveries": (Delivery, DELIVERY_HEADERS),
    "Messages": (Message, MESSAGE_HEADERS),
}


def _cell(value):
    if value is None:
        return ""
    if isinstance(value, datetime):
        return isoformat_utc(value)
    if isinstance(value, Decimal):
        return str(value)
    return value


def to_row(record):
    return [_cell(getattr(record, field)) for field in record.ROW_FIELDS]


def parse_sheet_datetime(raw):
    """Parse an ISO timestamp or a date as the sheet displays it (taken as UTC)."""
    try:
        return parse_iso_datetime(raw)
    except ValueError:
        pass
    text_value = str(raw).strip()
    for fmt in SHEET_DATETIME_FORMATS:
        try:
            return as_utc(datetime.strptime(text_value, fmt))
        except ValueError:
            continue
    raise ValueError(f"Invalid timestamp: {text_value!r}")


def _coerce(column, raw):
    if raw is None or raw == "":
        return None
    if isinstance(column.type, db.DateTime):
        return parse_sheet_datetime(raw)
    if isinstance(column.type, db.Integer):
        return int(raw)
    if isinstance(column.type, db.Numeric):
        try:
            return Decimal(str(raw))
        except InvalidOperation as exc:
            raise ValueError(f"Invalid number for {column.name}: {raw!r}") from exc
    return str(raw)


def from_row(model, row):
    """Build an unsaved record from a positional row.

    Rows written before columns 16-17 existed are shorter; missing cells
    fall back to the column defaults.
    """
    columns = model.__table__.columns
    values = {}
    for position, field in enumerate(model.ROW_FIELDS):
        raw = row[position] if position < len(row) else None
        value = _coerce(columns[field], raw)
        if value is not None:
            values[field] = value
    return model(**values)


def ensure_schema():
    """Create missing tables and add columns that older tables lack.

    Only nullable columns are added in place; nothing is dropped.
    """
    db.create_all()
    inspector = inspect(db.engine)
    preparer = db.engine.dialect.identifier_preparer
    added = []
    try:
        for model, _headers in SHEET_LAYOUTS.values():
            table = model.__table__
            existing = {col["name"] for col in inspector.get_columns(table.name)}
            for column in table.columns:
                if column.name in existing or not column.nullable:
                    continue
                ddl_type = column.type.compile(dialect=db.engine.dialect)
                db.session.execute(
                    text(
                        f"ALTER TABLE {preparer.quote(table.name)} "
                        f"ADD COLUMN {preparer.quote(column.name)} {ddl_type}"
                    )
                )
                added.append(f"{table.name}.{column.name}")
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    if added:
        logger.warning("Normalized sheet columns: %s", ", ".join(added))
    return added


def export_sheets(directory):
    os.makedirs(directory, exist_ok=True)
    counts = {}
    for sheet_name, (model, headers) in SHEET_LAYOUTS.items():
        path = os.path.join(directory, f"{sheet_name}.csv")
        rows = model.query.order_by(model.id.asc()).all()
        with open(path, "w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(headers)
            for record in rows:
                writer.writerow(to_row(record))
        counts[sheet_name] = len(rows)
    return counts


def import_sheets(directory):
    """Load ``<Sheet>.csv`` files; rows whose order id already exists are skipped.

    Messages have no natural key and are always appended. A row that cannot
    be read aborts the whole import with nothing written.
    """
    counts = {}
    for sheet_name, (model, _headers) in SHEET_LAYOUTS.items():
        path = os.path.join(directory, f"{sheet_name}.csv")
        if not os.path.exists(path):
            continue
        imported = 0
        with open(path, newline="", encoding="utf-8") as handle:
            reader = csv.reader(handle)
            next(reader, None)
            for line_number, row in enumerate(reader, start=2):
                if not row or not row[0]:
                    continue
                try:
                    record = from_row(model, row)
                except ValueError as exc:
                    db.session.rollback()
                    raise ValidationError(f"{sheet_name} row {line_number}: {exc}") from exc
                if model is not Message and model.query.filter_by(order_id=record.order_id).first():
                    continue
                db.session.add(record)
                imported += 1
        counts[sheet_name] = imported
    db.session.commit()
    return counts
