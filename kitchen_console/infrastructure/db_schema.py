from sqlalchemy import Table, Column, String, Numeric, DateTime, JSON, MetaData, Text
from sqlalchemy.sql import func

metadata = MetaData()


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("order_number", String, unique=True, nullable=False),
    Column("status", String(16), nullable=False, default="pending", index=True),
    # kept as received; the console parses it when grouping by day
    Column("order_date", String(40), nullable=True),
    Column("customer_name", String, nullable=True),
    Column("customer_phone", String, nullable=True),
    Column("customer_address", Text, nullable=True),
    Column("customer_notes", Text, nullable=True),
    Column("items", JSON, nullable=False, default=list),
    Column("total", Numeric(10, 2), nullable=False, default=0),
    Column("payment_method", String(8), nullable=True),
    Column("rejected_reason", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
)


staff_tbl = Table(
    "staff",
    metadata,
    Column("id", String, primary_key=True),
    Column("username", String, unique=True, nullable=False, index=True),
    Column("password_hash", String, nullable=False),
    Column("display_name", String, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)
