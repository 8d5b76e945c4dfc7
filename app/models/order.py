from sqlalchemy import Column, DateTime, Integer, String, Text

from app.models.database import Base


class OrderRow(Base):
    __tablename__ = "orders"

    reff_id = Column(String(64), primary_key=True)
    package_id = Column(Integer, nullable=False)
    package_name = Column(String(255), nullable=False)
    ram = Column(Integer, nullable=False)
    disk = Column(Integer, nullable=False)
    cpu = Column(Integer, nullable=False)
    price = Column(Integer, nullable=False)
    panel_username = Column(String(191), nullable=False)
    customer_email = Column(String(255), nullable=False, default="")
    payment_method = Column(String(32), nullable=False, default="qris")
    status = Column(String(32), nullable=False, default="pending")  # pending | processing | success | failed
    qris_url = Column(Text, nullable=True)
    qris_content = Column(Text, nullable=True)
    atlantic_transaction_id = Column(String(128), nullable=True)
    panel_domain = Column(String(255), nullable=False, default="")
    panel_password = Column(String(128), nullable=False, default="")
    user_id = Column(Integer, nullable=True)
    server_id = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
