"""Order persistence behind a small put/patch/get interface.

``compare_and_set`` is the only gate into ``processing``: it applies an update
only when the stored status still matches the expected one, so two webhook
deliveries for the same order cannot both start provisioning.
"""

import logging
import threading
from typing import Any, Mapping, Protocol

from sqlalchemy.orm import Session, sessionmaker

from app.models import OrderRow
from app.schemas.orders import Order, OrderStatus

logger = logging.getLogger(__name__)


class OrderStore(Protocol):
    def put(self, order: Order) -> Order: ...

    def patch(self, reff_id: str, fields: Mapping[str, Any]) -> Order | None: ...

    def get(self, reff_id: str) -> Order | None: ...

    def compare_and_set(
        self,
        reff_id: str,
        expected_status: OrderStatus,
        fields: Mapping[str, Any],
    ) -> Order | None: ...


def _merge(order: Order, fields: Mapping[str, Any]) -> Order:
    return Order.model_validate({**order.model_dump(), **fields})


class InMemoryOrderStore:
    """Process-local store; contents vanish on restart."""

    def __init__(self) -> None:
        self._orders: dict[str, Order] = {}
        self._lock = threading.Lock()

    def put(self, order: Order) -> Order:
        with self._lock:
            self._orders[order.reff_id] = order.model_copy()
        return order

    def patch(self, reff_id: str, fields: Mapping[str, Any]) -> Order | None:
        with self._lock:
            existing = self._orders.get(reff_id)
            if existing is None:
                return None
            updated = _merge(existing, fields)
            self._orders[reff_id] = updated
            return updated.model_copy()

    def get(self, reff_id: str) -> Order | None:
        with self._lock:
            order = self._orders.get(reff_id)
            return order.model_copy() if order is not None else None

    def compare_and_set(
        self,
        reff_id: str,
        expected_status: OrderStatus,
        fields: Mapping[str, Any],
    ) -> Order | None:
        with self._lock:
            existing = self._orders.get(reff_id)
            if existing is None or existing.status != expected_status:
                return None
            updated = _merge(existing, fields)
            self._orders[reff_id] = updated
            return updated.model_copy()


def _column_values(fields: Mapping[str, Any]) -> dict[str, Any]:
    values = dict(fields)
    status_value = values.get("status")
    if isinstance(status_value, OrderStatus):
        values["status"] = status_value.value
    return values


class SqlOrderStore:
    """SQLAlchemy-backed store for deployments that need orders to survive restarts."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def put(self, order: Order) -> Order:
        db: Session = self._session_factory()
        try:
            db.merge(OrderRow(**_column_values(order.model_dump())))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
        return order

    def patch(self, reff_id: str, fields: Mapping[str, Any]) -> Order | None:
        db: Session = self._session_factory()
        try:
            row = db.query(OrderRow).filter(OrderRow.reff_id == reff_id).with_for_update().first()
            if row is None:
                return None
            updated = _merge(Order.model_validate(row), fields)
            for key, value in _column_values(updated.model_dump()).items():
                setattr(row, key, value)
            db.commit()
            return updated
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def get(self, reff_id: str) -> Order | None:
        db: Session = self._session_factory()
        try:
            row = db.query(OrderRow).filter(OrderRow.reff_id == reff_id).first()
            return Order.model_validate(row) if row is not None else None
        finally:
            db.close()

    def compare_and_set(
        self,
        reff_id: str,
        expected_status: OrderStatus,
        fields: Mapping[str, Any],
    ) -> Order | None:
        db: Session = self._session_factory()
        try:
            updated = (
                db.query(OrderRow)
                .filter(
                    OrderRow.reff_id == reff_id,
                    OrderRow.status == expected_status.value,
                )
                .update(_column_values(fields), synchronize_session=False)
            )
            db.commit()
            if updated != 1:
                logger.info(
                    "Order %s was not in status %s, transition skipped",
                    reff_id,
                    expected_status.value,
                )
                return None
            row = db.query(OrderRow).filter(OrderRow.reff_id == reff_id).first()
            return Order.model_validate(row)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
