"""Repository for price alert operations."""

from typing import List, Optional

from ...exceptions import NotFoundError
from ...services.execution.models import (
    Alert,
    AlertCondition,
    AlertStatus,
    trigger_alert,
)
from ..models import PriceAlert
from .base import BaseRepository


def to_alert(record: PriceAlert) -> Alert:
    return Alert(
        id=record.id,
        owner_id=record.owner_id,
        symbol=record.symbol,
        condition=AlertCondition(record.condition),
        target_price=record.target_price,
        status=AlertStatus(record.status),
        triggered_at=record.triggered_at,
    )


class PriceAlertRepository(BaseRepository):
    """Repository for price alerts."""

    def add(self, alert: Alert) -> Alert:
        record = PriceAlert(
            id=alert.id,
            owner_id=alert.owner_id,
            symbol=alert.symbol.upper(),
            condition=alert.condition.value,
            target_price=alert.target_price,
            status=alert.status.value,
        )
        self.session.add(record)
        self.session.commit()
        self.session.refresh(record)
        return to_alert(record)

    def find_by_id(self, alert_id: str) -> Optional[Alert]:
        record = self.session.get(PriceAlert, alert_id)
        return to_alert(record) if record else None

    def find_active_alerts_by_symbol(self, symbol: str) -> List[Alert]:
        records = (
            self.session.query(PriceAlert)
            .filter(
                PriceAlert.symbol == symbol.upper(),
                PriceAlert.status == AlertStatus.ACTIVE.value,
            )
            .all()
        )
        return [to_alert(r) for r in records]

    def trigger(self, alert_id: str) -> bool:
        """Mark an alert triggered. Returns False if it had already fired."""
        record = self.session.get(PriceAlert, alert_id)
        if record is None:
            raise NotFoundError("Alert", alert_id)

        alert = to_alert(record)
        if not alert.is_active:
            return False

        triggered = trigger_alert(alert)
        record.status = triggered.status.value
        record.triggered_at = triggered.triggered_at
        self.session.commit()
        return True
