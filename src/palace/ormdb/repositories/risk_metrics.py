"""Repository for risk metric snapshots."""

import datetime
from typing import List, Optional

from sqlalchemy import desc

from ...services.analytics.models import RiskLevel, RiskMetrics, TimeHorizon
from ..models import RiskMetricSnapshot
from .base import BaseRepository


def to_metrics(record: RiskMetricSnapshot) -> RiskMetrics:
    """Rebuild a metrics snapshot from its stored payload."""
    data = dict(record.payload)
    data["time_horizon"] = TimeHorizon(data["time_horizon"])
    data["risk_level"] = RiskLevel(data["risk_level"])
    data["calculated_at"] = datetime.datetime.fromisoformat(data["calculated_at"])
    return RiskMetrics(**data)


class RiskMetricsRepository(BaseRepository):
    """Append-only storage of computed risk metrics."""

    def save_metrics(self, metrics: RiskMetrics) -> None:
        record = RiskMetricSnapshot(
            portfolio_id=metrics.portfolio_id,
            calculated_at=metrics.calculated_at,
            value_at_risk=metrics.value_at_risk,
            risk_score=metrics.risk_score,
            risk_level=metrics.risk_level.value,
            payload=metrics.to_dict(),
        )
        self.session.add(record)
        self.session.commit()

    def find_latest(self, portfolio_id: str) -> Optional[RiskMetrics]:
        record = (
            self.session.query(RiskMetricSnapshot)
            .filter(RiskMetricSnapshot.portfolio_id == portfolio_id)
            .order_by(desc(RiskMetricSnapshot.id))
            .first()
        )
        return to_metrics(record) if record else None

    def get_history(self, portfolio_id: str, limit: int = 30) -> List[RiskMetrics]:
        """Most recent snapshots first."""
        records = (
            self.session.query(RiskMetricSnapshot)
            .filter(RiskMetricSnapshot.portfolio_id == portfolio_id)
            .order_by(desc(RiskMetricSnapshot.id))
            .limit(limit)
            .all()
        )
        return [to_metrics(r) for r in records]
