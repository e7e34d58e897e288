"""Price alert condition evaluation."""

from ...config.logging import get_logger
from .models import Alert, AlertCondition, MarketQuote

logger = get_logger(__name__)


class AlertEvaluator:
    """Decides whether a quote fires an alert."""

    def __init__(self):
        self.logger = logger.bind(component="alert_evaluator")

    def evaluate(self, alert: Alert, quote: MarketQuote) -> bool:
        """
        Check an alert against a quote.

        Crossing conditions need the previous close on the other side of
        (or exactly at) the target; being past the target is not enough, and
        a quote without a previous close never fires a crossing alert.
        Alerts that already fired never fire again.

        Args:
            alert: Alert snapshot
            quote: Market quote with current price and previous close

        Returns:
            True if the alert fires
        """
        if not alert.is_active or alert.symbol.upper() != quote.symbol:
            return False

        target = alert.target_price
        price = quote.price
        previous_close = quote.previous_close

        if alert.condition is AlertCondition.ABOVE:
            return price > target
        if alert.condition is AlertCondition.BELOW:
            return price < target
        if previous_close is None:
            return False
        if alert.condition is AlertCondition.CROSSES_ABOVE:
            return previous_close <= target and price > target
        if alert.condition is AlertCondition.CROSSES_BELOW:
            return previous_close >= target and price < target

        self.logger.warning(
            "Unknown alert condition", alert_id=alert.id, condition=alert.condition
        )
        return False
