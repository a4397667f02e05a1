"""
AI Usage Tracker

Records every provider call and aggregates the local usage dashboard.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from flask import current_app
from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError

from foca.models import AIUsageLog, db
from foca.time_utils import start_of_day, start_of_month, utcnow, utcnow_iso

from .exceptions import AIError

if TYPE_CHECKING:
    from flask import Flask

    from .client import AIProvider

logger = logging.getLogger(__name__)

RECENT_WINDOW = timedelta(hours=1)


class AIUsageTracker:
    """
    Append-only usage log with dashboard aggregation.

    Usage:
        tracker = AIUsageTracker()

        # Record calls (AIProvider.chat does this automatically)
        tracker.log_usage("openai", "gpt-4", tokens=120, cost=0.0002)
        tracker.log_error("openai", "gpt-4", "Rate limited by OpenAI")

        # Dashboard payload
        metrics = tracker.get_usage_metrics(provider)
    """

    def __init__(
        self,
        cost_per_token: float | None = None,
        estimated_tokens: int | None = None,
    ):
        """
        Initialize the usage tracker.

        Args:
            cost_per_token: Used when a log row has no cost (config if not provided)
            estimated_tokens: Counted for rows without tokens (config if not provided)
        """
        self._cost_per_token = cost_per_token
        self._estimated_tokens = estimated_tokens

    @property
    def cost_per_token(self) -> float:
        if self._cost_per_token is not None:
            return self._cost_per_token
        try:
            return float(current_app.config.get("AI_COST_PER_TOKEN", 0.0000015))
        except RuntimeError:
            return 0.0000015

    @property
    def estimated_tokens(self) -> int:
        if self._estimated_tokens is not None:
            return self._estimated_tokens
        try:
            return int(current_app.config.get("AI_USAGE_ESTIMATED_TOKENS", 500))
        except RuntimeError:
            return 500

    def _write(self, entry: AIUsageLog) -> AIUsageLog | None:
        # Tracking must never break the request that produced it
        try:
            db.session.add(entry)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.warning("Failed to record AI usage: %s", e)
            return None
        return entry

    def log_usage(
        self,
        provider: str,
        model: str | None,
        tokens: int = 0,
        cost: float = 0.0,
    ) -> AIUsageLog | None:
        """
        Record a successful request.

        Args:
            provider: Provider name
            model: Model that served the request
            tokens: Tokens reported by the vendor (0 when unknown)
            cost: Cost reported or estimated by the provider

        Returns:
            The stored AIUsageLog, or None if the write failed
        """
        logger.info(
            "AI request completed: provider=%s model=%s tokens=%s cost=%s",
            provider,
            model,
            tokens,
            cost,
        )
        return self._write(
            AIUsageLog(
                provider=provider,
                model=model,
                status="success",
                tokens=tokens or 0,
                cost=cost or 0.0,
            )
        )

    def log_error(self, provider: str, model: str | None, error: str) -> AIUsageLog | None:
        """Record a failed request."""
        logger.error("AI request failed: provider=%s model=%s error=%s", provider, model, error)
        return self._write(
            AIUsageLog(
                provider=provider,
                model=model,
                status="error",
                tokens=0,
                cost=0.0,
                error=error[:1000] if error else None,
            )
        )

    def _aggregate(self, since: datetime, provider_name: str | None) -> dict[str, Any]:
        success = case((AIUsageLog.status == "success", 1), else_=0)
        failure = case((AIUsageLog.status == "error", 1), else_=0)
        missing_tokens = case((AIUsageLog.tokens > 0, 0), else_=1)
        missing_cost = case((AIUsageLog.cost > 0, 0), else_=1)

        query = db.session.query(
            func.count(AIUsageLog.id),
            func.coalesce(func.sum(success), 0),
            func.coalesce(func.sum(failure), 0),
            func.coalesce(func.sum(AIUsageLog.tokens), 0),
            func.coalesce(func.sum(missing_tokens), 0),
            func.coalesce(func.sum(AIUsageLog.cost), 0.0),
            # tokens of rows whose cost has to be estimated
            func.coalesce(func.sum(missing_cost * AIUsageLog.tokens), 0),
            func.coalesce(func.sum(missing_cost * missing_tokens), 0),
        ).filter(AIUsageLog.created_at >= since)
        if provider_name:
            query = query.filter(AIUsageLog.provider == provider_name)

        (
            requests_,
            successful,
            failed,
            tokens,
            tokenless,
            cost,
            uncosted_tokens,
            uncosted_tokenless,
        ) = query.one()

        estimated_tokens = int(tokens) + int(tokenless) * self.estimated_tokens
        estimated_cost = float(cost) + (
            int(uncosted_tokens) + int(uncosted_tokenless) * self.estimated_tokens
        ) * self.cost_per_token

        return {
            "requests": int(requests_),
            "successful_requests": int(successful),
            "failed_requests": int(failed),
            "tokens_estimated": estimated_tokens,
            "cost_estimated": round(estimated_cost, 6),
        }

    def get_local_usage(self, provider_name: str | None = None) -> dict[str, Any]:
        """Counters for today, this month and the last hour."""
        now = utcnow()
        return {
            "today": self._aggregate(start_of_day(now), provider_name),
            "month": self._aggregate(start_of_month(now), provider_name),
            "recent_requests": self._aggregate(now - RECENT_WINDOW, provider_name),
        }

    def get_usage_metrics(self, provider: AIProvider | None = None) -> dict[str, Any]:
        """
        Build the usage dashboard payload.

        Local aggregation always succeeds. Remote usage is only attempted when a
        provider is given; ``status`` is ``success`` when the vendor reported
        usage, ``local_only`` when it has nothing to report, and ``error`` when
        the remote fetch failed.

        Args:
            provider: Active provider instance, or None for local data only

        Returns:
            Dictionary with status, local_usage, api_usage, quota_info,
            last_updated
        """
        provider_name = provider.get_name() if provider is not None else None
        metrics: dict[str, Any] = {
            "status": "local_only",
            "provider": provider_name,
            "local_usage": self.get_local_usage(provider_name),
            "api_usage": None,
            "quota_info": None,
            "last_updated": utcnow_iso(),
        }

        if provider is None or not provider.is_configured():
            return metrics

        try:
            metrics["api_usage"] = provider.get_remote_usage()
            metrics["quota_info"] = provider.get_quota_info()
        except AIError as e:
            logger.warning("Failed to fetch remote usage for %s: %s", provider_name, e)
            metrics["status"] = "error"
            metrics["error"] = str(e)
            return metrics

        if metrics["api_usage"] is not None:
            metrics["status"] = "success"

        return metrics

    def prune(self, older_than_days: int) -> int:
        """
        Delete log rows older than the retention window.

        Returns:
            Number of rows deleted
        """
        cutoff = utcnow() - timedelta(days=older_than_days)
        deleted = AIUsageLog.query.filter(AIUsageLog.created_at < cutoff).delete(
            synchronize_session=False
        )
        db.session.commit()
        logger.info("Pruned %s AI usage rows older than %s days", deleted, older_than_days)
        return int(deleted)


def get_usage_tracker() -> AIUsageTracker:
    """Return the tracker registered on the current app."""
    return current_app.extensions["ai_usage_tracker"]  # type: ignore[no-any-return]


def init_usage_tracker(app: Flask) -> AIUsageTracker:
    """
    Initialize the usage tracker from Flask app config.

    Args:
        app: Flask application instance

    Returns:
        Configured AIUsageTracker instance
    """
    tracker = AIUsageTracker(
        cost_per_token=app.config.get("AI_COST_PER_TOKEN"),
        estimated_tokens=app.config.get("AI_USAGE_ESTIMATED_TOKENS"),
    )
    app.extensions["ai_usage_tracker"] = tracker

    logger.info(
        "AI usage tracker initialized: cost_per_token=%s estimated_tokens=%s",
        tracker.cost_per_token,
        tracker.estimated_tokens,
    )

    return tracker
