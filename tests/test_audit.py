"""Tests for the audit logger, audit sinks and engine settings."""

import pytest
from uuid import uuid4

from pydantic import ValidationError

from finance_engine.audit import AuditLogger, AuditSink, InMemoryAuditSink, create_correlation_id
from finance_engine.config import EngineSettings, get_settings
from finance_engine.models import AuditEventBuilder, AuditEventType


class FailingSink(AuditSink):
    """Sink whose storage is down."""

    def append_event(self, event):
        raise ConnectionError("storage unavailable")

    def get_events_by_correlation_id(self, correlation_id):
        return []


class TestAuditLogger:
    """Tests for AuditLogger."""

    def test_log_without_sink(self):
        """Test that local-only logging succeeds."""
        logger = AuditLogger()
        event = AuditEventBuilder.report_built(report="dashboard", record_count=3)
        assert logger.log(event) is True

    def test_log_appends_to_sink(self):
        sink = InMemoryAuditSink()
        logger = AuditLogger(sink=sink)
        correlation_id = create_correlation_id()

        logger.log(AuditEventBuilder.balance_check_passed(
            account_id="acc-1", final_balance="60.00", correlation_id=correlation_id,
        ))
        logger.log(AuditEventBuilder.duplicate_submission(
            idempotency_key="abc", correlation_id=uuid4(),
        ))

        assert len(sink.events) == 2
        related = sink.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in related] == [AuditEventType.BALANCE_CHECK_PASSED]

    def test_sink_failure_is_swallowed(self):
        """Test that a failing sink never breaks the calling flow."""
        logger = AuditLogger(sink=FailingSink())
        event = AuditEventBuilder.submission_blocked(
            reason="Missing account reference", correlation_id=uuid4(),
        )
        assert logger.log(event) is False

    def test_log_error(self):
        sink = InMemoryAuditSink()
        AuditLogger(sink=sink).log_error("ValueError", "bad input", details={"field": "date"})

        event = sink.events[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.details == {"field": "date"}

    def test_sink_events_are_a_copy(self):
        sink = InMemoryAuditSink()
        sink.events.append("not an event")
        assert sink.events == []


class TestSettings:
    """Tests for EngineSettings."""

    def test_defaults(self):
        settings = get_settings()
        assert settings.window_months == 6
        assert settings.recurrence_max_occurrences == 24
        assert settings.recent_movements_limit == 5
        assert settings.budget_alert_threshold == 90.0
        assert settings.budget_critical_threshold == 95.0
        assert settings.forecast_weeks == 8
        assert settings.idempotency_cache_size == 256

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("FINANCE_ENGINE_WINDOW_MONTHS", "12")
        get_settings.cache_clear()
        assert get_settings().window_months == 12

    def test_window_must_be_positive(self):
        with pytest.raises(ValidationError):
            EngineSettings(window_months=0)

    def test_critical_not_below_warning(self):
        with pytest.raises(ValidationError, match="budget_critical_threshold"):
            EngineSettings(budget_alert_threshold=90.0, budget_critical_threshold=80.0)
