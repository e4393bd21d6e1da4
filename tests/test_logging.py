"""Tests for structured logging helpers."""

import pytest
from structlog.testing import capture_logs

from report_intake.core.logging import component_name, get_logger


class TestComponentName:
    """Tests for mapping module names to components."""

    @pytest.mark.parametrize("name,component", [
        ("report_intake.upload.client", "upload"),
        ("report_intake.wizard.controller", "wizard"),
        ("report_intake.registry", "registry"),
        ("report_intake.cli", "cli"),
        ("report_intake", "report_intake"),
        ("__main__", "__main__"),
    ])
    def test_component_name(self, name, component):
        assert component_name(name) == component


class TestGetLogger:
    """Tests for loggers returned by get_logger."""

    def test_events_carry_component(self):
        logger = get_logger("report_intake.registry.store")

        with capture_logs() as logs:
            logger.warning("status_event_for_unknown_file", file_id="srv-9")

        assert logs == [{
            "component": "registry",
            "file_id": "srv-9",
            "event": "status_event_for_unknown_file",
            "log_level": "warning",
        }]
