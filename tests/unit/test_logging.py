"""Unit tests for logger acquisition conventions."""

import re
from pathlib import Path

import realtyflow
from realtyflow.api.routers.v1 import billing as billing_router
from realtyflow.core import logging as app_logging

PACKAGE_ROOT = Path(realtyflow.__file__).parent
DIRECT_LOGGER = re.compile(r"\bstructlog\.get_logger\(")


class TestLoggerAcquisition:
    def test_modules_use_named_app_loggers(self):
        offenders = [
            str(path.relative_to(PACKAGE_ROOT))
            for path in PACKAGE_ROOT.rglob("*.py")
            if path.resolve() != Path(app_logging.__file__).resolve()
            and DIRECT_LOGGER.search(path.read_text(encoding="utf-8"))
        ]

        assert offenders == []

    def test_billing_router_logger_is_module_scoped(self):
        source = Path(billing_router.__file__).read_text(encoding="utf-8")

        assert "logger = get_logger(__name__)" in source
        assert "import structlog" not in source
