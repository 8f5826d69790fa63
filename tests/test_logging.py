"""Tests for logging setup."""

import json
import logging

from chainflow.config import Settings
from chainflow.observability import setup_logging, with_run_context


class TestSetupLogging:
    def test_json_output_with_run_context(self, capsys):
        setup_logging(Settings(log_format="json", log_level="INFO"))

        logger = logging.getLogger("chainflow.test")
        logger.info("node finished", extra=with_run_context(workflow_id="wf-1", node_id="scale"))

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["message"] == "node finished"
        assert record["level"] == "INFO"
        assert record["logger"] == "chainflow.test"
        assert record["workflow_id"] == "wf-1"
        assert record["node_id"] == "scale"
        assert "execution_id" not in record

    def test_text_output(self, capsys):
        setup_logging(Settings(log_format="text", log_level="WARNING"))

        logging.getLogger("chainflow.test").info("hidden")
        logging.getLogger("chainflow.test").warning("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "[WARNING] chainflow.test: shown" in err

    def test_replaces_root_handlers(self):
        setup_logging(Settings(log_format="text"))
        setup_logging(Settings(log_format="text"))

        assert len(logging.getLogger().handlers) == 1


class TestRunContext:
    def test_only_set_fields(self):
        assert with_run_context(workflow_id="wf", execution_id=None, attempt=2) == {
            "workflow_id": "wf",
            "attempt": 2,
        }
