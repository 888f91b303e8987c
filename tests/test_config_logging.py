"""
Tests for configuration, structured logging and the error taxonomy.
"""

import json
import logging
import threading

import pytest

from textforge.config_logging import (
    EngineConfig, JsonFormatter, StructuredLogger, get_config, reset_config,
    TextForgeError, ValidationError, ProcessingError, BatchItemError, handle_errors,
)
from textforge import Document


class TestEngineConfig:
    """Tests for EngineConfig loading and validation."""

    def test_defaults(self):
        config = EngineConfig.from_env()
        assert config.log_level == "INFO"
        assert config.log_format == "text"
        assert config.batch_workers == 1
        assert config.indent_width == 2
        assert config.summary_sentences == 3
        assert config.log_file is None
        assert config.validate() == (True, [])

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv('TEXTFORGE_LOG_LEVEL', 'debug')
        monkeypatch.setenv('TEXTFORGE_LOG_FORMAT', 'JSON')
        monkeypatch.setenv('TEXTFORGE_LOG_CONSOLE', 'no')
        monkeypatch.setenv('TEXTFORGE_LOG_FILE', str(tmp_path / 'engine.log'))
        monkeypatch.setenv('TEXTFORGE_BATCH_WORKERS', '4')
        monkeypatch.setenv('TEXTFORGE_INDENT_WIDTH', '4')

        config = EngineConfig.from_env()
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"
        assert config.log_to_console is False
        assert config.log_file == tmp_path / 'engine.log'
        assert config.batch_workers == 4
        assert config.indent_width == 4

    def test_non_integer_env_rejected(self, monkeypatch):
        monkeypatch.setenv('TEXTFORGE_BATCH_WORKERS', 'many')
        with pytest.raises(ValidationError) as exc_info:
            EngineConfig.from_env()
        assert exc_info.value.field == 'TEXTFORGE_BATCH_WORKERS'

    def test_validate_collects_errors(self):
        config = EngineConfig(log_level="loud", log_format="xml", batch_workers=0, indent_width=0)
        is_valid, errors = config.validate()
        assert not is_valid
        assert len(errors) == 4

    def test_get_config_is_cached(self, monkeypatch):
        first = get_config()
        monkeypatch.setenv('TEXTFORGE_INDENT_WIDTH', '8')
        assert get_config() is first
        reset_config()
        assert get_config().indent_width == 8


class TestStructuredLogging:
    """Tests for StructuredLogger and JsonFormatter."""

    def test_json_formatter_includes_context(self):
        record = logging.LogRecord('textforge.test', logging.INFO, __file__, 1,
                                   "hello %s", ("world",), None)
        record.correlation_id = "abc123"
        record.document_id = "doc-1"
        data = json.loads(JsonFormatter().format(record))
        assert data['message'] == "hello world"
        assert data['level'] == "INFO"
        assert data['logger'] == "textforge.test"
        assert data['correlation_id'] == "abc123"
        assert data['document_id'] == "doc-1"
        assert data['timestamp'].endswith('Z')
        assert 'lineno' not in data

    def test_correlation_id_is_thread_local(self):
        StructuredLogger.set_correlation_id("main-run")
        seen = []
        worker = threading.Thread(target=lambda: seen.append(StructuredLogger.get_correlation_id()))
        worker.start()
        worker.join()
        assert seen == [None]
        assert StructuredLogger.get_correlation_id() == "main-run"
        StructuredLogger.set_correlation_id(None)
        assert StructuredLogger.get_correlation_id() is None

    def test_log_operation_reraises(self, caplog):
        logger = StructuredLogger('textforge.test.op', EngineConfig(log_to_console=False))
        with caplog.at_level(logging.INFO, logger='textforge.test.op'):
            with pytest.raises(KeyError):
                with logger.log_operation("lookup", key="x"):
                    raise KeyError("x")
        statuses = [getattr(r, 'status', None) for r in caplog.records]
        assert statuses == ['started', 'failed']


class TestErrors:
    """Tests for the error hierarchy and handle_errors."""

    def test_to_dict(self):
        err = ValidationError("bad value", field='mode')
        assert err.to_dict() == {
            'success': False,
            'error': {'code': 'VALIDATION_ERROR', 'message': 'bad value', 'details': {'field': 'mode'}},
        }

    def test_batch_item_error_details(self):
        doc = Document("notes", "x")
        err = BatchItemError(doc, ValueError("boom"))
        assert isinstance(err, TextForgeError)
        assert err.document is doc
        assert err.details['document_id'] == doc.id
        assert err.details['cause_type'] == 'ValueError'

    def test_handle_errors_wraps_unexpected(self):
        @handle_errors('parse')
        def parse(value):
            return int(value)

        with pytest.raises(ProcessingError) as exc_info:
            parse("nope")
        assert exc_info.value.stage == 'parse'
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_handle_errors_passes_domain_errors(self):
        @handle_errors()
        def check():
            raise ValidationError("bad", field='x')

        with pytest.raises(ValidationError):
            check()

    def test_handle_errors_default_stage(self):
        @handle_errors()
        def explode():
            raise RuntimeError("x")

        with pytest.raises(ProcessingError) as exc_info:
            explode()
        assert exc_info.value.stage == 'explode'
