from __future__ import annotations

from element_context import logging_utils


def test_configure_logging_skips_file_logging_on_error(monkeypatch, tmp_path):
    def _raise(*_args, **_kwargs):
        raise PermissionError("blocked")

    monkeypatch.setattr(logging_utils.Path, "mkdir", _raise)

    # Should not raise even if the log directory cannot be created.
    logging_utils.configure_logging(log_dir=tmp_path / "logs")


def test_logging_goes_to_stderr_and_redacts_secrets(capsys):
    logging_utils.configure_logging(log_dir=None, level="INFO")
    log = logging_utils.get_logger("test")
    log.info("Bearer sk-test-secret")
    log.info("api_key=sk-test-secret")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "sk-test-secret" not in captured.err
    assert "[REDACTED]" in captured.err
    assert "| test |" in captured.err


def test_file_sink_is_created(tmp_path):
    log_dir = tmp_path / "logs"
    logging_utils.configure_logging(log_dir=log_dir, level="INFO")
    logging_utils.get_logger("test").info("written to disk")
    logging_utils.configure_logging(log_dir=None, level="INFO")
    assert (log_dir / "element-context.log").exists()
