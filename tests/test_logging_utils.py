import logging

from annealtsp.logging_utils import setup_logger


def test_setup_logger_closes_previous_file_handler(tmp_path):
    first = setup_logger("annealtsp.test_logging", tmp_path / "a" / "run.log")
    old_file = [h for h in first.handlers if isinstance(h, logging.FileHandler)][0]
    assert old_file.stream is not None

    second = setup_logger("annealtsp.test_logging", tmp_path / "b" / "run.log")
    assert old_file.stream is None
    assert old_file not in second.handlers
    assert len([h for h in second.handlers if isinstance(h, logging.FileHandler)]) == 1

    second.info("hello")
    for h in second.handlers:
        h.flush()
    assert "hello" in (tmp_path / "b" / "run.log").read_text(encoding="utf-8")

    setup_logger("annealtsp.test_logging")
    assert not any(isinstance(h, logging.FileHandler) for h in second.handlers)
