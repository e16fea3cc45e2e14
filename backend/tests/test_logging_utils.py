from __future__ import annotations

import logging

import route_trace.logging_utils as logging_utils
from route_trace.logging_utils import _parse_level, log_event


class _Capture(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def _capturing_logger() -> tuple[logging.Logger, _Capture]:
    logger = logging.getLogger("route_trace.tests.capture")
    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(logging.DEBUG)
    handler = _Capture()
    logger.addHandler(handler)
    return logger, handler


def test_log_event_stamps_event_and_graph_asset(monkeypatch, tmp_path) -> None:
    logger, handler = _capturing_logger()
    monkeypatch.setattr(logging_utils, "LOGGER", logger)
    monkeypatch.setattr(logging_utils.settings, "graph_asset_path", str(tmp_path / "baku.json"))

    log_event("route_search_completed", strategy="astar", visited=12)

    [record] = handler.records
    assert record.getMessage() == "route_search_completed"
    assert record.levelno == logging.INFO
    assert record.event == "route_search_completed"
    assert record.graph_asset == "baku.json"
    assert record.strategy == "astar"
    assert record.visited == 12


def test_log_event_level_and_field_override(monkeypatch) -> None:
    logger, handler = _capturing_logger()
    monkeypatch.setattr(logging_utils, "LOGGER", logger)

    log_event("route_graph_load_failed", level=logging.WARNING, graph_asset="override.json")

    [record] = handler.records
    assert record.levelno == logging.WARNING
    assert record.graph_asset == "override.json"


def test_parse_level_falls_back_to_info() -> None:
    assert _parse_level("debug") == logging.DEBUG
    assert _parse_level("not-a-level") == logging.INFO
