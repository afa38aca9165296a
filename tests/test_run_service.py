"""
tests/test_run_service.py

RunService: write-back, run history recording, locking and time bound.

Sessions are in-memory fakes; no database is touched.
"""

from __future__ import annotations

import json
import threading
import uuid
from datetime import date
from types import SimpleNamespace
from typing import Any

import pytest

from agent.errors import PipelineError
from app.config import PipelineSettings
from app.domain.pipeline_models import PENDING_APPROVAL_STATUS
from app.services import run_service
from app.services.run_service import RunInProgressError, RunService, write_lock
from app.sheets.writer import NEXT_WEEK_HEADERS, WEEK_COLUMN
from db.models import PipelineRun
from llm_synthesis.adapter import BaseLLMAdapter, LLMRequest
from llm_synthesis.client import StructuredLLMClient
from tests.fakes import FakeFeed, FakeSheetsGateway, RecordingSleep, StageRoutingAdapter
from tests.scenario import FEED, make_grids, stage_payloads

WEEK = date(2026, 10, 19)


class FakeSession:
    def __init__(self, store: list[Any]) -> None:
        self._store = store
        self.committed = False

    def __enter__(self) -> "FakeSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        return None

    def add(self, instance: Any) -> None:
        self._store.append(instance)

    def flush(self) -> None:
        return None

    def refresh(self, instance: Any) -> None:
        return None

    def commit(self) -> None:
        self.committed = True

    def rollback(self) -> None:
        return None


def _client(**overrides: Any) -> SimpleNamespace:
    values = {
        "id": uuid.uuid4(),
        "name": "VitalPoint",
        "process_sheet_id": "process",
        "master_tab": "MASTER",
        "next_week_tab": "NEXT WEEK (Nominace)",
        "actual_week_tab": "ACTUAL",
        "run_log_tab": "RUN_LOG",
        "product_sheet_id": "products",
        "product_tab": "Sales",
        "brand_sheet_id": "brands",
        "brand_tab": "Sales",
        "feed_url": "https://shop.example/feed.xml",
        "feed_tag_mapping": None,
        "guardrails": {"min_stock": 5},
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _service(
    adapter: BaseLLMAdapter,
    sheets: FakeSheetsGateway,
    store: list[Any],
    *,
    timeout_seconds: float = 30.0,
) -> RunService:
    return RunService(
        sheets=sheets,
        llm=StructuredLLMClient(adapter, max_retries=0, sleep=RecordingSleep()),
        feed=FakeFeed(FEED),
        session_factory=lambda: FakeSession(store),
        settings=PipelineSettings(timeout_seconds=timeout_seconds, loader_workers=2, lock_writes=True),
    )


class TestExecuteRun:
    def test_dry_run_records_success_without_writing(self) -> None:
        sheets = FakeSheetsGateway(make_grids())
        store: list[Any] = []

        outcome = _service(StageRoutingAdapter(stage_payloads()), sheets, store).execute_run(
            _client(), WEEK, "dry_run"
        )

        assert outcome.mode == "dry_run"
        assert outcome.result.stats.product_count == 2
        assert sheets.replaced == [] and sheets.appended == []
        assert len(store) == 1
        run: PipelineRun = store[0]
        assert run.status == "OK"
        assert run.week_start == WEEK
        assert run.join_rate == 0.67
        assert run.sheets_hash["feed"] == "2_products"
        assert set(run.result) == {"campaigns", "nominations", "risks", "final_rows", "stats"}

    def test_generate_write_replaces_week_and_appends_run_log(self) -> None:
        sheets = FakeSheetsGateway(make_grids())
        store: list[Any] = []
        client = _client()

        _service(StageRoutingAdapter(stage_payloads()), sheets, store).execute_run(client, WEEK, "generate_write")

        assert len(sheets.replaced) == 1
        spreadsheet_id, tab, key_column, key_value, rows = sheets.replaced[0]
        assert (spreadsheet_id, tab, key_column, key_value) == (
            "process",
            "NEXT WEEK (Nominace)",
            WEEK_COLUMN,
            "2026-10-19",
        )
        assert all(len(row) == len(NEXT_WEEK_HEADERS) for row in rows)
        assert {row[7] for row in rows} == {PENDING_APPROVAL_STATUS}

        (_, log_tab, log_rows), = sheets.appended
        log_row = log_rows[0]
        assert log_tab == "RUN_LOG"
        assert log_row[0].startswith("run_")
        assert log_row[2:7] == ["VitalPoint", "2026-10-19", "1", "2", "0.67"]
        assert json.loads(log_row[7])["feed"] == "2_products"
        assert log_row[8] == "OK"

    def test_pipeline_failure_is_recorded_then_reraised(self) -> None:
        grids = make_grids()
        grids[("process", "MASTER")] = RuntimeError("boom")
        store: list[Any] = []

        with pytest.raises(PipelineError):
            _service(StageRoutingAdapter(stage_payloads()), FakeSheetsGateway(grids), store).execute_run(
                _client(), WEEK, "generate_write"
            )

        assert len(store) == 1
        run: PipelineRun = store[0]
        assert run.status == "FAIL"
        assert "boom" in run.logs["error"]
        assert run.campaign_count is None

    def test_write_back_failure_is_a_pipeline_error(self) -> None:
        class BrokenWriteGateway(FakeSheetsGateway):
            def replace_rows_for_key(self, *args: Any, **kwargs: Any) -> None:
                raise RuntimeError("quota exceeded")

        store: list[Any] = []

        with pytest.raises(PipelineError) as exc_info:
            _service(StageRoutingAdapter(stage_payloads()), BrokenWriteGateway(make_grids()), store).execute_run(
                _client(), WEEK, "generate_write"
            )

        assert exc_info.value.stage == "write_back"
        assert store[0].status == "FAIL"

    def test_unknown_mode_rejected(self) -> None:
        with pytest.raises(ValueError):
            _service(StageRoutingAdapter(stage_payloads()), FakeSheetsGateway(make_grids()), []).execute_run(
                _client(), WEEK, "preview"
            )

    def test_timeout_is_recorded_as_failure(self) -> None:
        release = threading.Event()

        class SlowAdapter(BaseLLMAdapter):
            def generate(self, request: LLMRequest) -> str:
                release.wait(5)
                return '{"campaigns": []}'

        store: list[Any] = []
        try:
            with pytest.raises(PipelineError) as exc_info:
                _service(SlowAdapter(), FakeSheetsGateway(make_grids()), store, timeout_seconds=0.2).execute_run(
                    _client(), WEEK, "dry_run"
                )
        finally:
            release.set()

        assert exc_info.value.failure_code == "pipeline_timeout"
        assert store[0].status == "FAIL"


def test_write_lock_rejects_concurrent_writer_for_same_week() -> None:
    with write_lock("client-1", "2026-10-19"):
        with pytest.raises(RunInProgressError):
            with write_lock("client-1", "2026-10-19"):
                pass
        with write_lock("client-1", "2026-10-26"):
            pass

    with write_lock("client-1", "2026-10-19"):
        pass


def test_write_lock_leaves_no_entry_behind() -> None:
    with write_lock("client-2", "2026-10-19"):
        assert ("client-2", "2026-10-19") in run_service._active_writes

    with pytest.raises(RuntimeError):
        with write_lock("client-2", "2026-10-26"):
            raise RuntimeError("write failed")

    assert not any(key[0] == "client-2" for key in run_service._active_writes)
