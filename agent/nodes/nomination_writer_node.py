"""
agent/nodes/nomination_writer_node.py

Nomination Writer Node: formats accepted nominations into NEXT WEEK
rows. Every row leaves this node pending approval for the run's week,
whatever week and status the oracle suggested, and only SKUs that
survived the hard rules reach the sheet.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Callable

from agent.state import PipelineDependencies, PipelineState
from app.domain.pipeline_models import PENDING_APPROVAL_STATUS, NominationRow, ProductNomination
from llm_synthesis.prompt_builder import NOMINATION_WRITER_SYSTEM
from llm_synthesis.schema import FormattedRow, NominationFormattingOutput

logger = logging.getLogger(__name__)

TEMPERATURE = 0.1


def to_nomination_row(row: FormattedRow, week_start: str) -> NominationRow:
    return NominationRow(
        **row.model_dump(exclude={"week", "status"}),
        week=week_start,
        status=PENDING_APPROVAL_STATUS,
    )


def align_rows(
    rows: Sequence[NominationRow],
    nominations: Sequence[ProductNomination],
) -> list[NominationRow]:
    """
    One row per accepted nomination, in nomination order. Nominations
    are unique by SKU once the hard rules have run.

    Rows for SKUs outside the accepted nominations and repeated rows for
    the same SKU are dropped; nominations the oracle left unformatted
    are logged and have no row.
    """

    rows_by_sku: dict[str, NominationRow] = {}
    for row in rows:
        rows_by_sku.setdefault(row.sku, row)

    accepted_skus = {nomination.sku for nomination in nominations}
    dropped = [row.sku for row in rows if row.sku not in accepted_skus]
    if dropped:
        logger.warning("Dropped formatted rows for rejected SKUs skus=%s", ",".join(dropped))

    aligned: list[NominationRow] = []
    missing: list[str] = []
    for nomination in nominations:
        row = rows_by_sku.get(nomination.sku)
        if row is None:
            missing.append(nomination.sku)
            continue
        aligned.append(row)

    if missing:
        logger.warning("Nominations without formatted rows skus=%s", ",".join(missing))
    return aligned


def build_nomination_writer_node(
    dependencies: PipelineDependencies,
) -> Callable[[PipelineState], PipelineState]:
    def nomination_writer_node(state: PipelineState) -> PipelineState:
        week_start = state["pipeline_input"].week_start
        nominations = state["nominations"]
        output = dependencies.llm.complete(
            system_prompt=NOMINATION_WRITER_SYSTEM,
            user_prompt=dependencies.prompts.nomination_writer(
                week_start,
                nominations,
                state["campaigns"],
                state.get("risks", []),
            ),
            schema=NominationFormattingOutput,
            tier="light",
            temperature=TEMPERATURE,
        )

        final_rows = align_rows([to_nomination_row(row, week_start) for row in output.rows], nominations)
        logger.info(
            "Formatted nomination rows nominations=%d returned=%d kept=%d",
            len(nominations),
            len(output.rows),
            len(final_rows),
        )
        return {**state, "final_rows": final_rows}

    return nomination_writer_node
