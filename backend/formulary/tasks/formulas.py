"""
Formula tasks.

Entry points for whatever decides when formulas are refreshed (cron,
repository webhooks). Only git and raw download failures are retried.
"""

import logging
from typing import Any, Dict

from formulary.celery_app import celery_app
from formulary.services.exceptions import HistoryGenerationError, RawFormulaFetchError
from formulary.tasks.base import FormulaTask

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    base=FormulaTask,
    name="formulary.tasks.formulas.refresh_formula",
    queue="formulas",
)
def refresh_formula(
    self: FormulaTask,
    repository_name: str,
    name: str,
    formula_info: Dict[str, Any],
) -> Dict[str, Any]:
    """Apply parsed recipe metadata to one formula."""
    formula = self.service.refresh(repository_name, name, formula_info)
    return {
        "formula_id": formula.id,
        "version": formula.version(),
        "deps": len(formula.deps),
    }


@celery_app.task(
    bind=True,
    base=FormulaTask,
    name="formulary.tasks.formulas.generate_formula_history",
    queue="history",
    autoretry_for=(HistoryGenerationError,),
    retry_kwargs={"max_retries": 3, "countdown": 300},
)
def generate_formula_history(self: FormulaTask, formula_id: str) -> Dict[str, Any]:
    """Rebuild the revision history of one formula from its commit log."""
    formula = self.service.regenerate_history(formula_id)
    return {"formula_id": formula.id, "revisions": len(formula.revision_ids)}


@celery_app.task(
    bind=True,
    base=FormulaTask,
    name="formulary.tasks.formulas.fetch_formula_source",
    queue="formulas",
    autoretry_for=(RawFormulaFetchError,),
    retry_kwargs={"max_retries": 3, "countdown": 60},
)
def fetch_formula_source(self: FormulaTask, formula_id: str) -> Dict[str, Any]:
    """Download the recipe file of one formula for re-parsing."""
    source = self.service.fetch_source(formula_id)
    return {"formula_id": formula_id, "source": source}
