"""Run corrections against a provider."""

from __future__ import annotations

import logging
from typing import Sequence

from .models import ApplyError, Correction, CorrectionResult
from .retry import RetryPolicy

LOG = logging.getLogger("zonectl.executor")


def execute_correction(correction: Correction, retry: RetryPolicy) -> CorrectionResult:
    """Run one correction's action through the retry policy."""
    if correction.action is None:
        LOG.info("%s", correction.description)
        return CorrectionResult(correction=correction, executed=False)
    LOG.info("Applying %s", correction.description)
    try:
        retry.call(correction.action)
    except Exception as exc:  # noqa: BLE001
        error = ApplyError(f"{correction.description.splitlines()[0]}: {exc}")
        error.__cause__ = exc
        LOG.error("Correction failed: %s", error)
        return CorrectionResult(correction=correction, executed=True, error=error)
    return CorrectionResult(correction=correction, executed=True)


def execute_corrections(corrections: Sequence[Correction], retry: RetryPolicy) -> list[CorrectionResult]:
    """Run corrections in order; a failure does not stop or undo the others."""
    results = [execute_correction(correction, retry) for correction in corrections]
    failed = sum(1 for result in results if not result.success)
    if failed:
        LOG.warning("%s of %s corrections failed.", failed, len(results))
    return results
