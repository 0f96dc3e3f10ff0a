# Copyright (c) 2026 ColorCompare
# SPDX-License-Identifier: MIT

"""
Comparison session.

Holds the reference and test slots of an interactive comparison and
recomputes the whole result whenever either probe or the threshold
changes. Results are tagged with a generation number; a result computed
for an older generation is dropped on publish, so only the latest input
pair is ever observable.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional

from colorcompare.errors import IngestionError
from colorcompare.measure.compare import CompareConfig, ProbeSource, compare
from colorcompare.measure.ingest import load_probe
from colorcompare.runtime.serializers.report import to_report_prompt
from colorcompare.schema import CanonicalProbe, ComparisonResult, PassCriterion

logger = logging.getLogger(__name__)


class ComparisonSession:
    """
    Reference/test slots with latest-wins recompute.

    Example:
        >>> session = ComparisonSession(threshold=1.0)
        >>> session.load_reference("nuke_probe.json")
        >>> session.load_test("resolve_probe.json")
        >>> session.result.stats.pass_rate
        100.0

    Args:
        config: Comparison settings (uses CompareConfig() if None)
        threshold: Initial threshold (overrides config)
        on_result: Called with every published result
    """

    def __init__(
        self,
        config: Optional[CompareConfig] = None,
        *,
        threshold: Optional[float] = None,
        on_result: Optional[Callable[[ComparisonResult], None]] = None,
    ) -> None:
        cfg = config or CompareConfig()
        if threshold is not None:
            cfg = replace(cfg, threshold=threshold)
        self._config = cfg
        self._on_result = on_result
        self._reference: Optional[CanonicalProbe] = None
        self._test: Optional[CanonicalProbe] = None
        self._result: Optional[ComparisonResult] = None
        self._generation = 0

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def reference(self) -> Optional[CanonicalProbe]:
        return self._reference

    @property
    def test(self) -> Optional[CanonicalProbe]:
        return self._test

    @property
    def config(self) -> CompareConfig:
        return self._config

    @property
    def threshold(self) -> float:
        return self._config.threshold

    @property
    def generation(self) -> int:
        """Counter bumped on every input change."""
        return self._generation

    @property
    def result(self) -> Optional[ComparisonResult]:
        """Latest published result (None until both slots are loaded)."""
        return self._result

    @property
    def ready(self) -> bool:
        return self._reference is not None and self._test is not None

    # -------------------------------------------------------------------------
    # Inputs
    # -------------------------------------------------------------------------

    def load_reference(self, source: ProbeSource) -> CanonicalProbe:
        """
        Ingest ``source`` into the reference slot and recompute.

        On IngestionError both slots keep their previous probes and the
        error propagates.
        """
        probe = self._load(source, "reference")
        self._reference = probe
        self._changed()
        return probe

    def load_test(self, source: ProbeSource) -> CanonicalProbe:
        """Ingest ``source`` into the test slot and recompute."""
        probe = self._load(source, "test")
        self._test = probe
        self._changed()
        return probe

    def set_threshold(self, threshold: float) -> None:
        self._config = replace(self._config, threshold=threshold)
        self._changed()

    def set_criterion(self, criterion: PassCriterion) -> None:
        self._config = replace(self._config, criterion=criterion)
        self._changed()

    def clear(self) -> None:
        """Empty both slots and drop the current result."""
        self._reference = None
        self._test = None
        self._generation += 1
        self._result = None

    def _load(self, source: ProbeSource, slot: str) -> CanonicalProbe:
        if isinstance(source, CanonicalProbe):
            return source
        try:
            probe = load_probe(source, self._config.ingest)
        except IngestionError as e:
            logger.warning("Keeping previous %s probe: %s", slot, e)
            raise
        logger.info(
            "Loaded %s probe %r from %s (%d pixels)",
            slot, probe.name, probe.source_label, probe.sample_count,
        )
        return probe

    # -------------------------------------------------------------------------
    # Recompute
    # -------------------------------------------------------------------------

    def _changed(self) -> None:
        self._generation += 1
        if self.ready:
            self.publish(self.recompute(), self._generation)

    def recompute(self) -> ComparisonResult:
        """Compute a fresh result for the current slots."""
        if not self.ready:
            raise RuntimeError("Both reference and test probes must be loaded")
        return compare(self._reference, self._test, config=self._config)

    def report(self) -> str:
        """Report prompt for the current result, listing ``config.top_k`` worst points."""
        if self._result is None:
            raise RuntimeError("No comparison result yet")
        return to_report_prompt(self._result, top_k=self._config.top_k)

    def publish(self, result: ComparisonResult, generation: int) -> bool:
        """
        Make ``result`` the current result if it belongs to the latest
        generation. Returns False (and drops it) when it is stale.
        """
        if generation != self._generation:
            logger.debug(
                "Dropping stale result (generation %d, current %d)",
                generation, self._generation,
            )
            return False
        self._result = result
        if self._on_result is not None:
            self._on_result(result)
        return True
