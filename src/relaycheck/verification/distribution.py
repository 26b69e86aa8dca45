# src/relaycheck/verification/distribution.py
"""Fan-out fairness check.

A reconciliation can be lossless and still degenerate: every record landed
on one sink. Only complete starvation with more than one record counts as a
defect; any skew short of that (99/1 included) passes and is reported.
"""

from __future__ import annotations

from relaycheck.contracts.counts import DistributionReport, LineCounts, SinkShare, sink_name
from relaycheck.contracts.errors import DistributionViolation
from relaycheck.core.logging import get_logger

logger = get_logger(__name__)


def validate_distribution(counts: LineCounts) -> DistributionReport:
    """Reject degenerate fan-out and report the percentage split.

    - Nothing processed from a non-empty source: fails.
    - Empty source and nothing processed: passes (empty scenario).
    - More than one record and some sink received none: fails naming it.
    - A single record cannot be distributed, so no fairness check applies.

    Raises:
        DistributionViolation: On no output or a starved sink.
    """
    logger.info("Distribution validation", counts=counts.as_dict())
    total = counts.total

    if total == 0:
        if counts.source == 0:
            logger.info("Distribution validated: empty scenario, nothing to distribute")
            return DistributionReport(total=0, shares=())
        raise DistributionViolation(None, counts)

    if total > 1:
        for index, lines in enumerate(counts.targets):
            if lines == 0:
                raise DistributionViolation(sink_name(index), counts)

    shares = tuple(
        SinkShare(sink=sink_name(index), lines=lines, percentage=lines / total * 100)
        for index, lines in enumerate(counts.targets)
    )
    for share in shares:
        logger.info("Sink share", sink=share.sink, lines=share.lines, percentage=round(share.percentage, 2))

    if total > 1:
        logger.info("Distribution validated: every target received data")
    else:
        logger.info("Distribution validated: single target handled the payload")
    return DistributionReport(total=total, shares=shares)
