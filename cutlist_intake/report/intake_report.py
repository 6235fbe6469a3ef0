"""Intake report generation.

Summarizes an intake run for people: what was parsed, what needs review,
what was rejected and why.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..pipeline.intake import IntakeResult


@dataclass
class IntakeReport:
    """
    Human-readable summary of one intake run.

    Attributes:
        source: Input description (file name, "paste", ...)
        source_method: How the parts were captured
        status: READY (nothing to review), REVIEW or FAILED (no usable parts)
        generated_at: ISO timestamp
        accepted_count: Parts accepted automatically
        review_count: Parts waiting for review
        rejected_count: Parts with validation errors
        unparsed_count: Lines/rows that produced no part
        total_pieces: Sum of quantities over accepted and review parts
        average_confidence: Mean part confidence
        issues: One line per rejected part, review part or unparsed item
        matching: Matching summary dict, if a catalog was used
    """
    source: str = ""
    source_method: str = ""
    status: str = "UNKNOWN"
    generated_at: str = ""
    accepted_count: int = 0
    review_count: int = 0
    rejected_count: int = 0
    unparsed_count: int = 0
    total_pieces: int = 0
    average_confidence: float = 0.0
    issues: List[str] = field(default_factory=list)
    matching: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source": self.source,
            "sourceMethod": self.source_method,
            "status": self.status,
            "generatedAt": self.generated_at,
            "acceptedCount": self.accepted_count,
            "reviewCount": self.review_count,
            "rejectedCount": self.rejected_count,
            "unparsedCount": self.unparsed_count,
            "totalPieces": self.total_pieces,
            "averageConfidence": self.average_confidence,
            "issues": self.issues,
            "matching": self.matching,
        }

    def to_markdown(self) -> str:
        """Generate full markdown report."""
        lines = [
            "# Cutlist Intake Report",
            "",
            f"**Source:** {self.source or '-'} ({self.source_method})",
            f"**Status:** {self.status}",
            f"**Generated:** {self.generated_at}",
            "",
            "## Summary",
            "",
            f"- Accepted: {self.accepted_count}",
            f"- Needs review: {self.review_count}",
            f"- Rejected: {self.rejected_count}",
            f"- Unparsed: {self.unparsed_count}",
            f"- Total pieces: {self.total_pieces}",
            f"- Average confidence: {self.average_confidence:.0%}",
        ]

        if self.matching:
            lines.extend(["", "## Catalog Matching", ""])
            lines.append(f"- Materials matched: {self.matching.get('materialsMatched', 0)}")
            lines.append(f"- Edgebands matched: {self.matching.get('edgebandsMatched', 0)}")
            for key, count in sorted((self.matching.get("byMatchType") or {}).items()):
                lines.append(f"- {key}: {count}")

        if self.issues:
            lines.extend(["", "## Issues", ""])
            lines.extend(f"- {issue}" for issue in self.issues)

        return "\n".join(lines) + "\n"


def _describe(part) -> str:
    name = part.label or part.part_id
    return f"{name} ({part.size.L:g}x{part.size.W:g}, qty {part.qty})"


def build_intake_report(result: IntakeResult, source: str = "") -> IntakeReport:
    """
    Build a report from an intake result.

    Args:
        result: Output of IntakePipeline
        source: Input description shown in the report

    Returns:
        IntakeReport
    """
    issues = []
    for part in result.rejected:
        issues.append(f"Rejected {_describe(part)}: {'; '.join(part.audit.errors)}")
    for part in result.review:
        issues.append(f"Review {_describe(part)}: confidence {part.audit.confidence:.0%}")
    for item in result.parse_errors:
        issues.append(f"Unparsed {item.get('ref')}: {'; '.join(item.get('errors', []))}")

    if not result.accepted and not result.review:
        status = "FAILED"
    elif result.review or result.rejected or result.parse_errors:
        status = "REVIEW"
    else:
        status = "READY"

    return IntakeReport(
        source=source,
        source_method=result.source_method,
        status=status,
        generated_at=datetime.now().isoformat() + "Z",
        accepted_count=len(result.accepted),
        review_count=len(result.review),
        rejected_count=len(result.rejected),
        unparsed_count=len(result.parse_errors),
        total_pieces=sum(p.qty for p in result.accepted + result.review),
        average_confidence=result.average_confidence,
        issues=issues,
        matching=result.matching.to_dict() if result.matching else None,
    )
