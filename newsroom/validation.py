from dataclasses import dataclass, field
from typing import Dict, List, Optional

from newsroom.models import Edition
from newsroom.sections import FRONT_PAGE


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    summary: Dict[str, int] = field(default_factory=dict)

    @property
    def valid(self) -> bool:
        return not self.errors


def validate_content(edition: Optional[Edition]) -> ValidationReport:
    """
    Quality gate before publishing.

    Fails when no section has a generated (non-fallback) lead, or when the
    front page has a lead but no secondary articles.
    """
    summary = {"sections": 0, "articles": 0, "fallbacks": 0, "empty": 0}
    if edition is None or not edition.sections:
        return ValidationReport(errors=["Content is null or missing sections"], summary=summary)

    report = ValidationReport(summary=summary)
    has_generated_lead = False

    for section_id, section in edition.sections.items():
        summary["sections"] += 1
        if section.is_empty:
            summary["empty"] += 1
            report.warnings.append(f"Section {section_id} is empty")
            continue

        summary["articles"] += 1
        if section.lead.is_fallback:
            summary["fallbacks"] += 1
        else:
            has_generated_lead = True

        for article in section.secondary:
            summary["articles"] += 1
            if article.is_fallback:
                summary["fallbacks"] += 1
        summary["articles"] += len(section.quick_hits)

    if not has_generated_lead:
        report.errors.append("No non-fallback lead article in any section")

    front_page = edition.sections.get(FRONT_PAGE)
    if front_page is not None and not front_page.is_empty and not front_page.secondary:
        report.errors.append("Front page has no secondary articles")

    return report
