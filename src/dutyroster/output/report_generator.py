"""Text reports for roster review.

This module creates plain-text output to review:
- The roster per term (weekday, duty, Day 1 and Day 2 occupants)
- Staff counts by load tier and by role
- Members left under quota and slots left unfilled
"""

from collections import Counter
from pathlib import Path
from typing import Union

from dutyroster.domain.models import LoadTier, StaffRole
from dutyroster.output.csv_exporter import format_occupants
from dutyroster.scheduling.duty_assigner import AllocationResult


class ReportGenerator:
    """Generates a human-readable text report of an allocation run."""

    def generate(
        self,
        result: AllocationResult,
        output_path: Union[str, Path],
    ) -> str:
        """Generate the report and save to file.

        Args:
            result: Allocation result to describe.
            output_path: Path to save the text file.

        Returns:
            The generated text content.
        """
        content = self._generate_content(result)
        Path(output_path).write_text(content, encoding="utf-8")
        return content

    def generate_to_string(self, result: AllocationResult) -> str:
        return self._generate_content(result)

    def _generate_content(self, result: AllocationResult) -> str:
        lines = []

        lines.append("=" * 80)
        lines.append(f"DUTY ROSTER (seed {result.seed})")
        lines.append("=" * 80)
        lines.append("")

        lines.extend(self._roster_section(result))
        lines.extend(self._staff_section(result))
        lines.extend(self._issues_section(result))

        return "\n".join(lines) + "\n"

    def _roster_section(self, result: AllocationResult) -> list[str]:
        lines = []
        rows = result.roster.rows()
        for term in result.roster.terms():
            lines.append("-" * 80)
            lines.append(f"TERM {term + 1}")
            lines.append("-" * 80)
            lines.append(f"{'Day':<10} {'Duty':<22} {'Day 1':<22} {'Day 2':<22}")
            for row in rows:
                if row.term != term:
                    continue
                lines.append(
                    f"{row.weekday_name:<10} {row.duty_name[:22]:<22} "
                    f"{format_occupants(row.day1_occupants) or '-':<22} "
                    f"{format_occupants(row.day2_occupants) or '-':<22}"
                )
            lines.append("")
        return lines

    def _staff_section(self, result: AllocationResult) -> list[str]:
        summaries = list(result.summaries.values())
        tiers = Counter(s.tier for s in summaries)
        roles = Counter(s.role for s in summaries)

        lines = ["-" * 80, "STAFF SUMMARY", "-" * 80]
        lines.append(f"Total Staff: {len(summaries)}")
        lines.append("")
        lines.append("By load:")
        for tier in LoadTier:
            if tiers[tier]:
                lines.append(f"  {tier.label:<16} {tiers[tier]:>4}")
        lines.append("By role:")
        for role in StaffRole:
            if roles[role]:
                lines.append(f"  {role.value:<16} {roles[role]:>4}")
        lines.append("")

        lines.append(f"{'Name':<24} {'Quota':>5} {'Sem 1':>6} {'Sem 2':>6}")
        for summary in sorted(summaries, key=lambda s: s.name):
            lines.append(
                f"{summary.name[:24]:<24} {summary.quota:>5} "
                f"{summary.semester_totals[0]:>6} {summary.semester_totals[1]:>6}"
            )
        lines.append("")
        return lines

    def _issues_section(self, result: AllocationResult) -> list[str]:
        lines = ["-" * 80, "ISSUES", "-" * 80]

        under = sorted(result.under_quota, key=lambda s: s.name)
        if under:
            lines.append(f"Under quota ({len(under)}):")
            for summary in under:
                lines.append(f"  {summary.name}: {summary.assigned_count}/{summary.quota}")
        else:
            lines.append("Every member with a quota reached it.")

        unfilled = result.roster.unfilled()
        if unfilled:
            lines.append(f"Unfilled duty slots ({len(unfilled)}):")
            for entry in unfilled:
                lines.append(f"  {entry.key} {entry.duty_name}")
        else:
            lines.append("All duty slots are filled.")

        return lines
