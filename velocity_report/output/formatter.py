"""Assembly of report sections into chat message groups."""

from typing import Dict, List, Optional

from ..aggregator import ReportData
from ..config import ReportConfig
from . import sections


class ReportFormatter:
    """Turns aggregated report data into ordered message groups."""

    def __init__(self, config: ReportConfig):
        """Initialize the formatter.

        Args:
            config: Report settings (title, organization labels, footer)
        """
        self.title = config.report_title
        self.org_label_internal = config.org_label_internal
        self.org_label_client = config.org_label_client
        self.footer = config.footer

    def _active_org_labels(self, report: ReportData) -> List[str]:
        labels = []
        if report.internal_active:
            labels.append(self.org_label_internal)
        if report.client_active:
            labels.append(self.org_label_client)
        return labels

    def organizational_blocks(self, report: ReportData, label: str) -> List[Optional[str]]:
        totals = report.totals
        return [
            sections.format_header(self.title, label),
            sections.format_summary_line(totals, len(report.active)),
            sections.format_team_metrics(
                sections.organization_summary(self._active_org_labels(report)),
                totals,
                len(report.active),
                report.contributor_count,
            ),
            sections.format_velocity_highlights(totals, report.mrs_merged, report.has_multi_org),
            sections.format_bug_activity(report.issues_opened, report.issues_closed),
        ]

    def project_blocks(self, report: ReportData) -> List[Optional[str]]:
        # With no active repositories the table lists the first few discovered ones
        table_projects = report.active or report.results[:8]
        return [
            '**Project Metrics**',
            sections.format_org_summary(self.org_label_internal, report.internal_active),
            sections.format_org_summary(self.org_label_client, report.client_active),
            sections.format_major_features(report.mrs_merged),
            sections.format_repo_table(table_projects, report.totals),
            sections.format_inactive_summary(report.inactive),
        ]

    def team_blocks(self, report: ReportData) -> List[Optional[str]]:
        return [
            sections.format_team_members(report.members, '**Team Members Metrics**'),
            sections.format_commit_breakdown(report.members, report.totals.commits),
            self.footer or None,
        ]

    def build_messages(self, report: ReportData, label: str) -> List[List[Optional[str]]]:
        """Build the organizational, project and team message groups, in order."""
        groups = [
            self.organizational_blocks(report, label),
            self.project_blocks(report),
            self.team_blocks(report),
        ]
        return [blocks for blocks in groups if any(blocks)]


def dry_run_summary(report: ReportData, label: str) -> Dict:
    """JSON-serializable per-repository counts, printed instead of posting."""
    return {
        'window': label,
        'totalProjects': len(report.results),
        'projects': [
            {
                'id': result.repository.id,
                'name': result.repository.name,
                'commits': len(result.commits),
                'prsOpened': len(result.mrs_opened),
                'prsMerged': len(result.mrs_merged),
                'issuesOpened': len(result.issues_opened),
                'issuesClosed': len(result.issues_closed),
                'sampleCommits': [
                    {
                        'id': commit.id,
                        'short': commit.short_id,
                        'author': commit.author,
                        'created_at': commit.created_at.isoformat() if commit.created_at else None,
                        'title': commit.title,
                    }
                    for commit in result.commits[:5]
                ],
            }
            for result in report.results
        ],
    }
