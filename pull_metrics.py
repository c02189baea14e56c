#!/usr/bin/env python3
"""
Contributor Metrics Report Generator

This script collects pull request activity from a GitHub repository and
"In Progress" transitions from a Jira project over a date window, then prints
per-person summary tables.

Usage:
  pull-metrics 2024-02-28 [2024-03-15]
"""

import argparse
import logging
import os
import sys
from contextlib import nullcontext
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
)

import pandas as pd
import pytz
import requests
from atlassian import Jira
from dateutil.parser import parse as parse_date
from dotenv import load_dotenv
from gql import Client, gql
from gql.transport.exceptions import TransportError
from gql.transport.requests import RequestsHTTPTransport
from tqdm import tqdm

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"
GITHUB_PAGE_SIZE = 100
JIRA_PAGE_SIZE = 50

DATE_FORMAT = "%Y-%m-%d"
IN_PROGRESS_STATUS = "In Progress"
SPIKE_ISSUE_TYPE = "Spike"

# GitHub attributes PRs from deleted accounts to this placeholder user
DELETED_USER_LOGIN = "ghost"

PULL_REQUESTS_QUERY = gql(
    """
    query PullRequests($owner: String!, $repo: String!, $first: Int!, $cursor: String) {
        repository(owner: $owner, name: $repo) {
            pullRequests(
                first: $first
                orderBy: {direction: DESC, field: CREATED_AT}
                after: $cursor
            ) {
                nodes {
                    author {
                        login
                    }
                    title
                    createdAt
                    additions
                    deletions
                    changedFiles
                    totalCommentsCount
                    closed
                    closedAt
                    merged
                    mergedAt
                }
                pageInfo {
                    hasNextPage
                    endCursor
                }
            }
        }
    }
    """
)

USER_NAME_QUERY = gql(
    """
    query UserName($login: String!) {
        user(login: $login) {
            name
        }
    }
    """
)

JIRA_JQL_TEMPLATE = (
    'project = "{project}" and status changed DURING ("{start}", "{end}") '
    'TO "In Progress" and issuetype not in (Epic, sub-task) ORDER BY assignee ASC'
)

T = TypeVar("T")


class MetricsError(Exception):
    """Raised when an upstream service cannot be queried or returns garbage"""


def _to_utc(value: str) -> datetime:
    parsed = parse_date(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=pytz.UTC)
    return parsed.astimezone(pytz.UTC)


def _optional_utc(value: Optional[str]) -> Optional[datetime]:
    return _to_utc(value) if value else None


@dataclass(frozen=True)
class DateWindow:
    """Reporting window.

    ``end`` is inclusive. GitHub records are accepted when
    ``start < timestamp <= end``.
    """

    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(
                f"Start date {self.start:%Y-%m-%d} is after end date {self.end:%Y-%m-%d}"
            )

    @classmethod
    def from_strings(
        cls,
        start: Optional[str],
        end: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> "DateWindow":
        """Build a window from ``YYYY-MM-DD`` strings.

        A missing or malformed ``start`` raises ``ValueError``. A missing or
        malformed ``end`` falls back to ``now``; a valid one is pushed to
        23:59:59 of that day.
        """
        if not start:
            raise ValueError("A start date is required (YYYY-MM-DD)")

        try:
            start_date = datetime.strptime(start, DATE_FORMAT).replace(tzinfo=pytz.UTC)
        except ValueError as e:
            raise ValueError(f"Error parsing the start date '{start}': {e}") from e

        end_date = now or datetime.now(pytz.UTC)
        if end:
            try:
                day = datetime.strptime(end, DATE_FORMAT).replace(tzinfo=pytz.UTC)
                end_date = day + timedelta(days=1) - timedelta(seconds=1)
            except ValueError:
                logger.warning("Ignoring malformed end date '%s', using now", end)

        return cls(start_date, end_date)

    def contains(self, timestamp: datetime) -> bool:
        return self.start < timestamp <= self.end

    def __str__(self) -> str:
        return f"{self.start:%Y-%m-%d %H:%M:%S} - {self.end:%Y-%m-%d %H:%M:%S}"


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


class Verdict(Enum):
    ACCEPT = "accept"
    SKIP = "skip"
    STOP = "stop"


class PageFetcher(Generic[T]):
    """A paginated source. ``next_page`` returns ``(items, done)``."""

    def next_page(self) -> Tuple[List[T], bool]:
        raise NotImplementedError


def drain_pages(
    fetcher: PageFetcher[T], classify: Optional[Callable[[T], Verdict]] = None
) -> Iterator[T]:
    """Yield accepted items from every page until the source is exhausted.

    A ``STOP`` verdict ends the whole drain, not just the current page.
    """
    done = False
    while not done:
        items, done = fetcher.next_page()
        for item in items:
            verdict = classify(item) if classify else Verdict.ACCEPT
            if verdict is Verdict.STOP:
                return
            if verdict is Verdict.ACCEPT:
                yield item


# ---------------------------------------------------------------------------
# GitHub
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PullRequestPageRequest:
    """Variables for one page of the pull request query; no cursor means first page"""

    owner: str
    repo: str
    cursor: Optional[str] = None
    page_size: int = GITHUB_PAGE_SIZE

    def variables(self) -> Dict[str, Any]:
        return {
            "owner": self.owner,
            "repo": self.repo,
            "first": self.page_size,
            "cursor": self.cursor,
        }

    def after(self, cursor: str) -> "PullRequestPageRequest":
        return replace(self, cursor=cursor)


@dataclass
class PullRequestRecord:
    """A pull request as returned by the GraphQL API"""

    author_login: str
    created_at: datetime
    additions: int
    deletions: int
    changed_files: int
    closed: bool
    closed_at: Optional[datetime]
    merged: bool
    merged_at: Optional[datetime]
    title: str = ""
    total_comments_count: int = 0

    @classmethod
    def from_graphql(cls, node: Dict[str, Any]) -> "PullRequestRecord":
        author = node.get("author") or {}
        return cls(
            author_login=author.get("login") or DELETED_USER_LOGIN,
            created_at=_to_utc(node["createdAt"]),
            additions=node.get("additions", 0),
            deletions=node.get("deletions", 0),
            changed_files=node.get("changedFiles", 0),
            closed=bool(node.get("closed")),
            closed_at=_optional_utc(node.get("closedAt")),
            merged=bool(node.get("merged")),
            merged_at=_optional_utc(node.get("mergedAt")),
            title=node.get("title") or "",
            total_comments_count=node.get("totalCommentsCount", 0),
        )

    def is_merged(self, cutoff: datetime, strict: bool = True) -> bool:
        """Merged as of ``cutoff``"""
        if not self.merged:
            return False
        if not strict or self.merged_at is None:
            return True
        return self.merged_at <= cutoff

    def is_open(self, cutoff: datetime, strict: bool = True) -> bool:
        """Still open, or (strict) closed only after ``cutoff``"""
        if not self.closed:
            return True
        return strict and self.closed_at is not None and self.closed_at > cutoff


def create_github_client(token: str) -> Client:
    """GraphQL client for api.github.com authenticated with a bearer token"""
    transport = RequestsHTTPTransport(
        url=GITHUB_GRAPHQL_URL,
        headers={"Authorization": f"Bearer {token}"},
    )
    return Client(transport=transport, fetch_schema_from_transport=False)


class GitHubPullRequestFetcher(PageFetcher[PullRequestRecord]):
    """Cursor-paginated pull requests, newest first"""

    def __init__(self, client: Client, request: PullRequestPageRequest):
        self.client = client
        self.request = request

    def next_page(self) -> Tuple[List[PullRequestRecord], bool]:
        if self.request.cursor is None:
            logger.info("Requesting first page")
        else:
            logger.info("Requesting page with cursor: %s", self.request.cursor)

        try:
            result = self.client.execute(
                PULL_REQUESTS_QUERY, variable_values=self.request.variables()
            )
            connection = result["repository"]["pullRequests"]
            nodes = connection["nodes"] or []
            page_info = connection["pageInfo"]
            records = [PullRequestRecord.from_graphql(node) for node in nodes]
        except (TransportError, requests.RequestException) as e:
            raise MetricsError(f"Error in GraphQL query: {e}") from e
        except (KeyError, TypeError, ValueError) as e:
            raise MetricsError(f"Unexpected GraphQL response: {e!r}") from e

        if not records:
            return [], True

        if not page_info.get("hasNextPage") or not page_info.get("endCursor"):
            return records, True

        self.request = self.request.after(page_info["endCursor"])
        return records, False


def window_classifier(window: DateWindow) -> Callable[[PullRequestRecord], Verdict]:
    """Classify PRs arriving in descending creation order against ``window``"""

    def classify(pr: PullRequestRecord) -> Verdict:
        if pr.created_at > window.end:
            return Verdict.SKIP
        if window.contains(pr.created_at):
            return Verdict.ACCEPT
        return Verdict.STOP

    return classify


def iter_pull_requests_in_window(
    fetcher: PageFetcher[PullRequestRecord], window: DateWindow
) -> Iterator[PullRequestRecord]:
    return drain_pages(fetcher, window_classifier(window))


class GitHubIdentityResolver:
    """Looks up the display name behind a GitHub login"""

    def __init__(self, client: Client):
        self.client = client

    def display_name(self, login: str) -> str:
        try:
            result = self.client.execute(
                USER_NAME_QUERY, variable_values={"login": login}
            )
            user = result["user"] or {}
        except (TransportError, requests.RequestException) as e:
            raise MetricsError(f"Error resolving GitHub user '{login}': {e}") from e
        except (KeyError, TypeError) as e:
            raise MetricsError(f"Unexpected user response for '{login}': {e!r}") from e
        return user.get("name") or ""


@dataclass
class GitHubPersonMetrics:
    login: str
    display_name: str = ""
    total_prs: int = 0
    merged_prs: int = 0
    open_prs: int = 0
    added_lines: int = 0
    removed_lines: int = 0
    changed_files: int = 0

    @property
    def merged_percentage(self) -> float:
        return self.merged_prs * 100 / self.total_prs


class PullRequestAggregator:
    """Per-author running totals for pull requests accepted into the window"""

    def __init__(self, window: DateWindow, strict_window: bool = True):
        self.window = window
        self.strict_window = strict_window
        self.people: Dict[str, GitHubPersonMetrics] = {}
        self.total_prs = 0

    def add(self, pr: PullRequestRecord) -> None:
        person = self.people.get(pr.author_login)
        if person is None:
            person = self.people[pr.author_login] = GitHubPersonMetrics(pr.author_login)

        person.total_prs += 1
        person.added_lines += pr.additions
        person.removed_lines += pr.deletions
        person.changed_files += pr.changed_files

        if pr.is_merged(self.window.end, self.strict_window):
            person.merged_prs += 1
        elif pr.is_open(self.window.end, self.strict_window):
            person.open_prs += 1
        # closed without merge as of the cutoff: counted only in total_prs

        self.total_prs += 1
        logger.debug("Accepted PR by %s: %s", pr.author_login, pr.title)

    def consume(self, prs: Iterator[PullRequestRecord]) -> "PullRequestAggregator":
        for pr in prs:
            self.add(pr)
        return self

    def sorted_logins(self) -> List[str]:
        return sorted(self.people)

    def rows(self) -> List[GitHubPersonMetrics]:
        return [self.people[login] for login in self.sorted_logins()]

    def resolve_names(self, resolver: GitHubIdentityResolver) -> None:
        """One lookup per distinct author, in login order"""
        for login in tqdm(
            self.sorted_logins(),
            desc="👤 Resolving names",
            unit="user",
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} users [{elapsed}]",
        ):
            self.people[login].display_name = resolver.display_name(login)

    def averages(self) -> Dict[str, float]:
        """Unweighted mean across distinct authors"""
        count = len(self.people)
        if not count:
            return {}
        people = self.people.values()
        return {
            "total_prs": sum(p.total_prs for p in people) / count,
            "merged_prs": sum(p.merged_prs for p in people) / count,
            "added_lines": sum(p.added_lines for p in people) / count,
            "removed_lines": sum(p.removed_lines for p in people) / count,
            "changed_files": sum(p.changed_files for p in people) / count,
        }


def collect_github_metrics(
    client: Client,
    settings: "GitHubSettings",
    window: DateWindow,
    strict_window: bool = True,
    page_size: int = GITHUB_PAGE_SIZE,
) -> PullRequestAggregator:
    """Fetch, filter, aggregate and name-resolve the repository's PRs"""
    request = PullRequestPageRequest(settings.owner, settings.repo, page_size=page_size)
    fetcher = GitHubPullRequestFetcher(client, request)

    aggregator = PullRequestAggregator(window, strict_window)
    aggregator.consume(iter_pull_requests_in_window(fetcher, window))
    aggregator.resolve_names(GitHubIdentityResolver(client))
    return aggregator


# ---------------------------------------------------------------------------
# Jira
# ---------------------------------------------------------------------------


def build_jql(project: str, window: DateWindow) -> str:
    return JIRA_JQL_TEMPLATE.format(
        project=project,
        start=window.start.strftime(DATE_FORMAT),
        end=window.end.strftime(DATE_FORMAT),
    )


def create_jira_client(url: str, user: str, token: str) -> Jira:
    # username/password on the session means HTTP Basic auth
    return Jira(url=url, username=user, password=token)


class JiraIssueFetcher(PageFetcher[Dict[str, Any]]):
    """Offset-paginated issue search with changelogs expanded.

    ``total`` is the match count reported by the most recent page.
    """

    def __init__(self, client: Jira, jql: str, page_size: int = JIRA_PAGE_SIZE):
        self.client = client
        self.jql = jql
        self.page_size = page_size
        self.offset = 0
        self.total = 0

    def payload(self) -> Dict[str, Any]:
        return {
            "fields": ["summary", "assignee", "issuetype"],
            "expand": ["changelog"],
            "jql": self.jql,
            "startAt": self.offset,
            "maxResults": self.page_size,
        }

    def next_page(self) -> Tuple[List[Dict[str, Any]], bool]:
        logger.info(
            "Requesting %d items from Jira at offset %d", self.page_size, self.offset
        )
        try:
            response = self.client.post("rest/api/2/search", data=self.payload())
        except requests.RequestException as e:
            raise MetricsError(f"Error searching Jira: {e}") from e

        if not isinstance(response, dict):
            raise MetricsError(f"Unexpected Jira search response: {response!r:.200}")

        try:
            self.total = int(response["total"])
            issues = list(response.get("issues") or [])
        except (KeyError, TypeError, ValueError) as e:
            raise MetricsError(f"Unexpected Jira search response: {e!r}") from e

        self.offset += self.page_size
        return issues, len(issues) < self.page_size


@dataclass(frozen=True)
class IssueChangeRecord:
    actor_display_name: str
    issue_type: str
    entered_in_progress_within_window: bool = True


def find_in_progress_transition(
    issue: Dict[str, Any], window: Optional[DateWindow] = None
) -> Optional[IssueChangeRecord]:
    """Latest change into "In Progress" on ``issue``, or None.

    Histories are scanned last entry first and the scan stops at the first
    matching item.
    """
    fields = issue.get("fields") or {}
    issue_type = (fields.get("issuetype") or {}).get("name", "")
    histories = (issue.get("changelog") or {}).get("histories") or []

    for history in reversed(histories):
        for item in history.get("items") or []:
            if item.get("field") != "status" or item.get("toString") != IN_PROGRESS_STATUS:
                continue

            within = True
            if window is not None and history.get("created"):
                try:
                    within = window.contains(_to_utc(history["created"]))
                except (ValueError, OverflowError):
                    logger.debug(
                        "%s: unreadable history timestamp %r",
                        issue.get("key"),
                        history["created"],
                    )

            author = history.get("author") or {}
            return IssueChangeRecord(
                actor_display_name=author.get("displayName", ""),
                issue_type=issue_type,
                entered_in_progress_within_window=within,
            )
    return None


@dataclass
class JiraPersonMetrics:
    display_name: str
    total_in_progress: int = 0
    spike_in_progress: int = 0


class InProgressAggregator:
    """Per-actor counts of issues moved into progress"""

    def __init__(self, window: Optional[DateWindow] = None):
        self.window = window
        self.people: Dict[str, JiraPersonMetrics] = {}
        self.total_issues = 0

    def add_issue(self, issue: Dict[str, Any]) -> None:
        record = find_in_progress_transition(issue, self.window)
        if record is None:
            return

        if not record.entered_in_progress_within_window:
            logger.debug(
                "%s: latest In Progress transition falls outside the window",
                issue.get("key"),
            )

        person = self.people.get(record.actor_display_name)
        if person is None:
            person = JiraPersonMetrics(record.actor_display_name)
            self.people[record.actor_display_name] = person

        person.total_in_progress += 1
        if record.issue_type == SPIKE_ISSUE_TYPE:
            person.spike_in_progress += 1

    def rows(self) -> List[JiraPersonMetrics]:
        return list(self.people.values())


def collect_jira_metrics(
    client: Jira,
    settings: "JiraSettings",
    window: DateWindow,
    page_size: int = JIRA_PAGE_SIZE,
) -> InProgressAggregator:
    fetcher = JiraIssueFetcher(client, build_jql(settings.project, window), page_size)
    aggregator = InProgressAggregator(window)
    for issue in drain_pages(fetcher):
        aggregator.add_issue(issue)
    aggregator.total_issues = fetcher.total
    return aggregator


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def _setting(args, attr: str, environ: Mapping[str, str], var: str) -> Optional[str]:
    value = getattr(args, attr, None) or environ.get(var)
    return value.strip() if value and value.strip() else None


@dataclass(frozen=True)
class GitHubSettings:
    token: str
    owner: str
    repo: str

    @classmethod
    def from_sources(
        cls, args, environ: Mapping[str, str] = os.environ
    ) -> Optional["GitHubSettings"]:
        """Settings from the command line or environment, None if incomplete"""
        values = {}
        for attr, var in (
            ("github_token", "GITHUB_TOKEN"),
            ("github_owner", "GITHUB_OWNER"),
            ("github_repo", "GITHUB_REPO"),
        ):
            values[attr] = _setting(args, attr, environ, var)
            if values[attr] is None:
                print(f"{var} not provided. Skipping this report.")
                return None
        return cls(values["github_token"], values["github_owner"], values["github_repo"])


@dataclass(frozen=True)
class JiraSettings:
    base_url: str
    user: str
    token: str
    project: str

    @classmethod
    def from_sources(
        cls, args, environ: Mapping[str, str] = os.environ
    ) -> Optional["JiraSettings"]:
        values = {}
        for attr, var in (
            ("jira_url", "JIRA_BASE_URL"),
            ("jira_user", "JIRA_USER"),
            ("jira_token", "JIRA_TOKEN"),
            ("jira_project", "JIRA_PROJECT"),
        ):
            values[attr] = _setting(args, attr, environ, var)
            if values[attr] is None:
                print(f"{var} not provided. Skipping this report.")
                return None
        return cls(
            values["jira_url"].rstrip("/"),
            values["jira_user"],
            values["jira_token"],
            values["jira_project"],
        )


def strict_window_enabled(args, environ: Mapping[str, str] = os.environ) -> bool:
    if getattr(args, "ignore_close_dates", False):
        return False
    return environ.get("STRICT_WINDOW", "true").strip().lower() not in ("false", "0", "no")


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


class ReportGenerator:
    """Render the per-person tables"""

    GITHUB_COLUMNS = [
        "ID",
        "Name",
        "Total PRs",
        "Merged PRs",
        "Merged PRs (%)",
        "Open PRs",
        "Added lines",
        "Removed lines",
        "Changed files",
    ]
    JIRA_COLUMNS = ["Name", "Total In Progress", "Spike In Progress"]

    @staticmethod
    def github_report(aggregator: PullRequestAggregator) -> str:
        report = [
            f"{aggregator.total_prs} PRs were created between {aggregator.window}"
        ]

        rows = aggregator.rows()
        if not rows:
            report.append("No pull requests found in this window.")
            return "\n".join(report)

        data = [
            [
                p.login,
                p.display_name,
                p.total_prs,
                p.merged_prs,
                f"{p.merged_percentage:.1f}%",
                p.open_prs,
                p.added_lines,
                p.removed_lines,
                p.changed_files,
            ]
            for p in rows
        ]

        averages = aggregator.averages()
        data.append(
            [
                "Averages",
                "",
                f"{averages['total_prs']:.1f}",
                f"{averages['merged_prs']:.1f}",
                "",
                "",
                f"{averages['added_lines']:.1f}",
                f"{averages['removed_lines']:.1f}",
                f"{averages['changed_files']:.1f}",
            ]
        )

        df = pd.DataFrame(data, columns=ReportGenerator.GITHUB_COLUMNS)
        report.append(df.to_string(index=False))
        return "\n".join(report)

    @staticmethod
    def jira_report(aggregator: InProgressAggregator) -> str:
        window = aggregator.window
        report = [
            f"{aggregator.total_issues} tickets were moved into progress between {window}"
        ]

        rows = aggregator.rows()
        if not rows:
            report.append("No tickets were moved into progress in this window.")
            return "\n".join(report)

        df = pd.DataFrame(
            [[p.display_name, p.total_in_progress, p.spike_in_progress] for p in rows],
            columns=ReportGenerator.JIRA_COLUMNS,
        )
        report.append(df.to_string(index=False))
        return "\n".join(report)


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def configure_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pull-metrics",
        description="Summarise GitHub pull requests and Jira progress per person",
        epilog="E.g.: pull-metrics 2024-02-28 2024-03-15",
    )
    parser.add_argument("start_date", help="Start of the window (YYYY-MM-DD), exclusive")
    parser.add_argument(
        "end_date",
        nargs="?",
        help="End of the window (YYYY-MM-DD), inclusive (default: now)",
    )
    parser.add_argument("--output", "-o", help="Write the reports to this file")
    parser.add_argument("-v", dest="verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "--ignore-close-dates",
        action="store_true",
        help="Classify merged/open PRs by their flags only, ignoring mergedAt/closedAt",
    )

    parser.add_argument("--github-token", help="GitHub personal access token")
    parser.add_argument("--github-owner", help="GitHub repository owner")
    parser.add_argument("--github-repo", help="GitHub repository name")
    parser.add_argument("--jira-url", help="Jira base URL (e.g., https://my.jira.com)")
    parser.add_argument("--jira-user", help="Jira user for basic authentication")
    parser.add_argument("--jira-token", help="Jira API token")
    parser.add_argument("--jira-project", help="Jira project key")
    return parser


def run(
    args,
    window: DateWindow,
    emit: Callable[[str], None],
    environ: Mapping[str, str] = os.environ,
) -> None:
    """Build each report and emit it as soon as its pipeline finishes.

    A pipeline with missing configuration is skipped.
    """
    github_settings = GitHubSettings.from_sources(args, environ)
    if github_settings is not None:
        client = create_github_client(github_settings.token)
        aggregator = collect_github_metrics(
            client,
            github_settings,
            window,
            strict_window=strict_window_enabled(args, environ),
        )
        emit(ReportGenerator.github_report(aggregator))

    jira_settings = JiraSettings.from_sources(args, environ)
    if jira_settings is not None:
        client = create_jira_client(
            jira_settings.base_url, jira_settings.user, jira_settings.token
        )
        aggregator = collect_jira_metrics(client, jira_settings, window)
        emit(ReportGenerator.jira_report(aggregator))


def main(argv: Optional[List[str]] = None):
    """Main function"""
    parser = configure_argument_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        format="[%(asctime)s %(levelname)s] %(message)s",
        level=logging.DEBUG if args.verbose else logging.INFO,
    )

    try:
        window = DateWindow.from_strings(args.start_date, args.end_date)
    except ValueError as e:
        logger.error("%s", e)
        parser.print_usage(sys.stderr)
        sys.exit(1)

    with open(args.output, "w") if args.output else nullcontext(sys.stdout) as out:

        def emit(section: str) -> None:
            print(section, end="\n\n", file=out, flush=True)

        try:
            run(args, window, emit)
        except MetricsError as e:
            logger.error("%s", e)
            sys.exit(1)

    if args.output:
        print(f"Report saved to: {args.output}")


if __name__ == "__main__":
    main()
