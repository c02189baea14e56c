"""Fixtures and fake transports for the pull_metrics tests.

The fakes mimic just enough of ``gql.Client`` and ``atlassian.Jira`` for the
fetchers: no network access happens in tests.
"""

from datetime import datetime, timedelta

import pytest
import pytz

import pull_metrics


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=pytz.UTC)


def iso(value: datetime) -> str:
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def pr_node(
    login,
    created_at,
    additions=10,
    deletions=5,
    changed_files=2,
    closed=False,
    closed_at=None,
    merged=False,
    merged_at=None,
    title="Some change",
):
    """A pull request node shaped like the GraphQL response"""
    return {
        "author": {"login": login} if login else None,
        "title": title,
        "createdAt": iso(created_at),
        "additions": additions,
        "deletions": deletions,
        "changedFiles": changed_files,
        "totalCommentsCount": 0,
        "closed": closed,
        "closedAt": iso(closed_at) if closed_at else None,
        "merged": merged,
        "mergedAt": iso(merged_at) if merged_at else None,
    }


class FakeGitHubClient:
    """Serves ``nodes`` (newest first) through cursor pagination"""

    def __init__(self, nodes, names=None, error=None):
        self.nodes = nodes
        self.names = names or {}
        self.error = error
        self.page_requests = []
        self.user_requests = []

    def execute(self, document, variable_values=None):
        if self.error is not None:
            raise self.error

        if document is pull_metrics.USER_NAME_QUERY:
            login = variable_values["login"]
            self.user_requests.append(login)
            return {"user": {"name": self.names.get(login)}}

        self.page_requests.append(dict(variable_values))
        first = variable_values["first"]
        start = int(variable_values["cursor"]) if variable_values["cursor"] else 0
        page = self.nodes[start : start + first]
        end = start + len(page)
        return {
            "repository": {
                "pullRequests": {
                    "nodes": page,
                    "pageInfo": {
                        "hasNextPage": end < len(self.nodes),
                        "endCursor": str(end) if page else None,
                    },
                }
            }
        }


def jira_issue(key, histories, issue_type="Story"):
    return {
        "key": key,
        "fields": {
            "summary": f"Summary of {key}",
            "assignee": {"displayName": "Someone"},
            "issuetype": {"name": issue_type},
        },
        "changelog": {"histories": histories},
    }


def history(author, to_string, field="status", created=None):
    entry = {
        "author": {"displayName": author},
        "items": [{"field": field, "toString": to_string}],
    }
    if created:
        entry["created"] = created
    return entry


class FakeJiraClient:
    """Returns the queued search responses in order"""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def post(self, path, data=None):
        self.calls.append((path, data))
        return self.responses.pop(0)


@pytest.fixture(name="window")
def march_window():
    """2024-02-28 .. 2024-03-15 (end of day)"""
    return pull_metrics.DateWindow.from_strings("2024-02-28", "2024-03-15")


@pytest.fixture(name="github_settings")
def github_settings_fixture():
    return pull_metrics.GitHubSettings(token="t0ken", owner="acme", repo="widgets")


@pytest.fixture(name="jira_settings")
def jira_settings_fixture():
    return pull_metrics.JiraSettings(
        base_url="https://jira.example.com", user="me", token="secret", project="ACME"
    )


@pytest.fixture(name="one_second")
def one_second_fixture():
    return timedelta(seconds=1)
