import os
import tempfile
import unittest
from unittest import mock

import requests

from config import GlobalConfig
from config_manager import CommitHistoryProviderType
from credentials import Credential
from data_sources.azure_devops import (
    PAGE_SIZE,
    AzureDevOpsCommitHistoryProvider,
    default_branch_name,
    repository_keys,
)
from data_sources.factory import get_commit_history_provider
from data_sources.local_git import LocalGitCommitHistoryProvider
from errors import (
    ApiConnectionError,
    ConfigurationError,
    CredentialError,
    PerRepositoryFetchError,
)
from fakes import (
    FakeCredentialStore,
    FakeResponse,
    FakeSession,
    RecordingProgressReporter,
    make_context,
    make_settings,
)
from git_utils import FIELD_SEPARATOR

ORG = "galera"
CREDENTIAL = Credential("jane.doe@example.com", "pat")


def _git_line(*fields):
    return FIELD_SEPARATOR.join(fields)


class TestLocalGitProvider(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        for name in ("alpha", "beta", "gamma"):
            os.mkdir(os.path.join(self.tmp.name, name))
        # 普通文件不是仓库候选
        open(os.path.join(self.tmp.name, "notes.txt"), "w").close()
        self.progress = RecordingProgressReporter()
        self.provider = LocalGitCommitHistoryProvider(self.progress, GlobalConfig())
        self.context = make_context(make_settings(project_git_directory=self.tmp.name))

    def tearDown(self):
        self.tmp.cleanup()

    def test_discover_repositories(self):
        repositories = self.provider.discover_repositories(self.tmp.name)
        self.assertEqual(list(repositories), ["alpha", "beta", "gamma"])

    async def test_collects_commits_and_isolates_failures(self):
        calls = []

        async def fake_run(args, timeout):
            calls.append(args)
            repo = os.path.basename(args[2])
            if repo == "alpha":
                output = "\n".join(
                    [
                        _git_line("abc1234", "Jane Doe", "2024-03-01", "Fix bug"),
                        _git_line("def5678", "Jane Doe", "2024-03-04", "Add tests, docs"),
                    ]
                )
                return 0, output, ""
            if repo == "beta":
                return 0, "", ""
            return 128, "", "fatal: not a git repository"

        with mock.patch("git_utils.run_git_command", new=fake_run):
            aggregate = await self.provider.get_commits_history(self.context)

        self.assertEqual(set(aggregate.sets), {"alpha"})
        commits = aggregate.sets["alpha"].commits
        self.assertEqual([c.id for c in commits], ["abc1234", "def5678"])
        self.assertEqual(commits[1].message, "Add tests, docs")
        self.assertEqual(commits[0].author_email, "jane.doe@example.com")

        self.assertEqual(len(aggregate.errors), 1)
        self.assertIsInstance(aggregate.errors[0], PerRepositoryFetchError)
        self.assertEqual(aggregate.errors[0].repository, "gamma")

        self.assertEqual(len(calls), 3)
        self.assertIn("--since=2024-03-01 00:00:00", calls[0])
        self.assertIn("--until=2024-03-31 23:59:59", calls[0])

        history = self.progress.tasks[-1]
        self.assertEqual(history.description, "Getting history of commits.")
        self.assertEqual(history.completed, 3)

    async def test_missing_root_directory(self):
        context = make_context(
            make_settings(project_git_directory=os.path.join(self.tmp.name, "missing"))
        )
        with self.assertRaises(ConfigurationError):
            await self.provider.get_commits_history(context)


class TestAzureDevOpsProvider(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.progress = RecordingProgressReporter()
        self.store = FakeCredentialStore({f"{ORG}@azure.devops": CREDENTIAL})
        self.settings = make_settings(
            commit_history_provider=CommitHistoryProviderType.AZURE_DEVOPS,
            project_ado_organization_name=ORG,
            project_git_directory=None,
        )

    def _provider(self, session):
        return AzureDevOpsCommitHistoryProvider(
            self.progress, GlobalConfig(), self.store, session_factory=lambda: session
        )

    @staticmethod
    def _handler(url, params):
        if url.endswith("/_apis/git/repositories"):
            return FakeResponse(
                {
                    "value": [
                        {"id": "1", "name": "api", "defaultBranch": "refs/heads/develop"},
                        {"id": "2", "name": "web"},
                        {"id": "3", "name": "docs", "defaultBranch": "refs/heads/main"},
                    ]
                }
            )
        if "/repositories/1/commits" in url:
            author = {"name": "Jane Doe", "email": "jane.doe@example.com"}
            return FakeResponse(
                {
                    "value": [
                        {
                            "commitId": "abc1234567890",
                            "author": dict(author, date="2024-03-05T10:00:00Z"),
                            "comment": "Fix login",
                            "parents": ["p1"],
                        },
                        {
                            "commitId": "fff0000000000",
                            "author": dict(author, date="2024-03-06T10:00:00Z"),
                            "comment": "Merged PR 42: feature",
                            "parents": ["p1", "p2"],
                        },
                    ]
                }
            )
        if "/repositories/2/commits" in url:
            raise requests.ConnectionError("connection reset")
        return FakeResponse({"value": []})

    async def test_collects_commits(self):
        session = FakeSession(self._handler)
        aggregate = await self._provider(session).get_commits_history(
            make_context(self.settings)
        )

        self.assertEqual(set(aggregate.sets), {"api"})
        commits = aggregate.sets["api"].commits
        self.assertEqual([c.short_id for c in commits], ["abc1234"])
        self.assertEqual(commits[0].message, "Fix login")

        self.assertEqual(len(aggregate.errors), 1)
        self.assertEqual(aggregate.errors[0].repository, "web")

        self.assertEqual(session.auth, ("jane.doe@example.com", "pat"))
        self.assertTrue(session.closed)

        branches = {
            url.split("/repositories/")[1].split("/")[0]: params[
                "searchCriteria.itemVersion.version"
            ]
            for url, params in session.calls
            if "/commits" in url
        }
        self.assertEqual(branches, {"1": "develop", "2": "main", "3": "main"})
        for url, params in session.calls:
            self.assertEqual(params["api-version"], "7.0")
            if "/commits" in url:
                self.assertEqual(params["searchCriteria.author"], CREDENTIAL.account)
                self.assertTrue(params["searchCriteria.fromDate"].startswith("2024-03-01"))
                self.assertTrue(params["searchCriteria.toDate"].startswith("2024-03-31"))

        self.assertEqual(
            self.progress.descriptions,
            [
                "Getting git credentials.",
                "Connecting to the Azure DevOps Git API.",
                "Getting history of commits.",
            ],
        )

    async def test_missing_organization(self):
        settings = make_settings(
            commit_history_provider=CommitHistoryProviderType.AZURE_DEVOPS,
            project_ado_organization_name="  ",
        )
        with self.assertRaises(ConfigurationError):
            await self._provider(FakeSession(self._handler)).get_commits_history(
                make_context(settings)
            )

    async def test_missing_credentials(self):
        self.store = FakeCredentialStore()
        with self.assertRaises(CredentialError):
            await self._provider(FakeSession(self._handler)).get_commits_history(
                make_context(self.settings)
            )

    async def test_repository_listing_failure(self):
        session = FakeSession(lambda url, params: FakeResponse({}, status_code=401))
        with self.assertRaises(ApiConnectionError) as ctx:
            await self._provider(session).get_commits_history(make_context(self.settings))

        self.assertIsInstance(ctx.exception.cause, requests.HTTPError)
        self.assertTrue(session.closed)

    async def test_single_parent_merge_like_messages_are_kept(self):
        author = {"name": "Jane Doe", "email": "jane.doe@example.com", "date": "2024-03-07T09:00:00Z"}

        def handler(url, params):
            if url.endswith("/_apis/git/repositories"):
                return FakeResponse({"value": [{"id": "1", "name": "api"}]})
            return FakeResponse(
                {
                    "value": [
                        {"commitId": "a" * 40, "author": author,
                         "comment": "Merged PR 7: Add login", "parents": ["p1"]},
                        {"commitId": "b" * 40, "author": author,
                         "comment": "Mergesort for reports", "parents": ["p1"]},
                        {"commitId": "c" * 40, "author": author,
                         "comment": "Merge branch 'main'", "parents": ["p1", "p2"]},
                    ]
                }
            )

        aggregate = await self._provider(FakeSession(handler)).get_commits_history(
            make_context(self.settings)
        )

        messages = [c.message for c in aggregate.sets["api"].commits]
        self.assertEqual(messages, ["Merged PR 7: Add login", "Mergesort for reports"])

    async def test_same_name_in_different_projects(self):
        author = {"name": "Jane Doe", "email": "jane.doe@example.com", "date": "2024-03-07T09:00:00Z"}

        def handler(url, params):
            if url.endswith("/_apis/git/repositories"):
                return FakeResponse(
                    {
                        "value": [
                            {"id": "1", "name": "api", "project": {"name": "P1"}},
                            {"id": "2", "name": "api", "project": {"name": "P2"}},
                            {"id": "3", "name": "web", "project": {"name": "P1"}},
                        ]
                    }
                )
            repository_id = url.split("/repositories/")[1].split("/")[0]
            if repository_id == "3":
                return FakeResponse({"value": []})
            return FakeResponse(
                {
                    "value": [
                        {"commitId": repository_id * 40, "author": author,
                         "comment": f"Change {repository_id}", "parents": ["p1"]},
                    ]
                }
            )

        aggregate = await self._provider(FakeSession(handler)).get_commits_history(
            make_context(self.settings)
        )

        self.assertEqual(aggregate.total_commits, 2)
        self.assertEqual(set(aggregate.sets), {"P1/api", "P2/api"})
        self.assertEqual(aggregate.sets["P2/api"].commits[0].message, "Change 2")
        self.assertEqual(self.progress.tasks[-1].completed, 3)

    async def test_commits_are_paged(self):
        author = {"name": "Jane Doe", "email": "jane.doe@example.com", "date": "2024-03-07T09:00:00Z"}

        def page(start, count):
            return [
                {"commitId": f"{n:040x}", "author": author,
                 "comment": f"Change {n}", "parents": ["p1"]}
                for n in range(start, start + count)
            ]

        def handler(url, params):
            if url.endswith("/_apis/git/repositories"):
                return FakeResponse({"value": [{"id": "1", "name": "api"}]})
            if params["searchCriteria.$skip"] == 0:
                return FakeResponse({"value": page(0, PAGE_SIZE)})
            return FakeResponse({"value": page(PAGE_SIZE, 1)})

        session = FakeSession(handler)
        aggregate = await self._provider(session).get_commits_history(
            make_context(self.settings)
        )

        self.assertEqual(aggregate.total_commits, PAGE_SIZE + 1)
        self.assertEqual(aggregate.sets["api"].commits[-1].message, f"Change {PAGE_SIZE}")
        skips = [p["searchCriteria.$skip"] for url, p in session.calls if "/commits" in url]
        self.assertEqual(skips, [0, PAGE_SIZE])
        for url, params in session.calls:
            if "/commits" in url:
                self.assertEqual(params["searchCriteria.$top"], PAGE_SIZE)

    def test_repository_keys(self):
        keys = repository_keys(
            [
                {"id": "1", "name": "api", "project": {"name": "P1"}},
                {"id": "2", "name": "api", "project": {"name": "P2"}},
                {"id": "3", "name": "api"},
                {"id": "4", "name": "docs"},
                {"id": "5"},
            ]
        )
        self.assertEqual(list(keys), ["P1/api", "P2/api", "api (3)", "docs"])
        self.assertEqual(keys["P2/api"]["id"], "2")

    def test_default_branch_name(self):
        self.assertEqual(default_branch_name({"defaultBranch": "refs/heads/release/2.0"}), "2.0")
        self.assertEqual(default_branch_name({"defaultBranch": ""}), "main")
        self.assertEqual(default_branch_name({}), "main")


class TestProviderFactory(unittest.TestCase):

    def test_creates_configured_provider(self):
        progress = RecordingProgressReporter()
        config = GlobalConfig()

        local = get_commit_history_provider(make_settings(), progress, config)
        remote = get_commit_history_provider(
            make_settings(commit_history_provider=CommitHistoryProviderType.AZURE_DEVOPS),
            progress,
            config,
            FakeCredentialStore(),
        )

        self.assertIsInstance(local, LocalGitCommitHistoryProvider)
        self.assertIsInstance(remote, AzureDevOpsCommitHistoryProvider)
        self.assertEqual(remote.provider_type, CommitHistoryProviderType.AZURE_DEVOPS)

    def test_unknown_provider(self):
        with self.assertRaises(ConfigurationError):
            get_commit_history_provider(
                make_settings(commit_history_provider=None),
                RecordingProgressReporter(),
                GlobalConfig(),
            )


if __name__ == "__main__":
    unittest.main()
