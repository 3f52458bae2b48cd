import unittest
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from reviewhub.core.db import get_db
from reviewhub.models import Repository
from reviewhub.services.identity import PrimarySession, SessionUser
from tests.base import AppTestCase

REPO_DETAILS = {
    "name": "widgets",
    "full_name": "octocat/widgets",
    "owner": {"login": "octocat"},
    "description": "Widgets!",
    "language": "Python",
    "private": True,
    "html_url": "https://github.com/octocat/widgets",
}


class TestRecentRepositories(AppTestCase):

    def test_requires_user_id(self):
        resp = self.client.get("/api/repositories")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "User ID is required")

    def test_lists_newest_first_with_defaults(self):
        now = datetime.utcnow()
        self.add_repository("octocat/old", "42", updated_at=now - timedelta(days=2))
        self.add_repository("octocat/new", "42", updated_at=now, language="Go", url="https://example.com/new")
        self.add_repository("someone/else", "7")

        resp = self.client.get("/api/repositories?userId=42")

        self.assertEqual(resp.status_code, 200)
        repos = resp.json()["repositories"]
        self.assertEqual([r["full_name"] for r in repos], ["octocat/new", "octocat/old"])
        self.assertEqual(repos[0]["language"], "Go")
        self.assertEqual(repos[0]["url"], "https://example.com/new")
        self.assertEqual(repos[1]["url"], "https://github.com/octocat/old")
        self.assertEqual(repos[1]["description"], "")
        self.assertFalse(repos[1]["is_private"])

    def test_limited_to_ten(self):
        for i in range(12):
            self.add_repository(f"octocat/r{i}", "42")

        repos = self.client.get("/api/repositories?userId=42").json()["repositories"]
        self.assertEqual(len(repos), 10)

    def test_count(self):
        self.add_repository("octocat/a", "42")
        self.add_repository("octocat/b", "42")

        self.assertEqual(self.client.get("/api/repositories/count?userId=42").json(), {"count": 2})
        self.assertEqual(self.client.get("/api/repositories/count?userId=nobody").json(), {"count": 0})
        self.assertEqual(self.client.get("/api/repositories/count").status_code, 400)


class TestUserRepositories(AppTestCase):

    def test_requires_identity(self):
        self.assertEqual(self.client.get("/api/user/repositories").status_code, 401)

    def test_lists_repositories_of_resolved_identity(self):
        self.add_repository("octocat/zeta", "u1")
        self.add_repository("octocat/alpha", "u1")
        self.add_repository("octocat/fallback-only", "42")
        self.primary.session = PrimarySession(user=SessionUser(id="u1", name="octocat"), access_token="ptok")
        self.sign_in_fallback(user_id="42")

        repos = self.client.get("/api/user/repositories").json()["repositories"]

        self.assertEqual([r["full_name"] for r in repos], ["octocat/alpha", "octocat/zeta"])
        self.assertEqual(set(repos[0]), {"id", "full_name", "owner", "name"})

    @patch("reviewhub.api.repositories.GitHubClient.get_repository", new_callable=AsyncMock)
    def test_connect_repository(self, mock_get_repository):
        mock_get_repository.return_value = REPO_DETAILS
        self.sign_in_fallback(user_id="42", token="tok")

        resp = self.client.post("/api/user/repositories", json={"full_name": "octocat/widgets"})

        self.assertEqual(resp.status_code, 201)
        data = resp.json()
        self.assertEqual(data["full_name"], "octocat/widgets")
        self.assertTrue(data["is_private"])
        mock_get_repository.assert_awaited_once_with("octocat", "widgets")

        repo = self.db.query(Repository).one()
        self.assertEqual(repo.user_id, "42")
        self.assertEqual(repo.owner, "octocat")
        self.assertEqual(repo.language, "Python")

    @patch("reviewhub.api.repositories.GitHubClient.get_repository", new_callable=AsyncMock)
    def test_connect_duplicate(self, mock_get_repository):
        self.add_repository("octocat/widgets", "42")
        self.sign_in_fallback(user_id="42")

        resp = self.client.post("/api/user/repositories", json={"full_name": "octocat/widgets"})

        self.assertEqual(resp.status_code, 409)
        mock_get_repository.assert_not_awaited()

    def test_connect_invalid_name(self):
        self.sign_in_fallback()
        for bad in ("widgets", "a/b/c", "/widgets"):
            resp = self.client.post("/api/user/repositories", json={"full_name": bad})
            self.assertEqual(resp.status_code, 400, bad)

    @patch("reviewhub.api.repositories.GitHubClient.get_repository", new_callable=AsyncMock)
    def test_connect_repository_github_rejects(self, mock_get_repository):
        request = httpx.Request("GET", "https://api.github.com/repos/octocat/secret")
        mock_get_repository.side_effect = httpx.HTTPStatusError(
            "not found", request=request, response=httpx.Response(404, request=request)
        )
        self.sign_in_fallback()

        resp = self.client.post("/api/user/repositories", json={"full_name": "octocat/secret"})

        self.assertEqual(resp.status_code, 404)
        self.assertEqual(self.db.query(Repository).count(), 0)

    def test_connect_without_token(self):
        self.primary.session = PrimarySession(user=SessionUser(id="u1"), access_token=None)
        resp = self.client.post("/api/user/repositories", json={"full_name": "octocat/widgets"})
        self.assertEqual(resp.status_code, 400)

    def test_remove_repository(self):
        mine = self.add_repository("octocat/widgets", "42")
        theirs = self.add_repository("octocat/widgets", "7")
        self.sign_in_fallback(user_id="42")

        self.assertEqual(self.client.delete(f"/api/user/repositories/{theirs.id}").status_code, 404)
        self.assertEqual(self.client.delete(f"/api/user/repositories/{mine.id}").json(), {"success": True})

        remaining = [r.user_id for r in self.db.query(Repository).all()]
        self.assertEqual(remaining, ["7"])


class TestGitHubRepos(AppTestCase):

    @patch("reviewhub.api.repositories.GitHubClient.get_repos", new_callable=AsyncMock)
    def test_lists_repos_with_identity_token(self, mock_get_repos):
        mock_get_repos.return_value = [{"full_name": "octocat/widgets", "private": False, "default_branch": "main"}]
        self.sign_in_fallback()

        resp = self.client.get("/github/repos")

        self.assertEqual(resp.json(), [{"full_name": "octocat/widgets", "private": False, "default_branch": "main"}])

    def test_requires_identity(self):
        self.assertEqual(self.client.get("/github/repos").status_code, 401)


if __name__ == "__main__":
    unittest.main()


class TestRepositoryStoreErrors(AppTestCase):

    def setUp(self):
        super().setUp()
        self.broken_db = MagicMock()

        def override_get_db():
            yield self.broken_db

        self.app.dependency_overrides[get_db] = override_get_db
        self.addCleanup(self.app.dependency_overrides.clear)

    def test_connection_error_is_503(self):
        self.broken_db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

        for path in ("/api/repositories?userId=42", "/api/repositories/count?userId=42"):
            resp = self.client.get(path)
            self.assertEqual(resp.status_code, 503, path)
            self.assertEqual(resp.json()["detail"], "Database connection error")

    def test_other_store_error_is_500(self):
        self.broken_db.query.side_effect = SQLAlchemyError("boom")

        resp = self.client.get("/api/repositories?userId=42")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], "Failed to fetch repositories")

        resp = self.client.get("/api/repositories/count?userId=42")
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], "Failed to fetch repository count")

    def test_user_repositories_connection_error_is_503(self):
        self.broken_db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        self.sign_in_fallback()

        resp = self.client.get("/api/user/repositories")

        self.assertEqual(resp.status_code, 503)
        self.assertEqual(resp.json()["detail"], "Database connection error")
