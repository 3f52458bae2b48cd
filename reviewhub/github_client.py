# reviewhub/github_client.py
import httpx
from typing import Union

GITHUB_API_URL = "https://api.github.com"
GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_TOKEN_URL = "https://github.com/login/oauth/access_token"


class GitHubOAuthError(RuntimeError):
    """Token exchange or user lookup failed during an OAuth callback."""


async def exchange_code_for_token(client_id: str, client_secret: str, code: str,
                                  redirect_uri: str | None = None, state: str | None = None,
                                  transport: httpx.AsyncBaseTransport | None = None) -> dict:
    """Trade an OAuth `code` for GitHub's token payload.

    Raises GitHubOAuthError when GitHub answers with an error or without a token.
    """
    data = {"client_id": client_id, "client_secret": client_secret, "code": code}
    if redirect_uri:
        data["redirect_uri"] = redirect_uri
    if state:
        data["state"] = state

    async with httpx.AsyncClient(headers={"Accept": "application/json"}, transport=transport) as client:
        resp = await client.post(GITHUB_TOKEN_URL, data=data)

    try:
        token_data = resp.json()
    except ValueError:
        token_data = {}

    if resp.is_error or token_data.get("error"):
        message = token_data.get("error_description") or token_data.get("error") or "Token exchange failed"
        raise GitHubOAuthError(message)

    if not token_data.get("access_token"):
        raise GitHubOAuthError("no_access_token")

    return token_data


class GitHubClient:
    def __init__(self, client_or_token: Union[httpx.AsyncClient, str]):
        self.base_url = GITHUB_API_URL

        # If caller passed an AsyncClient, reuse it (tests do this).
        if isinstance(client_or_token, httpx.AsyncClient):
            self.client = client_or_token
            self.headers = getattr(self.client, "headers", None)
        else:
            # If caller passed a token string, build headers and use ad-hoc clients.
            self.client = None
            access_token = str(client_or_token)
            self.headers = {
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/vnd.github+json",
            }

    async def get_authenticated_user(self):
        resp = await self._request("GET", f"{self.base_url}/user")
        return resp.json()

    async def get_repos(self):
        resp = await self._request("GET", f"{self.base_url}/user/repos?per_page=100")
        return resp.json()

    async def get_repository(self, owner: str, repo: str):
        resp = await self._request("GET", f"{self.base_url}/repos/{owner}/{repo}")
        return resp.json()

    async def _request(self, method: str, url: str, **kwargs):
        """Internal helper that uses either the provided client or a temporary one."""
        if self.client:
            resp = await self.client.request(method, url, **kwargs)
        else:
            async with httpx.AsyncClient(headers=self.headers) as client:
                resp = await client.request(method, url, **kwargs)
        resp.raise_for_status()
        return resp
