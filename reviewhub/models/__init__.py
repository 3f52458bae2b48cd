from reviewhub.models.user import User
from reviewhub.models.account import Account, GITHUB_PROVIDER
from reviewhub.models.repository import Repository

__all__ = ["User", "Account", "Repository", "GITHUB_PROVIDER"]
