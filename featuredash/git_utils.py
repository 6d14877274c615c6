"""Links from scanner commit data back to the repository's web UI."""
from __future__ import annotations

import re
from typing import Optional

_SSH_REMOTE_RE = re.compile(r"^git@([^:]+):(.+?)(\.git)?$")
_GIT_SUFFIX_RE = re.compile(r"\.git$")
_TRAILING_SLASH_RE = re.compile(r"/$")


def build_commit_url(repository: Optional[str], commit_hash: Optional[str]) -> Optional[str]:
    """Web URL of ``commit_hash`` in ``repository``, or ``None`` when either is missing.

    ``git@host:owner/repo.git`` remotes are rewritten to HTTPS. GitHub and
    unknown hosts use ``/commit/<hash>``, GitLab (including self-hosted)
    ``/-/commit/<hash>`` and Bitbucket ``/commits/<hash>``.
    """
    if not repository or not commit_hash:
        return None

    url = repository.strip()
    ssh_match = _SSH_REMOTE_RE.match(url)
    if ssh_match:
        url = f"https://{ssh_match.group(1)}/{ssh_match.group(2)}"

    url = _GIT_SUFFIX_RE.sub("", url)
    url = _TRAILING_SLASH_RE.sub("", url)

    if "github.com" in url:
        return f"{url}/commit/{commit_hash}"
    if "gitlab" in url:
        return f"{url}/-/commit/{commit_hash}"
    if "bitbucket.org" in url:
        return f"{url}/commits/{commit_hash}"
    return f"{url}/commit/{commit_hash}"
