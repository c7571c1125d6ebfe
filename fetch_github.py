"""Fetch the files of a public GitHub repository over the REST API (no clone)."""

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from urllib.parse import quote, urlparse

import requests

from review_config import DEFAULT_GITHUB_TIMEOUT
from review_errors import InvalidInput, NoAnalyzableContent, UpstreamUnavailable
from review_models import AnalysisStatus, CodeFile, RepoAnalysisData, Stage
from select_files import select_files

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
GITHUB_RAW_BASE = "https://raw.githubusercontent.com"

INVALID_URL_MESSAGE = (
    "Invalid GitHub repository URL. Please provide a URL like "
    "'https://github.com/owner/repo'."
)


def parse_repo_url(url: str):
    """Return (owner, repo) for a github.com URL; raise InvalidInput otherwise."""
    try:
        parsed = urlparse((url or "").strip())
    except ValueError:
        raise InvalidInput(INVALID_URL_MESSAGE)
    if parsed.scheme not in ("http", "https") or parsed.hostname != "github.com":
        raise InvalidInput(INVALID_URL_MESSAGE)
    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 2:
        raise InvalidInput(INVALID_URL_MESSAGE)
    return parts[0], parts[1]


class GitHubClient:
    """Thin wrapper around the GitHub endpoints the reviewer needs."""

    def __init__(self, token=None, timeout=DEFAULT_GITHUB_TIMEOUT, session=None):
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self):
        headers = {"Accept": "application/vnd.github.v3+json"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    def _get(self, url, params=None, headers=None):
        logger.debug("GET %s", url)
        try:
            return self.session.get(url, headers=headers, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamUnavailable(f"Could not reach GitHub: {e}") from e

    def api_get(self, path, error_message, params=None):
        resp = self._get(f"{GITHUB_API_BASE}{path}", params=params, headers=self._headers())
        if resp.status_code != 200:
            raise UpstreamUnavailable(
                f"{error_message} Status: {resp.status_code}", status_code=resp.status_code
            )
        return resp.json()

    def get_default_branch(self, owner, repo):
        data = self.api_get(f"/repos/{owner}/{repo}", "Could not fetch repository data.")
        return data["default_branch"]

    def get_file_tree(self, owner, repo, branch):
        """Return (blob paths, truncated) for the tip commit of `branch`."""
        branch_data = self.api_get(
            f"/repos/{owner}/{repo}/branches/{quote(branch, safe='')}",
            "Could not fetch branch details.",
        )
        tree_sha = branch_data["commit"]["sha"]
        tree = self.api_get(
            f"/repos/{owner}/{repo}/git/trees/{tree_sha}",
            "Could not fetch repository file tree.",
            params={"recursive": "1"},
        )
        truncated = bool(tree.get("truncated"))
        if truncated:
            logger.warning(
                "File tree of %s/%s is truncated. Analysis may be incomplete.", owner, repo
            )
        paths = [item["path"] for item in tree.get("tree", []) if item.get("type") == "blob"]
        return paths, truncated

    def fetch_raw(self, owner, repo, branch, path):
        raw_url = f"{GITHUB_RAW_BASE}/{owner}/{repo}/{quote(branch)}/{quote(path)}"
        headers = {"Authorization": f"token {self.token}"} if self.token else None
        resp = self._get(raw_url, headers=headers)
        if resp.status_code != 200:
            raise UpstreamUnavailable(
                f"Failed to fetch {path}. Status: {resp.status_code}",
                status_code=resp.status_code,
            )
        return CodeFile(path=path, content=resp.text)

    def fetch_many(self, owner, repo, branch, paths):
        """Download every path once, all at the same time; the first failure aborts the rest."""
        paths = list(dict.fromkeys(paths))
        executor = ThreadPoolExecutor(max_workers=max(1, len(paths)))
        try:
            futures = [
                executor.submit(self.fetch_raw, owner, repo, branch, p) for p in paths
            ]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for future in done:
                if future.exception() is not None:
                    raise future.exception()
            return {f.result().path: f.result() for f in futures}
        finally:
            executor.shutdown(wait=False, cancel_futures=True)


def _report(on_progress, message):
    if on_progress is not None:
        on_progress(AnalysisStatus(Stage.FETCHING, message))


def fetch_repository(repo_url, client=None, on_progress=None):
    """Resolve `repo_url` and download the structural and code files chosen for review."""
    if on_progress is not None:
        on_progress(AnalysisStatus(Stage.INITIALIZING, "Parsing repository URL..."))
    owner, repo = parse_repo_url(repo_url)
    client = client or GitHubClient()

    _report(on_progress, "Getting default branch...")
    branch = client.get_default_branch(owner, repo)

    _report(on_progress, "Fetching file list...")
    paths, truncated = client.get_file_tree(owner, repo, branch)

    structural, code = select_files(paths)
    to_fetch = structural + code
    if not to_fetch:
        raise NoAnalyzableContent(
            "Could not find any relevant files to analyze in this repository."
        )

    _report(on_progress, f"Fetching {len(to_fetch)} files...")
    logger.info("Fetching %d files from %s/%s@%s", len(to_fetch), owner, repo, branch)
    by_path = client.fetch_many(owner, repo, branch, to_fetch)

    return RepoAnalysisData(
        structural_files=tuple(by_path[p] for p in structural),
        code_files=tuple(by_path[p] for p in code),
        owner=owner,
        repo=repo,
        branch=branch,
        truncated=truncated,
    )
