import threading

import pytest

from review_models import AnalysisStatus, CodeFile, RepoAnalysisData, Stage

API = "https://api.github.com"
RAW = "https://raw.githubusercontent.com"


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        return self._payload


class FakeHTTPSession:
    """Stands in for requests.Session; unknown URLs answer 404."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, headers=None, params=None, timeout=None):
        with self._lock:
            self.calls.append({"url": url, "headers": headers, "params": params})
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(404)
        if isinstance(route, Exception):
            raise route
        return route

    @property
    def urls(self):
        return [c["url"] for c in self.calls]


def github_routes(owner, repo, files, branch="main", sha="abc123", truncated=False):
    """Routes for a repository whose tree holds `files` (path -> content)."""
    routes = {
        f"{API}/repos/{owner}/{repo}": FakeResponse(payload={"default_branch": branch}),
        f"{API}/repos/{owner}/{repo}/branches/{branch}": FakeResponse(
            payload={"commit": {"sha": sha}}
        ),
        f"{API}/repos/{owner}/{repo}/git/trees/{sha}": FakeResponse(
            payload={
                "truncated": truncated,
                "tree": [{"path": "src", "type": "tree"}]
                + [{"path": p, "type": "blob"} for p in files],
            }
        ),
    }
    for path, content in files.items():
        routes[f"{RAW}/{owner}/{repo}/{branch}/{path}"] = FakeResponse(text=content)
    return routes


class FakeGenerator:
    """Deterministic generation backend that records every call."""

    def __init__(self, fail_on=None, documents=None, json_payload=None):
        self.fail_on = fail_on
        self.prompts = []
        self.documents = documents or []
        self.json_payload = json_payload
        self.chat_calls = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if self.fail_on and self.fail_on in prompt:
            raise RuntimeError("quota exceeded")
        return f"reply #{len(self.prompts)}"

    def search(self, prompt):
        self.prompts.append(prompt)
        return "Try these repositories.", self.documents

    def generate_json(self, prompt, schema):
        self.prompts.append(prompt)
        return self.json_payload

    def chat(self, preamble, history):
        self.chat_calls.append((preamble, list(history)))
        return f"answer to {history[-1].text}"


SAMPLE_DATA = RepoAnalysisData(
    structural_files=(CodeFile("package.json", '{"name": "demo"}'),),
    code_files=(
        CodeFile("src/index.ts", "console.log('hi')"),
        CodeFile("src/util.ts", "export const x = 1"),
    ),
    owner="octo",
    repo="demo",
    branch="main",
)


def make_fetcher(data=SAMPLE_DATA):
    def fetcher(repo_url, on_progress=None):
        on_progress(AnalysisStatus(Stage.FETCHING, "Fetching 3 files..."))
        return data

    return fetcher


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def fetcher():
    return make_fetcher()
