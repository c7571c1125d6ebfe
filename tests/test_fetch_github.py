import pytest
import requests

from fetch_github import GitHubClient, fetch_repository, parse_repo_url
from review_errors import InvalidInput, NoAnalyzableContent, UpstreamUnavailable
from review_models import Stage
from tests.conftest import API, RAW, FakeHTTPSession, FakeResponse, github_routes

FILES = {
    "package.json": '{"name": "demo"}',
    "src/index.ts": "import App from './App'",
    "src/App.tsx": "export default function App() {}",
    "node_modules/x.ts": "ignored",
    "README.md": "# demo",
}


@pytest.mark.parametrize("url", [
    "https://github.com/octo/demo",
    "https://github.com/octo/demo/",
    "https://github.com/octo/demo/tree/main/src",
    "http://github.com/octo/demo",
])
def test_parse_repo_url_accepts_github_urls(url):
    assert parse_repo_url(url) == ("octo", "demo")


@pytest.mark.parametrize("url", [
    "",
    "not a url",
    "github.com/octo/demo",
    "https://gitlab.com/octo/demo",
    "https://www.github.com/octo/demo",
    "https://github.com/octo",
    "https://github.com//",
    "ftp://github.com/octo/demo",
])
def test_parse_repo_url_rejects_other_shapes(url):
    with pytest.raises(InvalidInput):
        parse_repo_url(url)


def test_invalid_url_makes_no_network_call():
    session = FakeHTTPSession()
    with pytest.raises(InvalidInput):
        fetch_repository("https://example.com/octo/demo", client=GitHubClient(session=session))
    assert session.calls == []


def test_fetch_repository_partitions_selected_files():
    session = FakeHTTPSession(github_routes("octo", "demo", FILES))
    statuses = []
    data = fetch_repository(
        "https://github.com/octo/demo", client=GitHubClient(session=session), on_progress=statuses.append
    )

    assert [f.path for f in data.structural_files] == ["package.json"]
    assert [f.path for f in data.code_files] == ["src/index.ts", "src/App.tsx"]
    assert data.code_files[0].content == "import App from './App'"
    assert (data.owner, data.repo, data.branch) == ("octo", "demo", "main")
    assert not data.truncated

    # 3 API calls plus one raw download per selected file
    assert len(session.calls) == 3 + 3
    assert f"{RAW}/octo/demo/main/README.md" not in session.urls
    assert statuses[0].stage == Stage.INITIALIZING
    assert all(s.stage == Stage.FETCHING for s in statuses[1:])
    assert statuses[-1].message == "Fetching 3 files..."


def test_tree_is_requested_recursively_for_branch_tip():
    session = FakeHTTPSession(github_routes("octo", "demo", FILES, sha="f00d"))
    fetch_repository("https://github.com/octo/demo", client=GitHubClient(session=session))
    tree_call = next(c for c in session.calls if "/git/trees/" in c["url"])
    assert tree_call["url"] == f"{API}/repos/octo/demo/git/trees/f00d"
    assert tree_call["params"] == {"recursive": "1"}


def test_repository_404_stops_before_tree_fetch():
    session = FakeHTTPSession()
    with pytest.raises(UpstreamUnavailable) as excinfo:
        fetch_repository("https://github.com/octo/missing", client=GitHubClient(session=session))
    assert "404" in str(excinfo.value)
    assert excinfo.value.status_code == 404
    assert session.urls == [f"{API}/repos/octo/missing"]


def test_branch_failure_is_upstream_unavailable():
    routes = github_routes("octo", "demo", FILES)
    routes[f"{API}/repos/octo/demo/branches/main"] = FakeResponse(500)
    client = GitHubClient(session=FakeHTTPSession(routes))
    with pytest.raises(UpstreamUnavailable, match="branch details. Status: 500"):
        fetch_repository("https://github.com/octo/demo", client=client)


def test_network_error_is_upstream_unavailable():
    routes = {f"{API}/repos/octo/demo": requests.ConnectionError("connection refused")}
    client = GitHubClient(session=FakeHTTPSession(routes))
    with pytest.raises(UpstreamUnavailable, match="connection refused"):
        fetch_repository("https://github.com/octo/demo", client=client)


def test_single_raw_failure_fails_whole_fetch():
    routes = github_routes("octo", "demo", FILES)
    routes[f"{RAW}/octo/demo/main/src/App.tsx"] = FakeResponse(503)
    client = GitHubClient(session=FakeHTTPSession(routes))
    with pytest.raises(UpstreamUnavailable, match="Failed to fetch src/App.tsx"):
        fetch_repository("https://github.com/octo/demo", client=client)


def test_nothing_selected_is_no_analyzable_content():
    session = FakeHTTPSession(github_routes("octo", "docs", {"README.md": "# hi", "docs/a.js": ""}))
    with pytest.raises(NoAnalyzableContent):
        fetch_repository("https://github.com/octo/docs", client=GitHubClient(session=session))
    assert not any(url.startswith(RAW) for url in session.urls)


def test_truncated_tree_is_flagged_not_fatal(caplog):
    session = FakeHTTPSession(github_routes("octo", "demo", FILES, truncated=True))
    with caplog.at_level("WARNING"):
        data = fetch_repository("https://github.com/octo/demo", client=GitHubClient(session=session))
    assert data.truncated
    assert len(data.code_files) == 2
    assert "truncated" in caplog.text


def test_token_is_sent_when_configured():
    session = FakeHTTPSession(github_routes("octo", "demo", FILES))
    fetch_repository("https://github.com/octo/demo", client=GitHubClient(token="t0k", session=session))
    assert all(c["headers"]["Authorization"] == "token t0k" for c in session.calls)


def test_no_authorization_header_without_token():
    session = FakeHTTPSession(github_routes("octo", "demo", FILES))
    fetch_repository("https://github.com/octo/demo", client=GitHubClient(session=session))
    for call in session.calls:
        assert "Authorization" not in (call["headers"] or {})


def test_manifest_with_code_extension_is_downloaded_once():
    files = {"vite.config.ts": "export default {}", "src/main.ts": "boot()"}
    session = FakeHTTPSession(github_routes("octo", "demo", files))
    data = fetch_repository("https://github.com/octo/demo", client=GitHubClient(session=session))

    assert [f.path for f in data.structural_files] == ["vite.config.ts"]
    assert [f.path for f in data.code_files] == ["src/main.ts"]
    raw_urls = [url for url in session.urls if url.startswith(RAW)]
    assert sorted(raw_urls) == [
        f"{RAW}/octo/demo/main/src/main.ts",
        f"{RAW}/octo/demo/main/vite.config.ts",
    ]


def test_fetch_many_requests_repeated_paths_once():
    session = FakeHTTPSession(github_routes("octo", "demo", {"go.mod": "module x"}))
    client = GitHubClient(session=session)
    by_path = client.fetch_many("octo", "demo", "main", ["go.mod", "go.mod"])
    assert list(by_path) == ["go.mod"]
    assert session.urls.count(f"{RAW}/octo/demo/main/go.mod") == 1
