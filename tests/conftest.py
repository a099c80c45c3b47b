import json
from unittest.mock import MagicMock, patch

import pytest

from explain_files.utils import token_utils


@pytest.fixture(autouse=True)
def fake_tiktoken(request):
    """Whitespace tokenizer standing in for tiktoken's downloaded encodings.

    Tests marked ``real_tiktoken`` keep the real library.
    """
    if request.node.get_closest_marker("real_tiktoken"):
        token_utils.encoding_for.cache_clear()
        yield None
        token_utils.encoding_for.cache_clear()
        return
    encoder = MagicMock()
    encoder.encode.side_effect = lambda text, **kwargs: text.split()
    with patch("explain_files.utils.token_utils.tiktoken") as mock_tiktoken:
        mock_tiktoken.encoding_for_model.return_value = encoder
        mock_tiktoken.get_encoding.return_value = encoder
        token_utils.encoding_for.cache_clear()
        yield mock_tiktoken
    token_utils.encoding_for.cache_clear()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the credential store at a temp file and drop env credentials."""
    path = tmp_path / "home" / ".explain-config"
    monkeypatch.setenv("EXPLAIN_CONFIG", str(path))
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("OPENAI_BASE_URL", raising=False)
    return path


@pytest.fixture
def sample_repo(tmp_path):
    """Create a sample repository structure for testing."""
    repo_root = tmp_path / "sample_repo"
    repo_root.mkdir()

    (repo_root / "src").mkdir()
    (repo_root / "src" / "utils").mkdir()
    (repo_root / "tests").mkdir()
    (repo_root / ".git").mkdir()
    (repo_root / "node_modules" / "left-pad").mkdir(parents=True)
    (repo_root / "dist").mkdir()

    (repo_root / "README.md").write_text("# Sample Repository\n\nTest repository")
    (repo_root / "src" / "main.py").write_text("def main():\n    print('Hello, World!')")
    (repo_root / "src" / "utils" / "helpers.py").write_text("def helper():\n    return 42")
    (repo_root / "src" / "App.JS").write_text("export default 1")
    (repo_root / "tests" / "test_main.py").write_text("def test_main():\n    assert True")
    (repo_root / ".git" / "config").write_text("[core]\n    repositoryformatversion = 0")
    (repo_root / "node_modules" / "left-pad" / "index.js").write_text("module.exports = 1")
    (repo_root / "dist" / "bundle.js").write_text("var a = 1")

    return repo_root


class FakeStreamResponse:
    """Minimal stand-in for a streamed ``requests.Response``."""

    def __init__(self, lines, status_code=200):
        self._lines = [line.encode("utf-8") for line in lines]
        self.status_code = status_code
        self.closed = False

    def iter_lines(self):
        return iter(self._lines)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False


def sse(*payloads):
    """Render payloads as ``data:`` lines followed by the done sentinel."""
    lines = []
    for payload in payloads:
        lines.append(f"data: {json.dumps(payload)}")
        lines.append("")
    lines.append("data: [DONE]")
    return lines


def delta(content=None, finish_reason=None):
    d = {} if content is None else {"content": content}
    return {"choices": [{"delta": d, "finish_reason": finish_reason}]}


@pytest.fixture
def stream_response():
    return FakeStreamResponse
