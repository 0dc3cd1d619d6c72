"""
Unit tests for the hosting provider clients.
"""

import time
from unittest.mock import Mock, patch

import pytest
import requests

from pr_inline_reviewer.config import AppConfig
from pr_inline_reviewer.models.review import InlineAddress
from pr_inline_reviewer.review.indexer import build_position_index
from pr_inline_reviewer.vcs import (
    GitHubClient,
    GitLabClient,
    RateLimitExceeded,
    VCSAPIError,
    create_client,
)
from pr_inline_reviewer.vcs.gitlab import build_unified_diff


def make_response(status_code=200, json_data=None, text="", headers=None):
    """Build a mock requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.headers = headers or {}
    response.text = text
    response.content = text.encode() if text else (b"{}" if json_data is not None else b"")
    response.json.return_value = json_data
    return response


class TestGitHubClient:
    """Unit tests for GitHubClient."""

    def test_client_initialization(self):
        """Test GitHubClient initialization."""
        client = GitHubClient("ghp_test_token")

        assert client.base_url == "https://api.github.com"
        assert client.session.headers["Authorization"] == "Bearer ghp_test_token"
        assert client.session.headers["Accept"] == "application/vnd.github.v3+json"

    @pytest.mark.parametrize("token", ["", None])
    def test_client_requires_token(self, token):
        """Test that a token is mandatory."""
        with pytest.raises(ValueError):
            GitHubClient(token)

    def test_get_diff(self):
        """Test fetching the diff media type."""
        client = GitHubClient("ghp_test_token")
        with patch.object(client.session, 'request', return_value=make_response(text="diff --git a/x b/x\n")) as mock_request:
            diff = client.get_diff("octo/repo", 5)

        assert diff == "diff --git a/x b/x\n"
        args, kwargs = mock_request.call_args
        assert args == ('GET', 'https://api.github.com/repos/octo/repo/pulls/5')
        assert kwargs['headers'] == {'Accept': 'application/vnd.github.v3.diff'}
        assert kwargs['timeout'] == 30

    def test_get_head_sha(self):
        """Test head SHA lookup."""
        client = GitHubClient("ghp_test_token")
        with patch.object(client.session, 'request', return_value=make_response(json_data={'head': {'sha': 'abc123'}})):
            assert client.get_head_sha("octo/repo", 5) == "abc123"

        with patch.object(client.session, 'request', return_value=make_response(json_data={'head': {}})):
            with pytest.raises(VCSAPIError):
                client.get_head_sha("octo/repo", 5)

    def test_post_inline_comment_uses_position(self):
        """Test the review comment payload."""
        client = GitHubClient("ghp_test_token")
        with patch.object(client.session, 'request', return_value=make_response(201, json_data={})) as mock_request:
            client.post_inline_comment("octo/repo", 5, "abc123", "src/app.py", InlineAddress(position=7), "body")

        args, kwargs = mock_request.call_args
        assert args == ('POST', 'https://api.github.com/repos/octo/repo/pulls/5/comments')
        assert kwargs['json'] == {'body': 'body', 'commit_id': 'abc123', 'path': 'src/app.py', 'position': 7}

    def test_post_inline_comment_requires_position(self):
        """Test that a line-only address is rejected."""
        client = GitHubClient("ghp_test_token")
        with pytest.raises(VCSAPIError):
            client.post_inline_comment("octo/repo", 5, "abc", "a.py", InlineAddress(new_line=3), "body")

    def test_post_comment(self):
        """Test the issue comment endpoint."""
        client = GitHubClient("ghp_test_token")
        with patch.object(client.session, 'request', return_value=make_response(201, json_data={})) as mock_request:
            client.post_comment("octo/repo", 5, "summary")

        args, kwargs = mock_request.call_args
        assert args[1] == 'https://api.github.com/repos/octo/repo/issues/5/comments'
        assert kwargs['json'] == {'body': 'summary'}

    def test_get_inline_comments_paginates(self):
        """Test existing comment collection across pages."""
        first_page = [{'path': 'a.py', 'line': i} for i in range(1, 101)]
        second_page = [
            {'path': 'b.py', 'line': None, 'original_line': 4},
            {'path': 'c.py', 'line': None, 'original_line': None},
        ]
        client = GitHubClient("ghp_test_token")
        responses = [make_response(json_data=first_page), make_response(json_data=second_page)]
        with patch.object(client.session, 'request', side_effect=responses) as mock_request:
            comments = client.get_inline_comments("octo/repo", 5)

        assert len(comments) == 101
        assert comments[-1].path == "b.py"
        assert comments[-1].line == 4
        assert mock_request.call_args_list[1][1]['params'] == {'page': 2, 'per_page': 100}

    def test_error_response(self):
        """Test mapping of API errors."""
        client = GitHubClient("ghp_test_token")
        with patch.object(client.session, 'request', return_value=make_response(422, json_data={'message': 'position is invalid'})):
            with pytest.raises(VCSAPIError) as exc_info:
                client.post_comment("octo/repo", 5, "x")

        assert exc_info.value.status_code == 422
        assert "position is invalid" in str(exc_info.value)

    def test_rate_limit_response(self):
        """Test a 429 response."""
        client = GitHubClient("ghp_test_token")
        reset = str(int(time.time()) + 60)
        with patch.object(client.session, 'request', return_value=make_response(429, headers={'X-RateLimit-Reset': reset})):
            with pytest.raises(RateLimitExceeded):
                client.get_diff("octo/repo", 5)

    def test_rate_limit_tracking(self):
        """Test that a nearly exhausted quota blocks further requests."""
        client = GitHubClient("ghp_test_token")
        headers = {'X-RateLimit-Remaining': '3', 'X-RateLimit-Reset': str(int(time.time()) + 600)}
        with patch.object(client.session, 'request', return_value=make_response(text="diff", headers=headers)):
            client.get_diff("octo/repo", 5)
            with pytest.raises(RateLimitExceeded):
                client.get_diff("octo/repo", 5)

    def test_transport_error(self):
        """Test mapping of network errors."""
        client = GitHubClient("ghp_test_token")
        with patch.object(client.session, 'request', side_effect=requests.ConnectionError("refused")):
            with pytest.raises(VCSAPIError, match="Request failed"):
                client.get_diff("octo/repo", 5)


class TestGitLabClient:
    """Unit tests for GitLabClient."""

    def test_client_initialization(self):
        """Test GitLabClient initialization."""
        client = GitLabClient("glpat-test", base_url="https://gitlab.example.com/")

        assert client.base_url == "https://gitlab.example.com/api/v4"
        assert client.session.headers["PRIVATE-TOKEN"] == "glpat-test"

    def test_get_diff_rebuilds_unified_diff(self):
        """Test that the changes array is turned into indexable diff text."""
        changes = {'changes': [{
            'old_path': 'app.py', 'new_path': 'app.py',
            'diff': '@@ -1,2 +1,2 @@\n-a = 1\n+a = 2\n b = 3\n',
        }]}
        client = GitLabClient("glpat-test")
        with patch.object(client.session, 'request', return_value=make_response(json_data=changes)) as mock_request:
            diff = client.get_diff("group/sub/project", 9)

        args, _ = mock_request.call_args
        assert args[1] == 'https://gitlab.com/api/v4/projects/group%2Fsub%2Fproject/merge_requests/9/changes'
        index = build_position_index(diff)
        assert index['app.py'].new_lines[1].position == 2

    def test_get_head_sha_falls_back_to_diff_refs(self):
        """Test head SHA lookup."""
        client = GitLabClient("glpat-test")
        mr = {'sha': None, 'diff_refs': {'head_sha': 'def456'}}
        with patch.object(client.session, 'request', return_value=make_response(json_data=mr)):
            assert client.get_head_sha("group/project", 9) == "def456"

    @pytest.mark.parametrize("address,expected_key,unexpected_key", [
        (InlineAddress(new_line=12), 'new_line', 'old_line'),
        (InlineAddress(old_line=8), 'old_line', 'new_line'),
    ])
    def test_post_inline_comment_sets_one_line(self, address, expected_key, unexpected_key):
        """Test the discussion position payload."""
        mr = {'diff_refs': {'base_sha': 'b', 'head_sha': 'h', 'start_sha': 's'}}
        client = GitLabClient("glpat-test")
        responses = [make_response(json_data=mr), make_response(201, json_data={})]
        with patch.object(client.session, 'request', side_effect=responses) as mock_request:
            client.post_inline_comment("group/project", 9, "h", "app.py", address, "body")

        args, kwargs = mock_request.call_args
        assert args == ('POST', 'https://gitlab.com/api/v4/projects/group%2Fproject/merge_requests/9/discussions')
        position = kwargs['json']['position']
        assert position['base_sha'] == 'b'
        assert position['head_sha'] == 'h'
        assert position['start_sha'] == 's'
        assert position['position_type'] == 'text'
        assert position['new_path'] == position['old_path'] == 'app.py'
        assert expected_key in position
        assert unexpected_key not in position

    def test_post_inline_comment_requires_line(self):
        """Test that a position-only address is rejected."""
        client = GitLabClient("glpat-test")
        with pytest.raises(VCSAPIError):
            client.post_inline_comment("group/project", 9, "h", "a.py", InlineAddress(position=3), "body")

    def test_get_inline_comments_reads_diff_notes(self):
        """Test existing comment collection from discussions."""
        discussions = [
            {'notes': [{'type': 'DiffNote', 'position': {'new_path': 'a.py', 'new_line': 5}}]},
            {'notes': [{'type': 'DiffNote', 'position': {'old_path': 'b.py', 'new_line': None, 'old_line': 2}}]},
            {'notes': [{'type': None, 'body': 'general note'}]},
        ]
        client = GitLabClient("glpat-test")
        with patch.object(client.session, 'request', return_value=make_response(json_data=discussions)):
            comments = client.get_inline_comments("group/project", 9)

        assert [(c.path, c.line) for c in comments] == [("a.py", 5), ("b.py", 2)]


class TestBuildUnifiedDiff:
    """Unit tests for GitLab diff reconstruction."""

    def test_file_kinds(self):
        """Test headers for new, deleted, renamed and modified files."""
        diff = build_unified_diff([
            {'old_path': 'new.py', 'new_path': 'new.py', 'new_file': True, 'diff': '@@ -0,0 +1 @@\n+x\n'},
            {'old_path': 'gone.py', 'new_path': 'gone.py', 'deleted_file': True, 'diff': '@@ -1 +0,0 @@\n-y'},
            {'old_path': 'a.py', 'new_path': 'b.py', 'renamed_file': True, 'diff': ''},
            {'old_path': 'm.py', 'new_path': 'm.py', 'diff': '@@ -3 +3 @@\n-p\n+q\n'},
        ])

        assert "--- /dev/null\n+++ b/new.py" in diff
        assert "--- a/gone.py\n+++ /dev/null" in diff
        assert "rename from a.py\nrename to b.py" in diff

        index = build_position_index(diff)
        assert set(index) == {"new.py", "b.py", "m.py"}
        assert index["new.py"].new_lines[1].position == 1
        assert index["m.py"].new_lines[3].position == 2
        assert index["b.py"].is_empty


def test_create_client():
    """Test client creation per provider."""
    config = AppConfig()
    config.vcs.github_token = "ghp_cfg"
    config.vcs.gitlab_base_url = "https://gitlab.internal"

    github = create_client("github", config)
    gitlab = create_client("gitlab", config, token="glpat-override")

    assert isinstance(github, GitHubClient)
    assert github.token == "ghp_cfg"
    assert isinstance(gitlab, GitLabClient)
    assert gitlab.base_url == "https://gitlab.internal/api/v4"
    assert gitlab.token == "glpat-override"

    with pytest.raises(ValueError):
        create_client("bitbucket", config)
    with pytest.raises(ValueError):
        create_client("gitlab", AppConfig())
