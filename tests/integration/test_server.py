"""
HTTP Server Integration Tests

Tests the review trigger and webhook endpoints through the Flask test
client, with reviews scheduled synchronously.
"""

import hashlib
import hmac
import json
from unittest.mock import Mock

import pytest

from pr_inline_reviewer.config import AppConfig
from pr_inline_reviewer.server import create_app, verify_github_signature


class RecordingRunner:
    """Runner that records scheduled review calls instead of starting threads."""

    def __init__(self):
        self.calls = []

    def __call__(self, target, *args):
        self.calls.append(args)
        target(*args)


@pytest.fixture
def config():
    config = AppConfig()
    config.vcs.github_token = "ghp_test"
    config.model.api_url = "https://llm.example.com"
    config.vcs.webhook_secret = "hook-secret"
    config.vcs.gitlab_webhook_token = "gl-hook-token"
    return config


@pytest.fixture
def runner():
    return RecordingRunner()


@pytest.fixture
def reviewer_api():
    return Mock()


@pytest.fixture
def client(config, reviewer_api, runner):
    app = create_app(config, reviewer_api=reviewer_api, runner=runner)
    app.config['TESTING'] = True
    return app.test_client()


def sign(payload: bytes, secret: str = "hook-secret") -> str:
    return "sha256=" + hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()


class TestReviewEndpoint:
    """Tests for /health and /review."""

    def test_health(self, client):
        """Test the health check."""
        response = client.get('/health')

        assert response.status_code == 200
        assert response.data == b'ok'

    def test_review_accepted(self, client, runner, reviewer_api):
        """Test that a valid request schedules a review."""
        response = client.post('/review', json={'repo': 'octo/repo', 'pr_number': 7})

        assert response.status_code == 202
        assert response.get_json()['status'] == 'accepted'
        assert runner.calls == [('octo/repo', 7, 'github', None)]
        reviewer_api.process_review.assert_called_once_with('octo/repo', 7, 'github', None)

    def test_review_token_override(self, client, runner):
        """Test per-request tokens for each provider."""
        client.post('/review', json={'repo': 'octo/repo', 'pr_number': 7}, headers={'X-Github-Token': 'ghp_other'})
        client.post(
            '/review',
            json={'repo': 'group/project', 'pr_number': 2, 'provider': 'gitlab'},
            headers={'PRIVATE-TOKEN': 'glpat-other'},
        )

        assert runner.calls == [
            ('octo/repo', 7, 'github', 'ghp_other'),
            ('group/project', 2, 'gitlab', 'glpat-other'),
        ]

    @pytest.mark.parametrize("payload", [
        {'repo': 'octo', 'pr_number': 7},
        {'repo': 'octo/repo', 'pr_number': -1},
        {'repo': 'octo/repo', 'pr_number': 7, 'provider': 'svn'},
        None,
    ])
    def test_review_rejected(self, client, runner, payload):
        """Test request validation."""
        response = client.post('/review', json=payload)

        assert response.status_code == 400
        assert response.get_json()['error'] == 'Invalid request'
        assert runner.calls == []


class TestGitHubWebhook:
    """Tests for /webhook/github."""

    def post_event(self, client, data, event='pull_request', signature=None):
        payload = json.dumps(data).encode()
        return client.post(
            '/webhook/github',
            data=payload,
            content_type='application/json',
            headers={
                'X-GitHub-Event': event,
                'X-Hub-Signature-256': signature or sign(payload),
            },
        )

    def test_pull_request_opened(self, client, runner):
        """Test that an opened PR triggers a review."""
        data = {'action': 'opened', 'number': 12, 'repository': {'full_name': 'octo/repo'}}

        response = self.post_event(client, data)

        assert response.status_code == 202
        assert runner.calls == [('octo/repo', 12, 'github', None)]

    def test_invalid_signature(self, client, runner):
        """Test signature verification."""
        data = {'action': 'opened', 'number': 12, 'repository': {'full_name': 'octo/repo'}}

        response = self.post_event(client, data, signature="sha256=deadbeef")

        assert response.status_code == 401
        assert runner.calls == []

    def test_other_event_ignored(self, client, runner):
        """Test that non-PR events are acknowledged and ignored."""
        response = self.post_event(client, {'zen': 'hi'}, event='ping')

        assert response.status_code == 200
        assert response.get_json()['status'] == 'ignored'
        assert runner.calls == []

    def test_closed_action_ignored(self, client, runner):
        """Test that only opened, synchronize and reopened trigger reviews."""
        data = {'action': 'closed', 'number': 12, 'repository': {'full_name': 'octo/repo'}}

        response = self.post_event(client, data)

        assert response.status_code == 200
        assert runner.calls == []

    def test_missing_repository(self, client):
        """Test a malformed payload."""
        response = self.post_event(client, {'action': 'synchronize', 'number': 12})

        assert response.status_code == 400


class TestGitLabWebhook:
    """Tests for /webhook/gitlab."""

    def test_merge_request_update(self, client, runner):
        """Test that an updated MR triggers a review."""
        data = {
            'object_kind': 'merge_request',
            'project': {'path_with_namespace': 'group/project'},
            'object_attributes': {'iid': 4, 'action': 'update'},
        }

        response = client.post('/webhook/gitlab', json=data, headers={'X-Gitlab-Token': 'gl-hook-token'})

        assert response.status_code == 202
        assert runner.calls == [('group/project', 4, 'gitlab', None)]

    def test_invalid_token(self, client, runner):
        """Test webhook token verification."""
        response = client.post('/webhook/gitlab', json={}, headers={'X-Gitlab-Token': 'wrong'})

        assert response.status_code == 401
        assert runner.calls == []

    @pytest.mark.parametrize("data", [
        {'object_kind': 'push'},
        {'object_kind': 'merge_request', 'object_attributes': {'iid': 4, 'action': 'merge'}},
    ])
    def test_ignored_events(self, client, runner, data):
        """Test events that do not trigger reviews."""
        response = client.post('/webhook/gitlab', json=data, headers={'X-Gitlab-Token': 'gl-hook-token'})

        assert response.status_code == 200
        assert runner.calls == []


def test_verify_github_signature():
    """Test HMAC verification helper."""
    payload = b'{"a": 1}'

    assert verify_github_signature(payload, sign(payload), "hook-secret")
    assert not verify_github_signature(payload, sign(payload, "other"), "hook-secret")
    assert not verify_github_signature(payload, None, "hook-secret")
    assert not verify_github_signature(payload, "sha1=abc", "hook-secret")
