"""
HTTP Server

Flask application exposing the review trigger, provider webhooks and a
health check. Reviews run on a background thread so callers (CI jobs,
webhooks) are answered immediately with 202.
"""

import hashlib
import hmac
import logging
import threading
from typing import Callable, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from pydantic import ValidationError

from .api import InlineReviewerAPI
from .config import AppConfig
from .models.review import ReviewRequestModel


logger = logging.getLogger(__name__)


GITHUB_REVIEW_ACTIONS = {'opened', 'synchronize', 'reopened'}
GITLAB_REVIEW_ACTIONS = {'open', 'update', 'reopen'}

Runner = Callable[..., None]


def verify_github_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """Check an ``X-Hub-Signature-256`` header against the payload."""
    if not signature or not signature.startswith('sha256='):
        return False
    expected = hmac.new(secret.encode('utf-8'), payload, hashlib.sha256).hexdigest()
    return hmac.compare_digest(expected, signature[len('sha256='):])


def run_in_background(target: Callable, *args) -> None:
    """Start a review on a daemon thread."""
    thread = threading.Thread(target=target, args=args, daemon=True)
    thread.start()


def create_app(
    config: Optional[AppConfig] = None,
    reviewer_api: Optional[InlineReviewerAPI] = None,
    runner: Runner = run_in_background
) -> Flask:
    """
    Create the Flask application.

    Args:
        config: Application configuration (environment if omitted)
        reviewer_api: Review orchestrator (built from config if omitted)
        runner: Schedules a review call; runs it on a thread by default

    Returns:
        Flask app
    """
    config = config or AppConfig.from_env()
    reviewer_api = reviewer_api or InlineReviewerAPI(config)

    app = Flask(__name__)
    CORS(app)

    def schedule(repo: str, number: int, provider: str, token: Optional[str] = None) -> None:
        logger.info(f"Triggering review for {repo}#{number} (provider: {provider})")
        runner(reviewer_api.process_review, repo, number, provider, token)

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return 'ok', 200

    @app.route('/review', methods=['POST'])
    def review():
        """Start a review for a pull/merge request."""
        try:
            review_request = ReviewRequestModel(**(request.get_json(silent=True) or {}))
        except (ValidationError, TypeError) as e:
            return jsonify({'error': 'Invalid request', 'details': str(e)}), 400

        provider = review_request.provider or config.vcs.provider
        if provider == 'github':
            token = request.headers.get('X-Github-Token')
        else:
            token = request.headers.get('PRIVATE-TOKEN')

        logger.info(f"Received review request for {review_request.repo}#{review_request.pr_number}")
        schedule(review_request.repo, review_request.pr_number, provider, token or None)
        return jsonify({
            'status': 'accepted',
            'message': f"Review started for {review_request.repo} #{review_request.pr_number}",
        }), 202

    @app.route('/webhook/github', methods=['POST'])
    def github_webhook():
        """Handle GitHub pull_request webhooks."""
        payload = request.get_data()
        if config.vcs.webhook_secret and not verify_github_signature(
            payload, request.headers.get('X-Hub-Signature-256'), config.vcs.webhook_secret
        ):
            logger.warning("Invalid webhook signature")
            return jsonify({'error': 'Invalid signature'}), 401

        event_type = request.headers.get('X-GitHub-Event', '')
        if event_type != 'pull_request':
            logger.info(f"Ignoring event type: {event_type}")
            return jsonify({'status': 'ignored', 'event': event_type}), 200

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid payload'}), 400

        action = data.get('action', '')
        if action not in GITHUB_REVIEW_ACTIONS:
            logger.info(f"Ignoring PR action: {action}")
            return jsonify({'status': 'ignored', 'action': action}), 200

        repo = (data.get('repository') or {}).get('full_name')
        number = (data.get('pull_request') or {}).get('number') or data.get('number')
        if not repo or not number:
            return jsonify({'error': 'Invalid payload'}), 400

        schedule(repo, int(number), 'github')
        return jsonify({'status': 'accepted', 'message': f"Review triggered for {repo} #{number}"}), 202

    @app.route('/webhook/gitlab', methods=['POST'])
    def gitlab_webhook():
        """Handle GitLab merge_request webhooks."""
        expected_token = config.vcs.gitlab_webhook_token
        if expected_token and not hmac.compare_digest(
            request.headers.get('X-Gitlab-Token', ''), expected_token
        ):
            logger.warning("Invalid GitLab webhook token")
            return jsonify({'error': 'Invalid token'}), 401

        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({'error': 'Invalid payload'}), 400

        if data.get('object_kind') != 'merge_request':
            logger.info(f"Ignoring GitLab event: {data.get('object_kind')}")
            return jsonify({'status': 'ignored', 'event': data.get('object_kind')}), 200

        attributes = data.get('object_attributes') or {}
        action = attributes.get('action', '')
        if action not in GITLAB_REVIEW_ACTIONS:
            logger.info(f"Ignoring MR action: {action}")
            return jsonify({'status': 'ignored', 'action': action}), 200

        repo = (data.get('project') or {}).get('path_with_namespace')
        number = attributes.get('iid')
        if not repo or not number:
            return jsonify({'error': 'Invalid payload'}), 400

        schedule(repo, int(number), 'gitlab')
        return jsonify({'status': 'accepted', 'message': f"Review triggered for {repo} !{number}"}), 202

    return app
