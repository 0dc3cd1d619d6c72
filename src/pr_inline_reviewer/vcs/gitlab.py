"""
GitLab API Client

Handles GitLab merge request diffs, notes and diff discussions.
"""

import logging
from typing import Dict, List
from urllib.parse import quote

from ..models.review import ExistingComment, InlineAddress
from .base import VCSClient, VCSAPIError


logger = logging.getLogger(__name__)


NULL_DEVICE = "/dev/null"


class GitLabClient(VCSClient):
    """
    GitLab API client.

    Inline comments are diff discussions addressed by exactly one of
    new_line / old_line.
    """

    provider_type = "gitlab"

    def __init__(self, token: str, base_url: str = "https://gitlab.com", timeout_seconds: int = 30):
        super().__init__(token, (base_url or "https://gitlab.com").rstrip('/') + '/api/v4', timeout_seconds)

    def _auth_headers(self) -> Dict[str, str]:
        return {'PRIVATE-TOKEN': self.token}

    def _mr_endpoint(self, repo: str, number: int) -> str:
        project = quote(repo, safe='')
        return f'/projects/{project}/merge_requests/{number}'

    def get_merge_request(self, repo: str, number: int) -> Dict:
        """
        Get merge request information including diff_refs.

        Args:
            repo: Project path (group/project)
            number: Merge request IID

        Returns:
            Merge request data
        """
        logger.info(f"Fetching MR {repo}!{number}")
        response = self._make_request('GET', self._mr_endpoint(repo, number))
        return response.json()

    def get_diff(self, repo: str, number: int) -> str:
        logger.info(f"Fetching changes for {repo}!{number}")
        response = self._make_request('GET', f'{self._mr_endpoint(repo, number)}/changes')
        return build_unified_diff(response.json().get('changes') or [])

    def get_head_sha(self, repo: str, number: int) -> str:
        mr_info = self.get_merge_request(repo, number)
        head_sha = mr_info.get('sha') or (mr_info.get('diff_refs') or {}).get('head_sha')
        if not head_sha:
            raise VCSAPIError(f"MR head sha is empty for {repo}!{number}")
        return head_sha

    def post_comment(self, repo: str, number: int, body: str) -> None:
        logger.info(f"Posting note to {repo}!{number}")
        self._make_request('POST', f'{self._mr_endpoint(repo, number)}/notes', json={'body': body})

    def post_inline_comment(
        self,
        repo: str,
        number: int,
        commit_sha: str,
        path: str,
        address: InlineAddress,
        body: str
    ) -> None:
        if not (address.new_line or address.old_line):
            raise VCSAPIError(f"GitLab inline comments need a line number ({path})")

        diff_refs = self.get_merge_request(repo, number).get('diff_refs') or {}
        position = {
            'base_sha': diff_refs.get('base_sha'),
            'head_sha': diff_refs.get('head_sha') or commit_sha,
            'start_sha': diff_refs.get('start_sha'),
            'position_type': 'text',
            'new_path': path,
            'old_path': path,
        }
        if address.new_line:
            position['new_line'] = address.new_line
        else:
            position['old_line'] = address.old_line

        logger.debug(f"Posting discussion to {repo}!{number} {path} {position}")
        self._make_request(
            'POST', f'{self._mr_endpoint(repo, number)}/discussions',
            json={'body': body, 'position': position}
        )

    def get_inline_comments(self, repo: str, number: int) -> List[ExistingComment]:
        logger.info(f"Fetching discussions for {repo}!{number}")
        comments = []
        for discussion in self._get_paginated(f'{self._mr_endpoint(repo, number)}/discussions'):
            for note in discussion.get('notes') or []:
                if note.get('type') != 'DiffNote':
                    continue
                position = note.get('position') or {}
                path = position.get('new_path') or position.get('old_path')
                line = position.get('new_line') or position.get('old_line')
                if path and line:
                    comments.append(ExistingComment(path=path, line=int(line)))
        return comments


def build_unified_diff(changes: List[Dict]) -> str:
    """
    Rebuild git-style unified diff text from GitLab's changes array.

    Args:
        changes: ``changes`` entries with old_path, new_path, diff and flags

    Returns:
        Unified diff text with ``diff --git`` file headers
    """
    parts = []
    for change in changes:
        old_path = change.get('old_path') or ''
        new_path = change.get('new_path') or ''
        is_new = change.get('new_file') or old_path in ('', NULL_DEVICE)
        is_deleted = change.get('deleted_file') or new_path in ('', NULL_DEVICE)

        header = [f"diff --git a/{old_path or new_path} b/{new_path or old_path}"]
        if is_new:
            header += ["new file mode 100644", f"--- {NULL_DEVICE}", f"+++ b/{new_path}"]
        elif is_deleted:
            header += ["deleted file mode 100644", f"--- a/{old_path}", f"+++ {NULL_DEVICE}"]
        elif change.get('renamed_file') or old_path != new_path:
            header += [
                f"rename from {old_path}",
                f"rename to {new_path}",
                f"--- a/{old_path}",
                f"+++ b/{new_path}",
            ]
        else:
            header += [f"--- a/{old_path}", f"+++ b/{new_path}"]

        parts.append('\n'.join(header) + '\n')

        diff = change.get('diff') or ''
        if diff:
            parts.append(diff if diff.endswith('\n') else diff + '\n')

    return ''.join(parts)
