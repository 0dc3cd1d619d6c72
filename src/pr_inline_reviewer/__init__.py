"""
PR Inline Reviewer

Pull/merge request review service that anchors model feedback to exact
diff lines on GitHub and GitLab.
"""

__version__ = "1.0.0"

from .api import InlineReviewerAPI

__all__ = ["InlineReviewerAPI"]
