"""
Core: session, authorization gate, content repositories, comment stream and
form validators, all returning typed results.
"""

from portfolio.core.comments import CommentStream, PendingComment, delete_comment, merge_comment, merge_snapshot
from portfolio.core.gate import AuthorizationGate, DenyReason, GateDecision, GateMode, GateState
from portfolio.core.public import PublicContent
from portfolio.core.repository import ArticleRepository, ContentRepository, ProjectRepository
from portfolio.core.results import AuthFailureReason, ErrorKind, Failure, FieldError, Ok, Result
from portfolio.core.session import Identity, SessionManager

__all__ = [
    "ArticleRepository",
    "AuthFailureReason",
    "AuthorizationGate",
    "CommentStream",
    "ContentRepository",
    "DenyReason",
    "ErrorKind",
    "Failure",
    "FieldError",
    "GateDecision",
    "GateMode",
    "GateState",
    "Identity",
    "Ok",
    "PendingComment",
    "ProjectRepository",
    "PublicContent",
    "Result",
    "SessionManager",
    "delete_comment",
    "merge_comment",
    "merge_snapshot",
]
