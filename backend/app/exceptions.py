from fastapi import HTTPException
from pydantic import BaseModel
from typing import Optional


class ProblemDetail(BaseModel):
    """RFC 7807 compliant error response."""

    type: str = "about:blank"
    title: str
    detail: Optional[str] = None
    status: int
    instance: Optional[str] = None
    code: str


class DomainException(Exception):
    """Base class for domain-specific exceptions."""

    def __init__(
        self,
        status_code: int,
        title: str,
        *,
        code: str,
        detail: str | None = None,
        type_: str = "about:blank",
    ) -> None:
        super().__init__(detail or title)
        self.status_code = status_code
        self.title = title
        self.detail = detail
        self.type = type_
        self.code = code


class PlayerAlreadyExists(DomainException):
    def __init__(self, name: str) -> None:
        super().__init__(
            status_code=400,
            title="Player exists",
            detail=f"player name '{name}' already exists",
            code="player_exists",
        )


class PlayerNotFound(DomainException):
    def __init__(self, player_id: str) -> None:
        super().__init__(
            status_code=404,
            title="Player not found",
            detail=f"player '{player_id}' not found",
            code="player_not_found",
        )


class DeletionNotConfirmed(DomainException):
    """Deleting a player also deletes every match they played in."""

    def __init__(self, player_id: str, match_count: int) -> None:
        super().__init__(
            status_code=409,
            title="Deletion not confirmed",
            detail=(
                f"deleting player '{player_id}' permanently removes {match_count} "
                "match(es); repeat the request with confirm=true"
            ),
            code="deletion_not_confirmed",
        )
        self.player_id = player_id
        self.match_count = match_count


class MergeInvariantViolation(DomainException):
    """The merged match log would break sequence or identity uniqueness."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=409,
            title="Match log invariant violated",
            detail=detail,
            code="merge_invariant_violation",
        )


class StaleSnapshot(DomainException):
    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            status_code=409,
            title="Stale snapshot",
            detail=f"match log changed (expected version {expected}, found {actual})",
            code="stale_snapshot",
        )
        self.expected = expected
        self.actual = actual


class CollaboratorUnavailable(DomainException):
    """The balancing backend is not configured or the call failed."""

    NOT_CONFIGURED = "not_configured"
    CALL_FAILED = "call_failed"

    def __init__(self, reason: str, detail: str) -> None:
        title = (
            "Balancing service not configured"
            if reason == self.NOT_CONFIGURED
            else "Balancing service call failed"
        )
        super().__init__(
            status_code=503,
            title=title,
            detail=detail,
            code=f"balancing_{reason}",
        )
        self.reason = reason


class CollaboratorContractViolation(DomainException):
    """The balancing backend answered with an invalid suggestion."""

    def __init__(self, detail: str) -> None:
        super().__init__(
            status_code=502,
            title="Invalid balancing response",
            detail=detail,
            code="balancing_invalid_response",
        )


def http_problem(
    status_code: int,
    detail: str,
    code: str,
    *,
    headers: Optional[dict[str, str]] = None,
) -> HTTPException:
    """Create an HTTPException with an attached problem code."""

    exc = HTTPException(status_code=status_code, detail=detail, headers=headers)
    setattr(exc, "code", code)
    return exc
