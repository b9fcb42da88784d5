"""
Commit chain helpers.

The local log is a singly linked list: each commit's parent_id is the
commit_id of the one before it, the first has an empty parent_id.
"""

from dataclasses import dataclass, field
from typing import List, Sequence

from .errors import CommitNotFoundError
from .hashing import commit_id
from .models import Commit


def resolve_index(commits: Sequence[Commit], ref: str) -> int:
    """
    Locate a commit by id or id prefix (linear scan).

    Args:
        commits: Chain, oldest first
        ref: Full commit id or abbreviated prefix

    Returns:
        Index into commits

    Raises:
        CommitNotFoundError: If nothing matches, or the prefix is ambiguous
    """
    ref = ref.strip().lower()
    if not ref:
        raise CommitNotFoundError("Empty commit reference")

    matches = [i for i, c in enumerate(commits) if c.commit_id.startswith(ref)]
    if not matches:
        raise CommitNotFoundError(f"Commit {ref} not found")
    if len(matches) > 1:
        exact = [i for i in matches if commits[i].commit_id == ref]
        if exact:
            return exact[0]
        candidates = ", ".join(commits[i].short_id for i in matches)
        raise CommitNotFoundError(
            f"Commit prefix {ref} is ambiguous ({candidates})",
            remediation="Use a longer prefix of the commit id.",
        )
    return matches[0]


def resolve_commit(commits: Sequence[Commit], ref: str) -> Commit:
    return commits[resolve_index(commits, ref)]


def verify_commit_id(commit: Commit) -> bool:
    """Recompute the commit id from its stored files, message and timestamp."""
    digests = [f.content_digest for f in commit.files]
    return commit_id(digests, commit.message, commit.timestamp) == commit.commit_id


@dataclass
class ChainVerification:
    """
    Result of chain verification.

    Fields:
        valid: All checks passed
        length: Number of commits checked
        errors: One line per problem found
    """
    valid: bool
    length: int
    errors: List[str] = field(default_factory=list)


def verify_chain(commits: Sequence[Commit], check_ids: bool = True) -> ChainVerification:
    """
    Check the linked-list invariants of the local log.

    - first commit has an empty parent_id
    - every other parent_id equals the preceding commit's id
    - commit ids are unique
    - (check_ids) ids recompute from files, message and timestamp

    Amended commits keep their original parent, so they verify like any other.
    Commits pulled from the ledger carry no file digests in the id input and
    are skipped by the id check when anchored without files.
    """
    errors: List[str] = []
    seen = set()
    for idx, c in enumerate(commits):
        if c.commit_id in seen:
            errors.append(f"duplicate commit id {c.short_id} at position {idx}")
        seen.add(c.commit_id)

        expected_parent = commits[idx - 1].commit_id if idx > 0 else ""
        if c.parent_id != expected_parent:
            errors.append(
                f"commit {c.short_id} at position {idx} has parent "
                f"{c.parent_id[:8] or '<none>'}, expected {expected_parent[:8] or '<none>'}"
            )

        if check_ids and c.files and not verify_commit_id(c):
            errors.append(f"commit {c.short_id} id does not match its content")

    return ChainVerification(valid=not errors, length=len(commits), errors=errors)
