"""Sequential, non-atomic execution of planned postings."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence, Tuple

from core.exceptions import PartialPostingFailure

from .engine import Posting


@dataclass
class PostingReport:
    succeeded: List[Tuple[Posting, Any]] = field(default_factory=list)
    failed: List[Tuple[Posting, str]] = field(default_factory=list)
    not_attempted: List[Posting] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def transaction_ids(self) -> List[int]:
        return [txn.id for _, txn in self.succeeded]

    def raise_for_failure(self) -> None:
        if self.failed:
            raise PartialPostingFailure(self)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": [
                {"transaction_id": txn.id, **_posting_dict(posting)}
                for posting, txn in self.succeeded
            ],
            "failed": [
                {"error": error, **_posting_dict(posting)} for posting, error in self.failed
            ],
            "not_attempted": [_posting_dict(p) for p in self.not_attempted],
        }


def _posting_dict(posting: Posting) -> Dict[str, Any]:
    return {
        "budget_id": posting.budget_id,
        "description": posting.description,
        "credit": posting.credit,
        "amount": float(posting.amount),
    }


def execute_postings(
    postings: Sequence[Posting], create: Callable[[Posting], Any]
) -> PostingReport:
    """
    Write ``postings`` one at a time through ``create``. The first failure
    stops the run; postings already written stay written and the rest are
    reported as not attempted.
    """
    report = PostingReport()
    for index, posting in enumerate(postings):
        try:
            report.succeeded.append((posting, create(posting)))
        except Exception as exc:
            report.failed.append((posting, str(exc) or exc.__class__.__name__))
            report.not_attempted.extend(postings[index + 1 :])
            break
    return report
