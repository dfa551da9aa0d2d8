"""
Base Verifier Classes
=====================

Static checks run by the query checker before a query reaches the LLM
review or the database.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable

from sql_agent.models import VerificationResult, VerificationStatus
from sql_agent.observability.logging_config import get_logger

logger = get_logger(__name__)


class Verifier(ABC):
    """A single rule applied to SQL text."""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def verify(self, sql: str) -> VerificationResult:
        """Check ``sql``; never raises for bad SQL, reports FAILED instead."""

    def passed(self, message: str) -> VerificationResult:
        return VerificationResult(self.name, VerificationStatus.PASSED, message)

    def failed(self, message: str, **details: Any) -> VerificationResult:
        return VerificationResult(self.name, VerificationStatus.FAILED, message, details)


class VerificationChain:
    """Ordered verifiers; the first failure ends the run."""

    def __init__(self, verifiers: Iterable[Verifier]) -> None:
        self.verifiers = list(verifiers)

    def run(self, sql: str) -> tuple[bool, list[VerificationResult]]:
        """
        Apply each verifier in order.

        Returns:
            (all_passed, results of the verifiers that ran)
        """
        results: list[VerificationResult] = []
        for verifier in self.verifiers:
            result = verifier.verify(sql)
            results.append(result)
            if result.status is VerificationStatus.FAILED:
                logger.info(
                    "query_check_failed", verifier=result.verifier_name, reason=result.message
                )
                return False, results
        return True, results


def failure_messages(results: Iterable[VerificationResult]) -> list[str]:
    return [r.message for r in results if r.status is VerificationStatus.FAILED]
