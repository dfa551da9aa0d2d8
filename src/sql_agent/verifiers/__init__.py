"""
Verifiers Module
================

Static checks run by the query-checker tool.
"""

from sql_agent.verifiers.base import VerificationChain, Verifier, failure_messages
from sql_agent.verifiers.safety import SafetyVerifier
from sql_agent.verifiers.syntax import SyntaxVerifier

__all__ = [
    "Verifier",
    "VerificationChain",
    "failure_messages",
    "SyntaxVerifier",
    "SafetyVerifier",
]
