# oauthkit/advisers.py
"""
Advisers attach human readable advice to problem reports without altering
the machine readable problem type. Advice is plain text with ``\\n`` line breaks.
"""
from typing import Callable, Dict, Optional

from .problems import ProblemReport, ProblemType

Advice = Callable[[ProblemReport], Optional[str]]


class ProblemReportingAdviserBase:
    """
    Dispatches a report to ``advise_<problem_type>``; subclasses override the
    methods for the problems they have advice for. Unhandled problems pass through.
    """

    def advise(self, report: ProblemReport) -> ProblemReport:
        if report.advice:
            return report
        handler: Optional[Advice] = getattr(self, f"advise_{report.problem.value}", None)
        text = handler(report) if handler else None
        return report.with_advice(text) if text else report


class DelegatedProblemReportingAdviser(ProblemReportingAdviserBase):
    """Adviser configured with a mapping of problem type to advice callable."""

    def __init__(self, delegates: Dict[ProblemType, Advice]):
        self.delegates = dict(delegates)

    def advise(self, report: ProblemReport) -> ProblemReport:
        if report.advice:
            return report
        delegate = self.delegates.get(report.problem)
        text = delegate(report) if delegate else None
        return report.with_advice(text) if text else report


class DefaultProblemReportingAdviser(ProblemReportingAdviserBase):
    """English advice for every problem type in the catalog."""

    def _value(self, report: ProblemReport) -> str:
        return report.additional_parameter[1] if report.additional_parameter else ""

    def advise_version_rejected(self, report: ProblemReport) -> str:
        return f"The OAuth version is not supported.\nAcceptable versions: {self._value(report)}"

    def advise_parameter_absent(self, report: ProblemReport) -> str:
        return "The request is missing required parameters: " + ", ".join(report.parameter_names)

    def advise_parameter_rejected(self, report: ProblemReport) -> str:
        return "The request contains unexpected or duplicate parameters: " + ", ".join(report.parameter_names)

    def advise_timestamp_refused(self, report: ProblemReport) -> str:
        return (
            "The request timestamp is outside the accepted window.\n"
            f"Acceptable timestamps: {self._value(report)}"
        )

    def advise_nonce_used(self, report: ProblemReport) -> str:
        return "The nonce has already been used with this timestamp. Generate a fresh nonce."

    def advise_signature_method_rejected(self, report: ProblemReport) -> str:
        return "The signature method is not supported for this request."

    def advise_signature_invalid(self, report: ProblemReport) -> str:
        return "The request signature does not match the expected signature."

    def advise_consumer_key_unknown(self, report: ProblemReport) -> str:
        return "The consumer key is not recognised."

    def advise_consumer_key_rejected(self, report: ProblemReport) -> str:
        return "The consumer key has been permanently disabled."

    def advise_consumer_key_refused(self, report: ProblemReport) -> str:
        return "The consumer key is temporarily disabled. Try again later."

    def advise_token_used(self, report: ProblemReport) -> str:
        return "The token has already been used."

    def advise_token_expired(self, report: ProblemReport) -> str:
        return "The token has expired."

    def advise_token_revoked(self, report: ProblemReport) -> str:
        return "The token has been revoked."

    def advise_token_rejected(self, report: ProblemReport) -> str:
        return "The token is not valid for this request."

    def advise_permission_unknown(self, report: ProblemReport) -> str:
        return "The end user has not yet granted or denied access."

    def advise_permission_denied(self, report: ProblemReport) -> str:
        return "Access to the requested resource was denied."
