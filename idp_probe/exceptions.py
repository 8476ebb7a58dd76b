"""Exception hierarchy for the login selection verifier.

Only ``EnvironmentFault`` and ``ConfigurationError`` abort a run.
``TransportFault`` is raised by a single probe and recorded against that
URL by the verifier; ``VerificationFailed`` is raised once, at the end,
with every collected problem.
"""


class ProbeError(Exception):
    """Base exception for all idp_probe errors."""


class EnvironmentFault(ProbeError):
    """Raised when the escaping oracle itself cannot render."""


class ConfigurationError(ProbeError):
    """Raised when the provider list or run settings are unusable."""


class DuplicateExpectationError(ConfigurationError):
    """Raised when two expectations resolve to the same URL."""

    def __init__(self, url):
        self.url = url
        super().__init__(f"Duplicate expectation for {url!r}")


class TransportFault(ProbeError):
    """Raised when no HTTP response could be obtained for a URL."""

    def __init__(self, url, cause):
        self.url = url
        self.cause = cause
        super().__init__(f"Request to {url!r} failed: {cause}")


class VerificationFailed(ProbeError):
    """Raised when a verification run collected one or more problems."""

    def __init__(self, problems):
        self.problems = list(problems)
        super().__init__(
            f"{len(self.problems)} problem(s) found:\n"
            + "\n".join(f"  - {p}" for p in self.problems)
        )
