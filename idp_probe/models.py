"""Value types passed between the builder, the probe and the verifier."""
import re
from collections import OrderedDict
from dataclasses import dataclass, field
from functools import cached_property
from typing import Iterator, List, Optional

from idp_probe.exceptions import DuplicateExpectationError


@dataclass(frozen=True)
class IdentityProvider:
    """A configured login backend, as the OAuth server knows it."""
    name: str
    used_for_login: bool = True
    used_for_challenge: bool = True


@dataclass(frozen=True)
class ProbeResult:
    """Raw outcome of one GET: status, query-less Location, full body."""
    url: str
    status_code: int
    location: str
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class Expectation:
    """Status and redirect a URL must produce.

    An empty ``expected_location`` means the response must carry no
    ``Location`` header at all.
    """
    url: str
    expected_status: int
    expected_location: str = ""


@dataclass(frozen=True)
class LinkPattern:
    """Regular expression the selection page must match for one provider."""
    provider: str
    pattern: str

    @cached_property
    def regex(self) -> "re.Pattern[str]":
        return re.compile(self.pattern)

    def matches(self, text: str) -> bool:
        return self.regex.search(text) is not None


class ExpectationMap:
    """Ordered URL -> Expectation mapping.

    Adding a URL twice raises ``DuplicateExpectationError`` unless the map
    was created with ``allow_overwrite=True``, in which case the last write
    wins and the URL keeps its original position.
    """

    def __init__(self, allow_overwrite=False):
        self.allow_overwrite = allow_overwrite
        self._entries: "OrderedDict[str, Expectation]" = OrderedDict()

    def add(self, expectation: Expectation) -> None:
        if expectation.url in self._entries and not self.allow_overwrite:
            raise DuplicateExpectationError(expectation.url)
        self._entries[expectation.url] = expectation

    def get(self, url: str) -> Optional[Expectation]:
        return self._entries.get(url)

    def __getitem__(self, url: str) -> Expectation:
        return self._entries[url]

    def __contains__(self, url) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Expectation]:
        return iter(self._entries.values())

    def urls(self) -> List[str]:
        return list(self._entries)


@dataclass
class UrlCheck:
    """Result slot for one probed URL.

    ``status_code`` stays ``None`` when the request never got a response.
    """
    url: str
    expected_status: int
    expected_location: str = ""
    status_code: Optional[int] = None
    location: Optional[str] = None
    problems: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.problems


@dataclass
class VerificationReport:
    """Everything one verification run found, in probe order."""
    checks: List[UrlCheck] = field(default_factory=list)
    pattern_problems: List[str] = field(default_factory=list)

    @property
    def problems(self) -> List[str]:
        problems = []
        for check in self.checks:
            problems.extend(f"{check.url}: {p}" for p in check.problems)
        problems.extend(self.pattern_problems)
        return problems

    @property
    def passed(self) -> bool:
        return not self.problems

    def failed_checks(self) -> List[UrlCheck]:
        return [c for c in self.checks if not c.passed]

    def summary(self) -> str:
        passed = sum(1 for c in self.checks if c.passed)
        lines = [f"{passed}/{len(self.checks)} URL(s) as expected"]
        if self.pattern_problems:
            lines.append(f"{len(self.pattern_problems)} selection page link problem(s)")
        for problem in self.problems:
            lines.append(f"  - {problem}")
        return "\n".join(lines)
