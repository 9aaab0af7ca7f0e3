from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from codereview.core.errors import InvalidRepositoryUrl

SUPPORTED_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")

# Second path segments that list an owner's repositories instead of naming one.
ORGANIZATION_LISTING_SEGMENTS = ("repositories", "repos")
ORGANIZATION_PREFIX = "orgs"

_HOSTS = "|".join(re.escape(h) for h in SUPPORTED_HOSTS)
_REPO_RE = re.compile(rf"(?:{_HOSTS})/([^/]+)/([^/?#]+)")
_PROFILE_RE = re.compile(rf"(?:{_HOSTS})/([^/?#]+)/?$")


@dataclass(frozen=True)
class RepositoryReference:
    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True)
class Repository:
    ref: RepositoryReference


@dataclass(frozen=True)
class OrganizationPage:
    name: str


@dataclass(frozen=True)
class UserProfilePage:
    name: str


@dataclass(frozen=True)
class Invalid:
    pass


UrlClassification = Union[Repository, OrganizationPage, UserProfilePage, Invalid]


def _clean_segment(segment: str) -> bool:
    # no whitespace or control chars (e.g. a trailing '\r' from a CSV line)
    return all(c.isprintable() and not c.isspace() for c in segment)


def classify(url: str) -> UrlClassification:
    """
    Classify a code-hosting URL:
    - host/<owner>/<repo>[/...]      -> Repository (trailing '.git' stripped)
    - host/orgs/<org>[/...]          -> OrganizationPage
    - host/<owner>/repositories      -> OrganizationPage
    - host/<owner>                   -> UserProfilePage
    - anything else                  -> Invalid
    """
    if not isinstance(url, str):
        return Invalid()

    m = _REPO_RE.search(url)
    if m:
        owner, name = m.group(1), m.group(2)
        if name.endswith(".git"):
            name = name[:-4]
        if owner == ORGANIZATION_PREFIX:
            return OrganizationPage(name=name)
        if name in ORGANIZATION_LISTING_SEGMENTS:
            return OrganizationPage(name=owner)
        if not name or not _clean_segment(owner) or not _clean_segment(name):
            return Invalid()
        return Repository(RepositoryReference(owner=owner, name=name))

    m = _PROFILE_RE.search(url)
    if m:
        return UserProfilePage(name=m.group(1))

    return Invalid()


def parse_repository(url: str) -> RepositoryReference:
    classification = classify(url)
    if isinstance(classification, Repository):
        return classification.ref
    raise InvalidRepositoryUrl(url, classification)
