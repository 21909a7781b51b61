"""
CV Data Structures

Defines read-only data classes for the records a CV is rendered from:
profile, education, papers, presentations, awards, projects and references.

Records are built from plain mappings shaped like the site data files
(``site``, ``cv.education``, ``collections.papers``, ``projects-academic``...)
so a context can come from YAML, JSON, or an upstream site generator.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from omegaconf import OmegaConf

from cvtex.contexts.templating.exceptions import ContextLoadError


def _text(value: Any) -> str:
    """YAML scalars (numbers, dates) used as text become strings; null becomes ''."""
    return "" if value is None else str(value)


def _optional_text(value: Any) -> Optional[str]:
    return _text(value) or None


@dataclass(frozen=True)
class Profile:
    """
    CV owner's profile.

    Attributes:
        title: Full name (also used to drop the owner from co-author lists)
        bio: One-line position/biography shown under the name
        email: Contact e-mail
        url: Canonical site URL (paper links are built relative to it)
        linkedin: LinkedIn handle
        github: GitHub handle
    """

    title: str
    bio: str = ""
    email: str = ""
    url: str = ""
    linkedin: str = ""
    github: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        return cls(
            title=_text(data["title"]),
            bio=_text(data.get("bio")),
            email=_text(data.get("email")),
            url=_text(data.get("url")),
            linkedin=_text(data.get("linkedin")),
            github=_text(data.get("github")),
        )


@dataclass(frozen=True)
class Degree:
    title: str
    start: Any
    end: Any

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Degree":
        return cls(title=_text(data["title"]), start=data.get("start"), end=data.get("end"))


@dataclass(frozen=True)
class EducationEntry:
    school: str
    degrees: List[Degree] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EducationEntry":
        return cls(
            school=_text(data["school"]),
            degrees=[Degree.from_dict(d) for d in data.get("degrees") or []],
        )


@dataclass(frozen=True)
class Author:
    name: str

    @classmethod
    def from_value(cls, value: Any) -> "Author":
        """Accept either {"name": ...} or a bare name string."""
        if isinstance(value, dict):
            return cls(name=_text(value["name"]))
        return cls(name=_text(value))


@dataclass(frozen=True)
class Paper:
    """
    Paper (published, accepted, or working).

    Attributes:
        title: Paper title
        url: Site-relative URL of the paper page
        authors: Author list, including the CV owner
        accepted: Accepted for publication (decides Publications vs Working Papers)
        published: Already published
        rnr: Revise-and-resubmit
        journal: Journal name (status annotations need it)
        year: Publication year
        content: Markdown abstract/body, embedded verbatim
    """

    title: str
    url: str = ""
    authors: List[Author] = field(default_factory=list)
    accepted: bool = False
    published: bool = False
    rnr: bool = False
    journal: Optional[str] = None
    year: Optional[Any] = None
    content: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Paper":
        # Site collections nest front matter under "data" and keep url/content outside
        fields = {**(data.get("data") or {}), **{k: v for k, v in data.items() if k != "data"}}
        return cls(
            title=_text(fields["title"]),
            url=_text(fields.get("url")),
            authors=[Author.from_value(a) for a in fields.get("authors") or []],
            accepted=bool(fields.get("accepted")),
            published=bool(fields.get("published")),
            rnr=bool(fields.get("rnr")),
            journal=_optional_text(fields.get("journal")),
            year=fields.get("year"),
            content=_text(fields.get("content")),
        )


@dataclass(frozen=True)
class Presentation:
    where: str
    date: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Presentation":
        return cls(where=_text(data["where"]), date=data.get("date"))


@dataclass(frozen=True)
class Award:
    """
    Award, fellowship, or research-experience entry.

    Either ``date`` or the ``start``/``end`` pair is expected; with neither
    the entry is rendered without a date annotation.
    """

    title: str
    for_: Optional[str] = None
    from_: Optional[str] = None
    date: Any = None
    start: Any = None
    end: Any = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Award":
        return cls(
            title=_text(data["title"]),
            for_=_optional_text(data.get("for")),
            from_=_optional_text(data.get("from")),
            date=data.get("date"),
            start=data.get("start"),
            end=data.get("end"),
        )


@dataclass(frozen=True)
class Project:
    title: str
    url: str = ""
    github: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        return cls(
            title=_text(data["title"]),
            url=_text(data.get("url")),
            github=_optional_text(data.get("github")),
        )


@dataclass(frozen=True)
class Reference:
    """
    Referee entry. ``email`` is stored obfuscated, with ".." in place of "@".
    """

    title: str
    url: str = ""
    description: str = ""
    email: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reference":
        return cls(
            title=_text(data["title"]),
            url=_text(data.get("url")),
            description=_text(data.get("description")),
            email=_text(data.get("email")),
        )


@dataclass(frozen=True)
class CVContext:
    """
    Everything needed to render one CV.

    Attributes:
        profile: CV owner's profile
        education: Education entries, in display order
        papers: All papers (split into Publications/Working Papers at render time)
        presentations: Talks
        refereeing: Journals refereed for
        awards: Fellowships and awards
        research_experience: Research assistant positions
        academic_projects: Research software packages
        professional_projects: Professional software/projects
        personal_projects: Personal software/projects
        references: Referees
    """

    profile: Profile
    education: List[EducationEntry] = field(default_factory=list)
    papers: List[Paper] = field(default_factory=list)
    presentations: List[Presentation] = field(default_factory=list)
    refereeing: List[str] = field(default_factory=list)
    awards: List[Award] = field(default_factory=list)
    research_experience: List[Award] = field(default_factory=list)
    academic_projects: List[Project] = field(default_factory=list)
    professional_projects: List[Project] = field(default_factory=list)
    personal_projects: List[Project] = field(default_factory=list)
    references: List[Reference] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CVContext":
        """
        Build a context from site-shaped data.

        Expected layout (all keys except ``site`` optional)::

            site: {title, bio, email, url, linkedin, github}
            cv: {education, presentations, refereeing, awards, researchexp, references}
            collections: {papers: [...]}
            projects-academic: [...]
            projects-professional: [...]
            projects-personal: [...]

        Raises:
            ContextLoadError: If the ``site`` profile is missing or a record lacks a required key
        """
        if not data.get("site"):
            raise ContextLoadError("CV context must contain a 'site' profile at root level")

        cv = data.get("cv") or {}
        collections = data.get("collections") or {}

        try:
            return cls(
                profile=Profile.from_dict(data["site"]),
                education=[EducationEntry.from_dict(e) for e in cv.get("education") or []],
                papers=[Paper.from_dict(p) for p in collections.get("papers") or []],
                presentations=[Presentation.from_dict(p) for p in cv.get("presentations") or []],
                refereeing=[_text(venue) for venue in cv.get("refereeing") or []],
                awards=[Award.from_dict(a) for a in cv.get("awards") or []],
                research_experience=[Award.from_dict(a) for a in cv.get("researchexp") or []],
                academic_projects=[Project.from_dict(p) for p in data.get("projects-academic") or []],
                professional_projects=[
                    Project.from_dict(p) for p in data.get("projects-professional") or []
                ],
                personal_projects=[Project.from_dict(p) for p in data.get("projects-personal") or []],
                references=[Reference.from_dict(r) for r in cv.get("references") or []],
            )
        except KeyError as e:
            raise ContextLoadError(f"CV record missing required field: {e}") from e


def load_context(path: Path) -> CVContext:
    """
    Load a CV context from a YAML file.

    Args:
        path: Path to the YAML context file

    Returns:
        CVContext built from the file
    """
    data = OmegaConf.to_container(OmegaConf.load(path), resolve=True)
    if not isinstance(data, dict):
        raise ContextLoadError(f"CV context file must contain a mapping: {path}")
    return CVContext.from_dict(data)
