"""
LaTeX Section Formatters

One pure function per CV section. Each maps a collection of records to a
LaTeX fragment by formatting every record and joining the snippets with a
blank line. The custom commands (\\cvsection, \\cvsubsection,
\\cvsubsubsection, \\dateright) are defined in template/_preamble.tex.

Text fields are LaTeX markup written by the CV owner and are embedded as-is
unless FormatterOptions.escape_text is set, in which case plain-text fields
(titles, names, venues, descriptions) are escaped. URLs and e-mail addresses
are never escaped. Paper bodies always go verbatim into the markdown
environment.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from cvtex.contexts.templating.cv_data_structures import (
    Award,
    EducationEntry,
    Paper,
    Presentation,
    Profile,
    Project,
    Reference,
)
from cvtex.contexts.templating.exceptions import UnsafeContentError
from cvtex.utils.dates import get_year, sort_by_date, year_range
from cvtex.utils.text_processing import deobfuscate_email, escape_latex, strip_url_scheme

ENTRY_SEPARATOR = "\n\n"

# Separator between items of the header address line
ADDRESS_SEPARATOR = r"{\hspace{0.1em}\textbullet\hspace{0.1em}}"

MARKDOWN_BEGIN = r"\begin{markdown}"
MARKDOWN_END = r"\end{markdown}"


@dataclass(frozen=True)
class FormatterOptions:
    """
    Formatting options shared by all section formatters.

    Attributes:
        escape_text: Escape LaTeX special characters in plain-text fields
    """

    escape_text: bool = False

    def text(self, value) -> str:
        """Render a plain-text field according to the escaping policy."""
        value = "" if value is None else str(value)
        return escape_latex(value) if self.escape_text else value


DEFAULT_OPTIONS = FormatterOptions()


def _join(snippets: Iterable[str]) -> str:
    return ENTRY_SEPARATOR.join(snippets)


def _dateright(value: Any) -> str:
    # Unknown dates drop the annotation entirely
    return rf" \dateright{{{value}}}" if value else ""


def format_address_line(profile: Profile, options: FormatterOptions = DEFAULT_OPTIONS) -> str:
    """
    Header contact line: e-mail, site URL, LinkedIn and GitHub handles.

    The site URL is shown without its scheme. Empty fields are left out.
    """
    items = []
    if profile.email:
        items.append(rf"\href{{mailto:{profile.email}}}{{{profile.email}}}")
    if profile.url:
        items.append(rf"\href{{{profile.url}}}{{{strip_url_scheme(profile.url)}}}")
    if profile.linkedin:
        items.append(
            rf"\href{{https://linkedin.com/in/{profile.linkedin}}}"
            rf"{{\faLinkedin/{options.text(profile.linkedin)}}}"
        )
    if profile.github:
        items.append(
            rf"\href{{https://github.com/{profile.github}}}"
            rf"{{\faGithub/{options.text(profile.github)}}}"
        )
    return f"\n    {ADDRESS_SEPARATOR}\n    ".join(items)


def format_education(
    education: Sequence[EducationEntry], options: FormatterOptions = DEFAULT_OPTIONS
) -> str:
    """Institution header followed by each degree with its year range."""

    def _entry(edu: EducationEntry) -> str:
        degrees = _join(
            rf"\cvsubsubsection{{{options.text(degree.title)}}}"
            + _dateright(year_range(degree.start, degree.end))
            for degree in edu.degrees
        )
        return rf"\cvsubsection{{{options.text(edu.school)}}}" + ENTRY_SEPARATOR + degrees

    return _join(_entry(edu) for edu in education)


def partition_papers(papers: Sequence[Paper]) -> Tuple[List[Paper], List[Paper]]:
    """
    Split papers into (accepted, not accepted), preserving order.

    Every paper lands in exactly one of the two lists.
    """
    accepted = []
    working = []
    for paper in papers:
        (accepted if paper.accepted else working).append(paper)
    return accepted, working


def coauthor_annotation(
    paper: Paper, owner: str, options: FormatterOptions = DEFAULT_OPTIONS
) -> str:
    """
    " (with A, B)" listing every author except the CV owner.

    Empty for single-author papers.
    """
    if len(paper.authors) <= 1:
        return ""
    coauthors = [options.text(author.name) for author in paper.authors if author.name != owner]
    return f" (with {', '.join(coauthors)})"


def status_annotation(paper: Paper, options: FormatterOptions = DEFAULT_OPTIONS) -> str:
    """
    Publication status line.

    Priority: published > accepted > revise-and-resubmit. Every status needs
    a journal; without one (or without any flag) nothing is shown.
    """
    if not paper.journal:
        return ""
    journal = options.text(paper.journal)
    if paper.published:
        year = options.text(paper.year)
        venue = f"{journal} {year}" if year else journal
        return ENTRY_SEPARATOR + rf"\cvsubsubsection{{{venue}}}"
    if paper.accepted:
        return ENTRY_SEPARATOR + rf"\cvsubsubsection{{Accepted at {journal}}}"
    if paper.rnr:
        return ENTRY_SEPARATOR + rf"\cvsubsubsection{{R\&R at {journal}}}"
    return ""


def embed_markdown(content: str, source: Optional[str] = None) -> str:
    """
    Wrap markdown content in the markdown environment, verbatim.

    Raises:
        UnsafeContentError: If the content contains the environment's end marker
    """
    if MARKDOWN_END in content:
        raise UnsafeContentError(
            f"Markdown content must not contain {MARKDOWN_END}", source=source, snippet=content
        )
    return f"{MARKDOWN_BEGIN}{content}{MARKDOWN_END}"


def format_papers(
    papers: Sequence[Paper], profile: Profile, options: FormatterOptions = DEFAULT_OPTIONS
) -> str:
    """
    Linked title, co-authors, status and abstract for each paper.

    Paper links are built from the profile URL and the paper's relative URL.
    """

    def _entry(paper: Paper) -> str:
        heading = (
            rf"\cvsubsection{{\href{{{profile.url}{paper.url}}}{{``{options.text(paper.title)}''}}}}"
            f"{coauthor_annotation(paper, profile.title, options)}"
            f"{status_annotation(paper, options)}"
        )
        return heading + ENTRY_SEPARATOR + embed_markdown(paper.content, source=paper.title)

    return _join(_entry(paper) for paper in papers)


def format_presentations(
    presentations: Sequence[Presentation], options: FormatterOptions = DEFAULT_OPTIONS
) -> str:
    """Venue and year for each talk, most recent first."""
    return _join(
        options.text(pres.where) + _dateright(get_year(pres.date))
        for pres in sort_by_date(presentations, "date")
    )


def award_date_annotation(award: Award) -> str:
    """
    Single year if dated, year range if both start and end are set, otherwise nothing.

    A date or range that cannot be parsed also yields nothing.
    """
    if award.date:
        return _dateright(get_year(award.date))
    if award.start and award.end:
        return _dateright(year_range(award.start, award.end))
    return ""


def format_awards(awards: Sequence[Award], options: FormatterOptions = DEFAULT_OPTIONS) -> str:
    """
    Awards and research positions, most recent first.

    Each entry joins its non-empty title/for/from fields with ", " and adds
    the date annotation.
    """

    def _entry(award: Award) -> str:
        description = ", ".join(
            options.text(value) for value in (award.title, award.for_, award.from_) if value
        )
        return description + award_date_annotation(award)

    return _join(_entry(award) for award in sort_by_date(awards, "date"))


def sort_projects(projects: Iterable[Project]) -> List[Project]:
    """Projects in case-insensitive alphabetical order of title."""
    return sorted(projects, key=lambda project: str(project.title).casefold())


def format_projects(projects: Sequence[Project], options: FormatterOptions = DEFAULT_OPTIONS) -> str:
    """Linked title plus an optional source-repository link, sorted by title."""

    def _entry(project: Project) -> str:
        source = (
            rf"\dateright{{\href{{{project.github}}}{{\faGithub\ Source}}}}"
            if project.github
            else ""
        )
        return rf"\cvsubsubsection{{\href{{{project.url}}}{{{options.text(project.title)}}}}}{source}"

    return _join(_entry(project) for project in sort_projects(projects))


def format_references(
    references: Sequence[Reference], options: FormatterOptions = DEFAULT_OPTIONS
) -> str:
    """Linked name, description, and de-obfuscated mailto link for each referee."""

    def _entry(reference: Reference) -> str:
        email = deobfuscate_email(reference.email)
        return _join(
            [
                rf"\cvsubsection{{\href{{{reference.url}}}{{{options.text(reference.title)}}}}}",
                rf"\cvsubsubsection{{{options.text(reference.description)}}}",
                rf"\href{{mailto:{email}}}{{{email}}}",
            ]
        )

    return _join(_entry(reference) for reference in references)


def format_refereeing(venues: Iterable[str], options: FormatterOptions = DEFAULT_OPTIONS) -> str:
    """Alphabetically sorted, comma-separated list of refereed journals."""
    return ", ".join(options.text(venue) for venue in sorted(venues))
