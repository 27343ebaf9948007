"""Classification engine.

Decides whether an item is a Markdown document from three independent signals:
its filename, the headers of its download response and the structure of its
body. Every function is pure and returns a ClassificationVerdict.
"""

import re
from urllib.parse import unquote

from shared.models.document import ClassificationVerdict, FetchHeaders, Provenance, Verdict

MARKDOWN_EXTENSIONS = (".md", ".markdown", ".mdown", ".mkd", ".mdwn")
MARKDOWN_MEDIA_TYPE = "text/markdown"
CONTENT_MIN_CHARS = 10
CONTENT_MAX_CHARS = 500_000

BINARY_CONTENT_TYPE_PATTERN = re.compile(r"application/(octet-stream|pdf|zip)|image/", re.IGNORECASE)
DISPOSITION_FILENAME_PATTERN = re.compile(r"filename\*?=(?:UTF-8'')?[\"']?([^\"';]+)[\"']?", re.IGNORECASE)

# structural patterns of the Markdown family, block patterns anchored at line starts
MARKDOWN_CONTENT_PATTERNS: list[re.Pattern] = [
    re.compile(r"^#{1,6}\s", re.MULTILINE),        # heading
    re.compile(r"^\s*[-*+]\s", re.MULTILINE),      # bullet list
    re.compile(r"^\s*\d+\.\s", re.MULTILINE),      # ordered list
    re.compile(r"\[.+\]\(.+\)"),                   # link
    re.compile(r"\*\*?.+\*\*?"),                   # emphasis
    re.compile(r"^```", re.MULTILINE),             # fenced code
]


def _verdict(provenance: Provenance, positive: bool) -> ClassificationVerdict:
    return ClassificationVerdict(verdict=Verdict.POSITIVE if positive else Verdict.UNKNOWN, provenance=provenance)


def classify_by_name(name: str | None) -> ClassificationVerdict:
    """Positive if the trimmed name carries a Markdown extension, Unknown otherwise.

    A missing extension proves nothing (extensionless files exist), so this
    never returns Negative.
    """
    if not name or not isinstance(name, str):
        return _verdict(Provenance.FILENAME, False)
    return _verdict(Provenance.FILENAME, name.strip().lower().endswith(MARKDOWN_EXTENSIONS))


def extract_disposition_filename(content_disposition: str | None) -> str | None:
    """Returns the decoded filename parameter of a Content-Disposition header, if any.

    Handles the RFC 5987 ``filename*=UTF-8''...`` form. Undecodable values are
    returned as found.
    """
    match = DISPOSITION_FILENAME_PATTERN.search(content_disposition or "")
    if not match:
        return None
    raw = match.group(1).strip()
    raw = re.sub(r"^UTF-8''", "", raw, flags=re.IGNORECASE)
    try:
        return unquote(raw, errors="strict")
    except UnicodeDecodeError:
        return raw


def classify_by_headers(headers: FetchHeaders) -> ClassificationVerdict:
    """Positive for an explicit Markdown media type, else delegates to the disposition filename."""
    if MARKDOWN_MEDIA_TYPE in (headers.content_type or "").lower():
        return ClassificationVerdict(verdict=Verdict.POSITIVE, provenance=Provenance.HEADER)
    filename = extract_disposition_filename(headers.content_disposition)
    if filename:
        return _verdict(Provenance.HEADER, classify_by_name(filename).is_positive())
    return _verdict(Provenance.HEADER, False)


def classify_by_content(text: str | None, max_chars: int = CONTENT_MAX_CHARS) -> ClassificationVerdict:
    """Positive if the body shows Markdown structure.

    Bodies under CONTENT_MIN_CHARS carry too little signal, bodies of max_chars
    or more are not scanned; both yield Unknown.
    """
    if not text or len(text) < CONTENT_MIN_CHARS or len(text) >= max_chars:
        return _verdict(Provenance.CONTENT, False)
    trimmed = text.strip()
    return _verdict(Provenance.CONTENT, any(p.search(trimmed) for p in MARKDOWN_CONTENT_PATTERNS))


def classify_by_content_type(content_type: str | None) -> ClassificationVerdict:
    """Negative for binary and image media types, Unknown otherwise."""
    if BINARY_CONTENT_TYPE_PATTERN.search(content_type or ""):
        return ClassificationVerdict(verdict=Verdict.NEGATIVE, provenance=Provenance.CONTENT_TYPE)
    return ClassificationVerdict(verdict=Verdict.UNKNOWN, provenance=Provenance.CONTENT_TYPE)


def is_textual(content_type: str | None) -> bool:
    return "text/" in (content_type or "").lower()


def combine_verdicts(verdicts: list[ClassificationVerdict]) -> ClassificationVerdict:
    """Combines verdicts of several signals.

    Any Positive wins and keeps its provenance. Without a Positive, any
    Negative wins. Otherwise the result is Unknown.
    """
    for verdict in verdicts:
        if verdict.is_positive():
            return verdict
    for verdict in verdicts:
        if verdict.is_negative():
            return verdict
    return ClassificationVerdict(verdict=Verdict.UNKNOWN, provenance=Provenance.COMBINED)


def classify_response(
    name: str | None,
    headers: FetchHeaders,
    text: str | None,
    max_chars: int = CONTENT_MAX_CHARS,
) -> ClassificationVerdict:
    """Combines all signals for a fetched document.

    The body is only sniffed when the response declares a textual content type.
    """
    verdicts = [
        classify_by_name(name),
        classify_by_headers(headers),
    ]
    if is_textual(headers.content_type):
        verdicts.append(classify_by_content(text, max_chars=max_chars))
    verdicts.append(classify_by_content_type(headers.content_type))
    return combine_verdicts(verdicts)
