"""
Content transforms applied to user-submitted text.

- sanitize_strict: strips every tag (names, titles)
- sanitize_relaxed: keeps common formatting tags, drops scripts/styles/handlers
- unescape_entities: decodes HTML entities left by older releases
- render_markdown: Markdown to HTML
"""

import hashlib
import html

import markdown
import nh3

# Common formatting tags kept by sanitize_relaxed
RELAXED_TAGS = {
    'a', 'b', 'blockquote', 'br', 'caption', 'cite', 'code', 'col', 'colgroup',
    'dd', 'div', 'dl', 'dt', 'em', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'hr', 'i',
    'img', 'li', 'ol', 'p', 'pre', 'q', 'small', 'span', 'strike', 'strong', 'sub',
    'sup', 'table', 'tbody', 'td', 'tfoot', 'th', 'thead', 'tr', 'u', 'ul',
}

RELAXED_ATTRIBUTES = {
    'a': {'href', 'title'},
    'blockquote': {'cite'},
    'col': {'span', 'width'},
    'colgroup': {'span', 'width'},
    'img': {'align', 'alt', 'height', 'src', 'title', 'width'},
    'ol': {'start', 'type'},
    'q': {'cite'},
    'table': {'summary', 'width'},
    'td': {'abbr', 'axis', 'colspan', 'rowspan', 'width'},
    'th': {'abbr', 'axis', 'colspan', 'rowspan', 'scope', 'width'},
    'ul': {'type'},
}

MARKDOWN_EXTENSIONS = ['fenced_code', 'tables', 'nl2br']

GRAVATAR_URL = "https://secure.gravatar.com/avatar/"


def sanitize_strict(text: str) -> str:
    """Strip all markup from text."""
    if not text:
        return ''
    return nh3.clean(text, tags=set(), attributes={})


def sanitize_relaxed(value: str) -> str:
    """Sanitize HTML, allowing common formatting tags.

    Script and style elements are removed along with their content, and
    event handler attributes never survive because no tag allows them.
    """
    if not value:
        return ''
    return nh3.clean(value, tags=RELAXED_TAGS, attributes=RELAXED_ATTRIBUTES)


def unescape_entities(text: str) -> str:
    if not text:
        return ''
    return html.unescape(text)


def render_markdown(text: str) -> str:
    """Render Markdown to HTML. Single newlines become <br />."""
    if not text:
        return ''
    return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)


def gravatar_url(email: str, size: str = "128") -> str:
    """Build the Gravatar avatar URL for an email address."""
    digest = hashlib.md5(email.strip().lower().encode('utf-8')).hexdigest()
    return f"{GRAVATAR_URL}{digest}?s={size}&d=identicon"
