"""Markdown to standalone HTML conversion.

The converter is an ordered series of regex substitutions rather than a
Markdown grammar. Pass order matters: code is shielded before anything else
runs, images are converted before links (image syntax contains link
syntax), and code is restored last.

Passes:
    1. fenced and inline code → placeholders
    2. pipe tables
    3. headings, longest marker first
    4. task-list items
    5. emphasis, longest marker first, ``*`` then ``_``
    6. strikethrough
    7. images
    8. links
    9. horizontal rules
    10. blockquotes, adjacent lines merged
    11. list items tagged, then wrapped in <ul>/<ol>
    12. blank-line separated paragraphs
    13. remaining line breaks
    14. code placeholders restored

Raw HTML in the markdown passes through unchanged; only code is escaped.
"""

import html
import logging
import re
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Notion Export"

# NUL never appears in exporter output, so placeholders cannot collide
# with text or be touched by the emphasis passes
_PLACEHOLDER_RE = re.compile(r'\x00(BLOCK|INLINE)(\d+)\x00')

_FENCED_CODE_RE = re.compile(r'```(\w*)\n([\s\S]*?)```')
_INLINE_CODE_RE = re.compile(r'`([^`\n]+)`')

_TABLE_RE = re.compile(
    r'^\|(.+)\|[ \t]*\n'
    r'\|[-: \t|]+\|[ \t]*\n'
    r'((?:\|.+\|[ \t]*(?:\n|$))+)',
    re.MULTILINE,
)

_TASK_DONE_RE = re.compile(r'^[ \t]*[-*][ \t]+\[[xX]\][ \t]+(.+)$', re.MULTILINE)
_TASK_OPEN_RE = re.compile(r'^[ \t]*[-*][ \t]+\[ ?\][ \t]+(.+)$', re.MULTILINE)

# Emphasis markers must hug their content so "* item *x*" stays a list item
_EMPHASIS_PASSES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r'\*\*\*(?=\S)(.+?)(?<=\S)\*\*\*'), r'<strong><em>\1</em></strong>'),
    (re.compile(r'\*\*(?=\S)(.+?)(?<=\S)\*\*'), r'<strong>\1</strong>'),
    (re.compile(r'\*(?=\S)([^*\n]+?)(?<=\S)\*'), r'<em>\1</em>'),
    (re.compile(r'___(?=\S)(.+?)(?<=\S)___'), r'<strong><em>\1</em></strong>'),
    (re.compile(r'__(?=\S)(.+?)(?<=\S)__'), r'<strong>\1</strong>'),
    (re.compile(r'(?<!\w)_(?=\S)([^_\n]+?)(?<=\S)_(?!\w)'), r'<em>\1</em>'),
]

_STRIKE_RE = re.compile(r'~~(.+?)~~')
_IMAGE_RE = re.compile(r'!\[([^\]]*)\]\(([^)]+)\)')
_LINK_RE = re.compile(r'\[([^\]]+)\]\(([^)]+)\)')
_RULE_RE = re.compile(r'^[ \t]*(?:-{3,}|\*{3,}|_{3,})[ \t]*$', re.MULTILINE)
_QUOTE_RE = re.compile(r'^>[ \t]?(.+)$', re.MULTILINE)
_QUOTE_JOIN_RE = re.compile(r'</blockquote>[ \t]*\n[ \t]*<blockquote>')

_BULLET_ITEM_RE = re.compile(r'^[ \t]*[-*+][ \t]+(.+)$')
_ORDERED_ITEM_RE = re.compile(r'^[ \t]*\d+\.[ \t]+(.+)$')
_TASK_ITEM_PREFIX = '<li class="task-item">'

_BLOCK_LINE_RE = re.compile(
    r'^(?:<h[1-6]>.*</h[1-6]>|<table\b.*</table>|<[uo]l>.*</[uo]l>'
    r'|<blockquote>.*</blockquote>|<hr />|\x00BLOCK\d+\x00)$'
)
_PARAGRAPH_RE = re.compile(r'<p>(.*?)</p>', re.DOTALL)


class _CodeShield:
    """Holds code fragments swapped out of the text during conversion."""

    def __init__(self):
        self.blocks: List[str] = []
        self.inline: List[str] = []

    def _fenced(self, match: 're.Match') -> str:
        language = match.group(1) or "plaintext"
        code = html.escape(match.group(2).strip())
        self.blocks.append(f'<pre><code class="language-{language}">{code}</code></pre>')
        return f"\x00BLOCK{len(self.blocks) - 1}\x00"

    def _inline(self, match: 're.Match') -> str:
        self.inline.append(f"<code>{html.escape(match.group(1))}</code>")
        return f"\x00INLINE{len(self.inline) - 1}\x00"

    def protect(self, text: str) -> str:
        text = _FENCED_CODE_RE.sub(self._fenced, text)
        return _INLINE_CODE_RE.sub(self._inline, text)

    def restore(self, text: str) -> str:
        def _put_back(match: 're.Match') -> str:
            store = self.blocks if match.group(1) == 'BLOCK' else self.inline
            return store[int(match.group(2))]

        return _PLACEHOLDER_RE.sub(_put_back, text)


def _inline_markdown(text: str) -> str:
    """Minimal inline formatting used inside table cells."""
    text = re.sub(r'\*\*(.+?)\*\*', r'<strong>\1</strong>', text)
    text = re.sub(r'\*([^*]+?)\*', r'<em>\1</em>', text)
    text = _IMAGE_RE.sub(r'<img src="\2" alt="\1" />', text)
    return _LINK_RE.sub(r'<a href="\2" target="_blank">\1</a>', text)


def _split_row(row: str) -> List[str]:
    row = row.strip()
    if row.startswith('|'):
        row = row[1:]
    if row.endswith('|'):
        row = row[:-1]
    return [cell.strip() for cell in row.split('|')]


def _table(match: 're.Match') -> str:
    headers = _split_row(match.group(1))
    rows = [_split_row(line) for line in match.group(2).strip().split('\n') if line.strip()]

    head = ''.join(f"<th>{_inline_markdown(cell)}</th>" for cell in headers)
    body = ''.join(
        '<tr>' + ''.join(f"<td>{_inline_markdown(cell)}</td>" for cell in row) + '</tr>'
        for row in rows
    )
    table = (
        f'<table class="markdown-table"><thead><tr>{head}</tr></thead>'
        f'<tbody>{body}</tbody></table>'
    )
    # Keep whatever follows the table on its own line
    return table + '\n' if match.group(0).endswith('\n') else table


def _headings(text: str) -> str:
    for level in range(6, 0, -1):
        pattern = re.compile(rf'^{"#" * level}[ \t]+(.+?)[ \t]*$', re.MULTILINE)
        text = pattern.sub(rf'<h{level}>\1</h{level}>', text)
    return text


def _lists(text: str) -> str:
    """Tag list items line by line, then wrap each run in one container."""
    tagged: List[Tuple[Optional[str], str]] = []
    for line in text.split('\n'):
        if line.startswith(_TASK_ITEM_PREFIX):
            tagged.append(('ul', line))
            continue
        bullet = _BULLET_ITEM_RE.match(line)
        if bullet:
            tagged.append(('ul', f"<li>{bullet.group(1)}</li>"))
            continue
        ordered = _ORDERED_ITEM_RE.match(line)
        if ordered:
            tagged.append(('ol', f"<li>{ordered.group(1)}</li>"))
            continue
        tagged.append((None, line))

    lines: List[str] = []
    run_kind: Optional[str] = None
    run: List[str] = []
    for kind, line in tagged + [(None, None)]:
        if run and kind != run_kind:
            lines.append(f"<{run_kind}>{''.join(run)}</{run_kind}>")
            run = []
        if kind is None:
            if line is not None:
                lines.append(line)
        else:
            run.append(line)
        run_kind = kind
    return '\n'.join(lines)


def _paragraphs(text: str) -> str:
    """Wrap blank-line separated text in <p>; block elements stand alone."""
    chunks: List[str] = []
    paragraph: List[str] = []

    def _close():
        if paragraph:
            chunks.append('<p>' + '\n'.join(paragraph) + '</p>')
            paragraph.clear()

    for line in text.split('\n'):
        stripped = line.strip()
        if not stripped:
            _close()
        elif _BLOCK_LINE_RE.match(stripped):
            _close()
            chunks.append(stripped)
        else:
            paragraph.append(line)
    _close()

    return '\n'.join(chunks)


def _line_breaks(text: str) -> str:
    return _PARAGRAPH_RE.sub(lambda m: '<p>' + m.group(1).replace('\n', '<br />') + '</p>', text)


def markdown_to_html_fragment(markdown: str) -> str:
    """Convert markdown to the HTML that goes inside <body>.

    Example:
        >>> markdown_to_html_fragment("# Title\\n\\nHello **world**")
        '<h1>Title</h1>\\n<p>Hello <strong>world</strong></p>'
    """
    text = markdown.replace('\r\n', '\n')
    shield = _CodeShield()

    text = shield.protect(text)
    text = _TABLE_RE.sub(_table, text)
    text = _headings(text)
    text = _TASK_DONE_RE.sub(r'<li class="task-item"><input type="checkbox" checked disabled> \1</li>', text)
    text = _TASK_OPEN_RE.sub(r'<li class="task-item"><input type="checkbox" disabled> \1</li>', text)
    for pattern, replacement in _EMPHASIS_PASSES:
        text = pattern.sub(replacement, text)
    text = _STRIKE_RE.sub(r'<del>\1</del>', text)
    text = _IMAGE_RE.sub(r'<img src="\2" alt="\1" />', text)
    text = _LINK_RE.sub(r'<a href="\2" target="_blank" rel="noopener noreferrer">\1</a>', text)
    text = _RULE_RE.sub('<hr />', text)
    text = _QUOTE_RE.sub(r'<blockquote>\1</blockquote>', text)
    text = _QUOTE_JOIN_RE.sub('<br />', text)
    text = _lists(text)
    text = _paragraphs(text)
    text = _line_breaks(text)
    return shield.restore(text)


def to_standalone_html(markdown: str, title: Optional[str] = None) -> str:
    """Render markdown as a self-contained, themed HTML document.

    The page follows the reader's light or dark color scheme and prints
    cleanly.

    Args:
        markdown: Page markdown
        title: Document title (defaults to "Notion Export")

    Returns:
        Complete HTML document as a string
    """
    body = markdown_to_html_fragment(markdown)
    logger.debug(f"Rendered {len(markdown)} chars of markdown to {len(body)} chars of HTML")
    return _DOCUMENT_TEMPLATE.format(
        title=html.escape(title or DEFAULT_TITLE),
        style=_STYLE,
        body=body,
    )


_STYLE = """\
    :root {
      --text-color: #37352f;
      --bg-color: #ffffff;
      --code-bg: #f7f6f3;
      --border-color: rgba(55, 53, 47, 0.16);
      --link-color: #2383e2;
      --table-header-bg: #f7f6f3;
    }

    @media (prefers-color-scheme: dark) {
      :root {
        --text-color: rgba(255, 255, 255, 0.9);
        --bg-color: #191919;
        --code-bg: #2f2f2f;
        --border-color: rgba(255, 255, 255, 0.13);
        --link-color: #529cca;
        --table-header-bg: #2f2f2f;
      }
    }

    * { box-sizing: border-box; }

    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Helvetica, Arial, sans-serif;
      line-height: 1.6;
      color: var(--text-color);
      background-color: var(--bg-color);
      max-width: 900px;
      margin: 0 auto;
      padding: 2rem;
    }

    h1, h2, h3, h4, h5, h6 {
      margin-top: 1.5em;
      margin-bottom: 0.5em;
      font-weight: 600;
      line-height: 1.3;
    }

    h1 { font-size: 2em; }
    h2 { font-size: 1.5em; }
    h3 { font-size: 1.25em; }

    p { margin: 1em 0; }

    a { color: var(--link-color); text-decoration: none; }
    a:hover { text-decoration: underline; }

    img { max-width: 100%; height: auto; border-radius: 4px; }

    code {
      font-family: "SFMono-Regular", Consolas, "Liberation Mono", Menlo, monospace;
      font-size: 0.875em;
      background-color: var(--code-bg);
      padding: 0.2em 0.4em;
      border-radius: 3px;
    }

    pre {
      background-color: var(--code-bg);
      padding: 1em;
      border-radius: 4px;
      overflow-x: auto;
    }

    pre code { background: none; padding: 0; }

    blockquote {
      margin: 1em 0;
      padding-left: 1em;
      border-left: 3px solid var(--border-color);
      opacity: 0.8;
    }

    ul, ol { margin: 1em 0; padding-left: 2em; }
    li { margin: 0.25em 0; }
    li.task-item { list-style: none; margin-left: -1.5em; }
    li.task-item input[type="checkbox"] { margin-right: 0.5em; }

    hr { border: none; border-top: 1px solid var(--border-color); margin: 2em 0; }

    table.markdown-table { border-collapse: collapse; width: 100%; margin: 1em 0; }
    table.markdown-table th,
    table.markdown-table td {
      border: 1px solid var(--border-color);
      padding: 0.5em 1em;
      text-align: left;
    }
    table.markdown-table th { background-color: var(--table-header-bg); font-weight: 600; }
    table.markdown-table tr:nth-child(even) { background-color: var(--code-bg); }

    del { text-decoration: line-through; opacity: 0.7; }

    @media print {
      body { max-width: none; padding: 1cm; }
      a { color: var(--text-color); }
      pre, code { white-space: pre-wrap; word-wrap: break-word; }
    }"""

_DOCUMENT_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>
{style}
  </style>
</head>
<body>
{body}
</body>
</html>
"""
