"""
Artifact Parser - turns free-text model output into a component artifact.

``parse_component_response`` never fails: every step has an explicit fallback
and an artifact with empty markup or stylesheet is completed with the
placeholder defaults.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from ..models.component import ComponentDraft

logger = logging.getLogger(__name__)

DEFAULT_COMPONENT_NAME = "GeneratedComponent"
MAX_DESCRIPTION_LENGTH = 500
MARKUP_LANGUAGES = {"", "jsx", "tsx", "javascript", "typescript", "js", "ts"}
STYLE_LANGUAGES = {"css"}

FENCED_BLOCK = re.compile(r"```([\w+-]*)[ \t]*\n([\s\S]*?)\n```")
DECLARATION_KEYWORD = re.compile(r"\b(?:function|const)\b")
DECLARED_NAME = re.compile(r"\b(?:function|const)\s+([A-Za-z_$][\w$]*)")
CSS_RULE = re.compile(r"\.[\w-]+\s*\{[\s\S]*?\}")
DESCRIPTION_EXCLUDED = ("function", "const", "export")


@dataclass
class FencedBlock:
    language: str
    body: str


def find_fenced_blocks(text: str) -> List[FencedBlock]:
    """All fenced code blocks in order of appearance."""
    return [
        FencedBlock(language=m.group(1).lower(), body=m.group(2))
        for m in FENCED_BLOCK.finditer(text)
    ]


def _first_block(text: str, languages: set) -> Optional[str]:
    for block in find_fenced_blocks(text):
        if block.language in languages:
            return block.body
    return None


def extract_markup_block(text: str) -> str:
    """Inner text of the first JSX/TSX/JS/TS (or untagged) block, or ""."""
    return _first_block(text, MARKUP_LANGUAGES) or ""


def extract_style_block(text: str) -> str:
    """Inner text of the first ``css`` block, or ""."""
    return _first_block(text, STYLE_LANGUAGES) or ""


def fallback_markup(text: str) -> str:
    """The whole text when it declares a function or const, else ""."""
    return text if DECLARATION_KEYWORD.search(text) else ""


def fallback_stylesheet(text: str) -> str:
    """Every ``.selector { ... }`` rule in the text, separated by blank lines."""
    return "\n\n".join(CSS_RULE.findall(text))


def extract_component_name(markup: str) -> str:
    match = DECLARED_NAME.search(markup)
    return match.group(1) if match else DEFAULT_COMPONENT_NAME


def default_description(name: str) -> str:
    return f"A {name} component with modern styling and functionality."


def extract_description(text: str, name: str) -> str:
    """
    First two prose lines outside code fences, skipping lines that look like
    declarations. Falls back to a sentence built from ``name``.
    """
    lines: List[str] = []
    in_fence = False
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("```"):
            in_fence = not in_fence
            continue
        if in_fence or not stripped or "```" in stripped:
            continue
        if any(keyword in stripped for keyword in DESCRIPTION_EXCLUDED):
            continue
        lines.append(stripped)
        if len(lines) == 2:
            break

    description = " ".join(lines).strip()
    return description[:MAX_DESCRIPTION_LENGTH] if description else default_description(name)


def default_jsx(name: str = DEFAULT_COMPONENT_NAME) -> str:
    return f"""function {name}() {{
  return (
    <div className="generated-component">
      <h2>Generated Component</h2>
      <p>This is a placeholder component. Please try a more specific prompt.</p>
      <button className="btn">Click me</button>
    </div>
  );
}}

export default {name};"""


def default_css() -> str:
    return """.generated-component {
  padding: 20px;
  border-radius: 8px;
  background: #f8f9fa;
  border: 1px solid #e9ecef;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif;
}

.generated-component h2 {
  margin: 0 0 16px 0;
  color: #343a40;
  font-size: 24px;
  font-weight: 600;
}

.generated-component p {
  margin: 0 0 20px 0;
  color: #6c757d;
  line-height: 1.5;
}

.btn {
  background: #007bff;
  color: white;
  border: none;
  padding: 12px 24px;
  border-radius: 6px;
  font-size: 16px;
  cursor: pointer;
  transition: background-color 0.2s ease;
}

.btn:hover {
  background: #0056b3;
}"""


def placeholder_component() -> ComponentDraft:
    return ComponentDraft(
        name=DEFAULT_COMPONENT_NAME,
        description=default_description(DEFAULT_COMPONENT_NAME),
        jsx=default_jsx(DEFAULT_COMPONENT_NAME),
        css=default_css(),
    )


def parse_component_response(raw_text: Optional[str]) -> ComponentDraft:
    """
    Build a component artifact from raw model output.

    Args:
        raw_text: Text returned by the model

    Returns:
        ComponentDraft with non-empty name, description, jsx and css
    """
    text = raw_text or ""
    try:
        jsx = extract_markup_block(text) or fallback_markup(text)
        css = extract_style_block(text) or fallback_stylesheet(text)
        name = extract_component_name(jsx)
        description = extract_description(text, name)

        if not jsx:
            logger.debug("No markup found in model output, using placeholder JSX")
            jsx = default_jsx(name)
        if not css:
            logger.debug("No stylesheet found in model output, using placeholder CSS")
            css = default_css()

        return ComponentDraft(name=name, description=description, jsx=jsx, css=css)
    except Exception as e:
        logger.error(f"Error parsing component response: {e}", exc_info=True)
        return placeholder_component()
