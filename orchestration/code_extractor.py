"""
Code-only extraction from freeform model output.

Best-effort and language-agnostic: a filter, not a parser. Order:
  1. fenced blocks (```lang or bare) -> bodies joined, prose dropped
  2. line filter keeping code-looking lines
  3. every non-blank, non-fence line verbatim
Never raises.
"""

import re
from typing import Any, List

# ```lang\n ... ``` (language tag optional, newline after the tag optional)
_FENCE_RE = re.compile(r"```(?:[\w+#.-]+)?[ \t]*\n?([\s\S]*?)```")

_COMMENT_PREFIXES = ("//", "#", "/*", "*", "```")

_CODE_TOKENS = (
    "const ", "let ", "var ", "function ", "class ", "def ", "import ", "from ",
    "export ", "return ", "=>", "console.", "print(", "self.",
    "if(", "if (", "for(", "for (", "while(", "while (", "try{", "try {",
)

_CODE_CHARS_RE = re.compile(r"[;{}()\[\]=<>]")


def _fenced_blocks(text: str) -> List[str]:
    return [m.group(1).strip() for m in _FENCE_RE.finditer(text)]


def _looks_like_code(line: str) -> bool:
    stripped = line.strip()
    if not stripped or stripped.startswith(_COMMENT_PREFIXES):
        return False
    return any(token in stripped for token in _CODE_TOKENS) or bool(_CODE_CHARS_RE.search(stripped))


def extract_code(content: Any) -> str:
    if not isinstance(content, str) or not content.strip():
        return ""

    blocks = [b for b in _fenced_blocks(content) if b]
    if blocks:
        return "\n\n".join(blocks)

    lines = content.splitlines()
    kept = "\n".join(line for line in lines if _looks_like_code(line)).strip()
    if kept:
        return kept

    # Last resort: everything except blanks and fence markers
    remaining = "\n".join(
        line for line in lines if line.strip() and not line.strip().startswith("```")
    ).strip()
    return remaining or content.strip()
