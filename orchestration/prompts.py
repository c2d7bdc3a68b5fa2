"""
Prompt builders for the AI routes.

Each builder returns the ordered Message list handed to the orchestrator.
The repository analysis builder also summarizes the file listing it is
given (languages, dependencies, key files) so the prompt stays small.
"""

import json
import re
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from inference.types import Message

COMPLETION_SYSTEM_PROMPT = (
    "You are a helpful coding assistant. Respond only with the completed or "
    "improved code, no explanations."
)
EXPLAIN_SYSTEM_PROMPT = (
    "You are a helpful coding assistant. Explain the provided code in simple, clear steps."
)
CHAT_SYSTEM_PROMPT = (
    "You are an expert AI coding assistant integrated into an IDE. Help with code "
    "analysis, debugging, refactoring, and programming questions. Provide clear, "
    "actionable answers; use code blocks when showing code."
)
ANALYSIS_SYSTEM_PROMPT = (
    "You are an expert software architect and code reviewer. Provide comprehensive, "
    "structured analysis of codebases. Explain your findings clearly with specific "
    "examples. Use bullet points and clear headings."
)

CHAT_HISTORY_LIMIT = 12


def completion_messages(code: str) -> List[Message]:
    return [
        Message(role="system", content=COMPLETION_SYSTEM_PROMPT),
        Message(
            role="user",
            content=(
                "Complete or improve the following code. Respond with code only "
                f"(use code blocks if possible):\n\n{code}"
            ),
        ),
    ]


def explanation_messages(code: str) -> List[Message]:
    return [
        Message(role="system", content=EXPLAIN_SYSTEM_PROMPT),
        Message(
            role="user",
            content=f"Explain what the following code does in simple steps. Be concise but thorough:\n\n{code}",
        ),
    ]


def chat_messages(
    message: str,
    history: Optional[Sequence[Message]] = None,
    limit: int = CHAT_HISTORY_LIMIT,
) -> List[Message]:
    """System prompt, the last `limit` history turns, then the new user message."""
    messages = [Message(role="system", content=CHAT_SYSTEM_PROMPT)]
    if history:
        messages.extend(list(history)[-limit:])
    messages.append(Message(role="user", content=message))
    return messages


# ── Repository analysis ─────────────────────────────────────────────────────

LANGUAGE_MAP = {
    "js": "JavaScript", "ts": "TypeScript", "jsx": "JavaScript (React)",
    "tsx": "TypeScript (React)", "py": "Python", "java": "Java", "cpp": "C++",
    "c": "C", "cs": "C#", "php": "PHP", "rb": "Ruby", "go": "Go", "rs": "Rust",
    "html": "HTML", "css": "CSS", "scss": "SCSS", "sass": "SASS", "json": "JSON",
    "yaml": "YAML", "yml": "YAML", "xml": "XML", "md": "Markdown", "sh": "Shell",
    "bash": "Bash", "sql": "SQL", "vue": "Vue", "svelte": "Svelte",
}

_ENTRY_POINT_RE = re.compile(r"(src/index|app/main|src/main|src/app)")
_ENTRY_POINT_NAMES = ("main.js", "app.js", "index.js", "server.js", "main.py", "app.py")
_CONFIG_RE = re.compile(
    r"(\.(json|yaml|yml|toml|env|config|conf|rc)$)|"
    r"(package\.json|webpack\.config|babel\.config|tsconfig\.json|jest\.config)"
)
_DOC_RE = re.compile(r"(README|CONTRIBUTING|LICENSE|CHANGELOG|CODE_OF_CONDUCT)", re.IGNORECASE)


@dataclass
class LanguageStat:
    language: str
    files: int
    size_kb: float
    percentage: float


@dataclass
class RepositorySummary:
    total_files: int
    total_size_kb: float
    languages: List[LanguageStat] = field(default_factory=list)
    dependencies: List[Dict[str, str]] = field(default_factory=list)
    extensions: int = 0
    top_level_dirs: List[str] = field(default_factory=list)
    entry_points: List[str] = field(default_factory=list)
    test_files: List[str] = field(default_factory=list)
    config_files: List[str] = field(default_factory=list)
    doc_files: List[str] = field(default_factory=list)
    snippets: List[Dict[str, str]] = field(default_factory=list)

    @property
    def primary_language(self) -> str:
        return self.languages[0].language if self.languages else "Unknown"


def _extension(path: str) -> str:
    name = path.rsplit("/", 1)[-1]
    return name.rsplit(".", 1)[-1].lower() if "." in name else "other"


def _package_json_dependencies(file: Dict[str, Any]) -> List[Dict[str, str]]:
    try:
        pkg = json.loads(file.get("content") or "")
    except ValueError:
        return []
    if not isinstance(pkg, dict):
        return []
    merged: Dict[str, Any] = {}
    for section in ("dependencies", "devDependencies"):
        if isinstance(pkg.get(section), dict):
            merged.update(pkg[section])
    return [{"name": name, "version": str(version)} for name, version in merged.items()]


def _snippet(content: str, max_lines: int) -> str:
    lines = content.split("\n")
    snippet = "\n".join(lines[:max_lines])
    return snippet + "\n... (truncated)" if len(lines) > max_lines else snippet


def summarize_repository(files: Sequence[Dict[str, Any]]) -> RepositorySummary:
    """Aggregate statistics over a repository file listing."""
    paths = [f.get("path") or "" for f in files]
    total_size = sum(int(f.get("size") or 0) for f in files)

    counts: Counter = Counter()
    sizes: Dict[str, int] = {}
    for f, path in zip(files, paths):
        ext = _extension(path)
        language = LANGUAGE_MAP.get(ext, ext.upper())
        counts[language] += 1
        sizes[language] = sizes.get(language, 0) + int(f.get("size") or 0)

    languages = [
        LanguageStat(
            language=language,
            files=count,
            size_kb=round(sizes[language] / 1024, 2),
            percentage=round(count / len(files) * 100, 1) if files else 0.0,
        )
        for language, count in counts.most_common(10)
    ]

    dependencies: List[Dict[str, str]] = []
    for f in files:
        if (f.get("path") or "").endswith("package.json"):
            dependencies.extend(_package_json_dependencies(f))

    entry_files = [
        f for f, p in zip(files, paths)
        if _ENTRY_POINT_RE.search(p) or p.endswith(_ENTRY_POINT_NAMES)
    ][:6]
    config_files = [f for f, p in zip(files, paths) if _CONFIG_RE.search(p)][:8]

    snippets = []
    for f in entry_files[:2]:
        if f.get("content"):
            snippets.append({"path": f["path"], "content": _snippet(f["content"], 25)})
    main_config = next(
        (f for f in config_files if "package.json" in f["path"] or "config" in f["path"]), None
    )
    if main_config and main_config.get("content"):
        snippets.append({"path": main_config["path"], "content": _snippet(main_config["content"], 40)})

    return RepositorySummary(
        total_files=len(files),
        total_size_kb=round(total_size / 1024, 2),
        languages=languages,
        dependencies=dependencies,
        extensions=len({_extension(p) for p in paths}),
        top_level_dirs=list(OrderedDict.fromkeys(p.split("/")[0] for p in paths if p))[:10],
        entry_points=[f["path"] for f in entry_files],
        test_files=[
            p for p in paths
            if "test/" in p or "tests/" in p or "__tests__" in p
            or p.endswith((".test.js", ".spec.js", ".test.ts"))
            or p.rsplit("/", 1)[-1].startswith("test_")
        ][:8],
        config_files=[f["path"] for f in config_files],
        doc_files=[p for p in paths if _DOC_RE.search(p)][:6],
        snippets=snippets,
    )


def analysis_messages(summary: RepositorySummary, owner: str, repo: str) -> List[Message]:
    languages = ", ".join(f"{l.language} ({l.percentage}%)" for l in summary.languages)
    breakdown = "\n".join(
        f"{i}. {l.language}: {l.files} files ({l.percentage}%), {l.size_kb} KB"
        for i, l in enumerate(summary.languages, 1)
    )
    deps = summary.dependencies
    dep_lines = "\n".join(f"- {d['name']}@{d['version']}" for d in deps[:20]) or "No package files found."
    if len(deps) > 20:
        dep_lines += f"\n... and {len(deps) - 20} more"
    snippet_block = "\n".join(
        f"### {s['path']}\n```\n{s['content']}\n```\n" for s in summary.snippets
    )

    prompt = f"""Analyze the repository "{owner}/{repo}" and provide a structured analysis.

REPOSITORY INFORMATION:
- Total Files: {summary.total_files}
- Total Size: {summary.total_size_kb} KB
- Primary Language: {summary.primary_language}
- Languages Used: {languages}
- Top-level Directories: {", ".join(summary.top_level_dirs)}

LANGUAGE BREAKDOWN:
{breakdown}

DEPENDENCIES ({len(deps)}):
{dep_lines}

KEY FILES:
- Entry Points: {", ".join(summary.entry_points) or "None found"}
- Test Files: {len(summary.test_files)} files
- Config Files: {len(summary.config_files)} files
- Documentation: {len(summary.doc_files)} files
{snippet_block}
Provide a structured analysis with these sections:
1. PROJECT OVERVIEW
2. CODE STRUCTURE & ORGANIZATION
3. KEY COMPONENTS & ARCHITECTURE
4. DEPENDENCIES ANALYSIS
5. TESTING STATUS
6. CODE QUALITY ASSESSMENT
7. RECOMMENDATIONS
8. SUMMARY

Write clearly and concisely. Use bullet points and short paragraphs. Start each section with a heading."""

    return [
        Message(role="system", content=ANALYSIS_SYSTEM_PROMPT),
        Message(role="user", content=prompt),
    ]


def repository_metadata(summary: RepositorySummary) -> Dict[str, Any]:
    """Metadata block returned alongside an analysis."""
    return {
        "totalFiles": summary.total_files,
        "fileTypes": summary.extensions,
        "dependencies": len(summary.dependencies),
        "primaryLanguage": summary.primary_language,
        "languages": [
            {"name": l.language, "files": l.files, "percentage": l.percentage, "sizeKB": l.size_kb}
            for l in summary.languages[:5]
        ],
        "entryPoints": summary.entry_points,
        "testFilesCount": len(summary.test_files),
        "configFilesCount": len(summary.config_files),
    }
