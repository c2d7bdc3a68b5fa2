"""Tests for route prompt builders and repository summaries."""

import json

import pytest

from inference.types import Message
from orchestration.profiles import ANALYZE, COMPLETE, get_profile
from orchestration.prompts import (
    CHAT_HISTORY_LIMIT,
    analysis_messages,
    chat_messages,
    completion_messages,
    explanation_messages,
    repository_metadata,
    summarize_repository,
)


REPO_FILES = [
    {"path": "src/index.js", "content": "const app = require('./app');\napp.listen(3000);", "size": 2048},
    {"path": "src/app.js", "content": "module.exports = {};", "size": 1024},
    {
        "path": "package.json",
        "content": json.dumps({
            "dependencies": {"express": "^4.18.0"},
            "devDependencies": {"jest": "^29.0.0"},
        }),
        "size": 512,
    },
    {"path": "tests/app.test.js", "content": "test('ok', () => {});", "size": 256},
    {"path": "README.md", "content": "# Demo", "size": 128},
    {"path": "Makefile", "size": 64},
]


class TestMessageBuilders:
    def test_completion_messages(self):
        messages = completion_messages("const x =")
        assert [m.role for m in messages] == ["system", "user"]
        assert messages[1].content.endswith("const x =")

    def test_explanation_messages(self):
        messages = explanation_messages("print(1)")
        assert "print(1)" in messages[1].content

    def test_chat_keeps_recent_history_only(self):
        history = [
            Message(role="user" if i % 2 == 0 else "assistant", content=f"turn {i}")
            for i in range(20)
        ]
        messages = chat_messages("latest question", history)

        assert messages[0].role == "system"
        assert messages[-1] == Message(role="user", content="latest question")
        assert len(messages) == CHAT_HISTORY_LIMIT + 2
        assert messages[1].content == "turn 8"

    def test_chat_without_history(self):
        messages = chat_messages("hi")
        assert [m.role for m in messages] == ["system", "user"]


class TestRepositorySummary:
    def test_languages_ranked_by_file_count(self):
        summary = summarize_repository(REPO_FILES)
        assert summary.primary_language == "JavaScript"
        assert summary.languages[0].files == 3
        assert summary.total_files == 6

    def test_dependencies_from_package_json(self):
        summary = summarize_repository(REPO_FILES)
        assert {"name": "express", "version": "^4.18.0"} in summary.dependencies
        assert {"name": "jest", "version": "^29.0.0"} in summary.dependencies

    def test_key_files(self):
        summary = summarize_repository(REPO_FILES)
        assert "src/index.js" in summary.entry_points
        assert "package.json" in summary.config_files
        assert summary.test_files == ["tests/app.test.js"]
        assert summary.doc_files == ["README.md"]
        assert summary.top_level_dirs[:3] == ["src", "package.json", "tests"]

    def test_bad_package_json_ignored(self):
        summary = summarize_repository([{"path": "package.json", "content": "{not json", "size": 1}])
        assert summary.dependencies == []

    def test_empty_listing(self):
        summary = summarize_repository([])
        assert summary.primary_language == "Unknown"
        assert summary.languages == []

    def test_analysis_prompt_mentions_repository(self):
        summary = summarize_repository(REPO_FILES)
        messages = analysis_messages(summary, "octo", "demo")
        prompt = messages[1].content
        assert '"octo/demo"' in prompt
        assert "express@^4.18.0" in prompt
        assert "### src/index.js" in prompt

    def test_metadata_keys(self):
        metadata = repository_metadata(summarize_repository(REPO_FILES))
        assert metadata["totalFiles"] == 6
        assert metadata["dependencies"] == 2
        assert metadata["primaryLanguage"] == "JavaScript"
        assert metadata["testFilesCount"] == 1


class TestProfiles:
    def test_lookup(self):
        assert get_profile("complete") is COMPLETE

    def test_unknown_profile(self):
        with pytest.raises(KeyError):
            get_profile("summarize")

    def test_analysis_floor_stricter_than_completion(self):
        assert ANALYZE.min_content_chars > COMPLETE.min_content_chars
        assert ANALYZE.options.timeout_ms > COMPLETE.options.timeout_ms
