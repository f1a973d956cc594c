import pytest

from nl2sql.prompts.loader import PromptLoader, split_front_matter


def test_prompt_loader_strips_front_matter():
    loader = PromptLoader()
    content = loader.load("direct/system.md")
    assert not content.startswith("---")
    assert "QUERY GENERATION RULES" in content


def test_prompt_loader_reads_metadata():
    loader = PromptLoader()
    metadata = loader.get_metadata("agent/system.md")
    assert metadata["name"] == "agent_system"
    assert "actions" in metadata["variables"]


def test_prompt_loader_renders_template():
    loader = PromptLoader()
    rendered = loader.render("direct/user.md", prompt="count all contacts")
    assert rendered == "Question: count all contacts\n\nReturn ONLY the SQL for PostgreSQL."


def test_prompt_loader_missing_variable_is_an_error():
    loader = PromptLoader()
    with pytest.raises(Exception, match="prompt"):
        loader.render("direct/user.md")


def test_prompt_loader_missing_template():
    loader = PromptLoader()
    with pytest.raises(FileNotFoundError):
        loader.load("direct/missing.md")
    with pytest.raises(FileNotFoundError):
        loader.render("direct/missing.md")


def test_prompt_loader_custom_directory(tmp_path):
    (tmp_path / "custom").mkdir()
    (tmp_path / "custom" / "hello.md").write_text("---\nname: hello\n---\nHi {{ who }}\n")

    loader = PromptLoader(tmp_path)

    assert loader.render("custom/hello.md", who="there") == "Hi there"
    assert loader.get_metadata("custom/hello.md") == {"name": "hello"}


def test_split_front_matter_without_header():
    assert split_front_matter("SELECT 1") == ({}, "SELECT 1")
