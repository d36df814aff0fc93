# tests/prompts/test_prompts.py

import pytest
from pathlib import Path

from src.models.prompts import PromptManager, PromptConfig


PROJECT_PROMPTS = Path(__file__).resolve().parents[2] / "prompts"


@pytest.fixture
def temp_prompts_dir(tmp_path):
    """Create a temporary prompts directory with test data"""
    prompts_path = tmp_path / "prompts"

    identify_v1 = prompts_path / "classification" / "identify" / "v1"
    identify_v1.mkdir(parents=True)
    (identify_v1 / "system.j2").write_text("You are a botanist.")
    (identify_v1 / "user.j2").write_text("What {{ kind }} is this?")

    # user template only, no system prompt
    coarse_v1 = prompts_path / "classification" / "coarse" / "v1"
    coarse_v1.mkdir(parents=True)
    (coarse_v1 / "user.j2").write_text("Plant, fungus or else?\n")

    # missing user template
    broken_v1 = prompts_path / "broken" / "v1"
    broken_v1.mkdir(parents=True)
    (broken_v1 / "system.j2").write_text("orphan system prompt")

    return prompts_path


@pytest.fixture
def manager(temp_prompts_dir):
    """Create a PromptManager with test data"""
    return PromptManager(temp_prompts_dir)


# ============ Prompt Loading Tests ============

class TestPromptLoading:
    def test_load_prompt_with_system_template(self, manager):
        """Load a prompt that has both templates"""
        config = manager.load_prompt("classification/identify@v1")

        assert isinstance(config, PromptConfig)
        assert config.name == "classification/identify"
        assert config.version == "v1"
        assert config.ref == "classification/identify@v1"
        assert config.system_template == "You are a botanist."
        assert "{{ kind }}" in config.user_template

    def test_load_prompt_without_system_template(self, manager):
        """The system template is optional"""
        config = manager.load_prompt("classification/coarse@v1")
        assert config.system_template is None

    def test_prompt_is_cached(self, manager):
        first = manager.load_prompt("classification/coarse@v1")
        assert manager.load_prompt("classification/coarse@v1") is first

    def test_invalid_reference_without_version(self, manager):
        with pytest.raises(ValueError, match="Invalid prompt reference"):
            manager.load_prompt("classification/coarse")

    def test_unknown_prompt(self, manager):
        with pytest.raises(FileNotFoundError, match="Prompt not found"):
            manager.load_prompt("classification/coarse@v9")

    def test_missing_user_template(self, manager):
        with pytest.raises(FileNotFoundError, match="user.j2"):
            manager.load_prompt("broken@v1")

    def test_missing_prompts_dir(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            PromptManager(tmp_path / "does-not-exist")


# ============ Rendering Tests ============

class TestPromptRendering:
    def test_render_user_only(self, manager):
        messages = manager.render("classification/coarse@v1", {})
        assert messages == [{"role": "user", "content": "Plant, fungus or else?"}]

    def test_render_with_system_and_variables(self, manager):
        messages = manager.render("classification/identify@v1", {"kind": "fungus"})
        assert messages == [
            {"role": "system", "content": "You are a botanist."},
            {"role": "user", "content": "What fungus is this?"},
        ]

    def test_render_missing_variable(self, manager):
        with pytest.raises(ValueError, match="Missing required variable"):
            manager.render("classification/identify@v1", {})


# ============ Shipped Prompts ============

class TestShippedPrompts:
    """The prompts under prompts/ must render with the variables the pipeline passes"""

    @pytest.fixture
    def shipped(self):
        return PromptManager(PROJECT_PROMPTS)

    def test_coarse_prompt_asks_for_three_labels(self, shipped):
        messages = shipped.render("classification/coarse@v1", {})
        assert len(messages) == 1
        content = messages[0]["content"]
        assert "plant, fungus, else" in content

    @pytest.mark.parametrize("kind", ["plant", "fungus"])
    def test_identify_prompt_mentions_kind_and_fields(self, shipped, kind):
        content = shipped.render("classification/identify@v1", {"kind": kind})[0]["content"]
        assert f"What {kind} is this?" in content
        for field in ("common name", "scientific name", "wikipedia link", "basic information"):
            assert field in content
        assert '"None"' in content
