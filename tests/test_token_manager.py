# Test suite for the token budget policy

import pytest

from vibey.agent.context.token_manager import TRUNCATION_MARKER, TokenManager
from vibey.agent.structs import TokenBudget, TokenUsage, Usage
from vibey.exceptions.context import ContextOverflowError


def file_section(path: str, size: int = 400) -> str:
    return f'<file path="{path}">\n' + "x" * size + "\n</file>\n"


@pytest.fixture
def manager():
    return TokenManager(
        TokenBudget(max_tokens=1000, warning_threshold=800, request_timeout=30),
        response_reserve=200,
    )


class TestBudgetQuestions:
    """Threshold and arithmetic checks"""

    def test_calculate_usage_counts_each_part(self, manager):
        usage = manager.calculate_usage("s" * 40, "c" * 400, "u" * 8, "t" * 4)
        assert (usage.system_prompt, usage.context, usage.user_message, usage.tool_results) == (
            10,
            100,
            2,
            1,
        )
        assert usage.total == 113

    def test_thresholds_are_strict(self, manager):
        assert not manager.is_approaching_limit(800)
        assert manager.is_approaching_limit(801)
        assert not manager.is_exceeded(1000)
        assert manager.is_exceeded(1001)

    def test_remaining_and_percentage(self, manager):
        assert manager.get_remaining_tokens(250) == 750
        assert manager.get_remaining_tokens(5000) == 0
        assert manager.get_usage_percentage(500) == 50

    def test_status_label(self, manager):
        assert manager.status_label(10) == "✅ OK"
        assert manager.status_label(900) == "⚠️ WARNING"
        assert manager.status_label(1200) == "❌ EXCEEDED"

    def test_max_context_size_subtracts_fixed_parts(self, manager):
        assert manager.calculate_max_context_size(100, 50) == 650
        assert manager.calculate_max_context_size(100, 50, response_reserve=0) == 850
        assert manager.calculate_max_context_size(900, 900) == 0

    def test_from_settings_derives_warning_threshold(self, settings):
        manager = TokenManager.from_settings(settings)
        assert manager.budget.max_tokens == 32768
        assert manager.budget.warning_threshold == int(32768 * 0.8)

    def test_rejects_non_positive_budget(self):
        with pytest.raises(ContextOverflowError):
            TokenManager(TokenBudget(max_tokens=0, warning_threshold=0, request_timeout=1))

    def test_budget_is_read_only(self, manager):
        with pytest.raises(Exception):
            manager.budget.max_tokens = 5


class TestTruncation:
    """Section dropping and hard cuts"""

    def test_context_within_budget_is_untouched(self, manager):
        block = "\n\n<context>\n" + file_section("a.py") + "</context>\n"
        result = manager.truncate_context(block, 0, 0, max_context_tokens=500)
        assert result.truncated == block
        assert not result.was_exceeded
        assert result.removed_tokens == 0

    def test_drops_oldest_sections_first(self, manager):
        block = (
            "\n\n<context>\n"
            + file_section("first.py")
            + file_section("second.py")
            + file_section("third.py")
            + "</context>\n"
        )
        result = manager.truncate_context(block, 0, 0, max_context_tokens=150)

        assert result.was_exceeded
        assert result.removed_sections == 2
        assert "first.py" not in result.truncated
        assert "second.py" not in result.truncated
        assert 'path="third.py"' in result.truncated
        assert "2 earlier context section(s) removed" in result.truncated
        assert result.truncated.endswith("</context>\n")
        assert manager.count_tokens(result.truncated) <= 150

    def test_hard_cut_when_single_section_is_too_large(self, manager):
        text = "\n".join(f"line {i} " + "y" * 30 for i in range(200))
        result = manager.truncate_context(text, 0, 0, max_context_tokens=100)

        assert result.was_exceeded
        assert result.truncated.endswith(TRUNCATION_MARKER)
        assert manager.count_tokens(result.truncated) <= 100
        assert result.removed_tokens > 0

    def test_default_limit_uses_remaining_budget(self, manager):
        block = "z" * 8000
        result = manager.truncate_context(block, system_prompt_tokens=100, user_message_tokens=100)
        assert manager.count_tokens(result.truncated) <= 600


class TestReporting:
    """Human-readable reports"""

    def test_format_token_report(self, manager):
        usage = TokenUsage(system_prompt=100, context=200, user_message=50, tool_results=0)
        report = manager.format_token_report(usage)
        assert "Total Used: 350 tokens" in report
        assert "Max Available: 1000 tokens" in report
        assert "Usage: 35%" in report
        assert "Remaining: 650 tokens" in report
        assert "Status" not in report
        assert "Status: ✅ OK" in manager.format_token_report(usage, with_status=True)

    def test_usage_meter_has_twenty_blocks(self, manager):
        meter = manager.create_context_usage_meter(500)
        assert "█" * 10 + "░" * 10 in meter
        assert "50%" in meter
        assert "(500/1000 tokens)" in meter

    def test_usage_meter_caps_at_full_bar(self, manager):
        meter = manager.create_context_usage_meter(5000)
        assert "█" * 20 in meter
        assert "EXCEEDED" in meter

    def test_continuation_summary_mentions_removed_tokens(self, manager):
        summary = manager.create_continuation_summary(10, "wrote the parser")
        assert "Removed 10 tokens" in summary
        assert "wrote the parser" in summary

    def test_cumulative_usage(self, manager):
        manager.record_usage(Usage(10, 5, 15))
        manager.record_usage(Usage(20, 5, 25))
        assert manager.cumulative_usage.total_tokens == 40
        assert manager.cumulative_usage.prompt_tokens == 30

        manager.reset_cumulative_usage()
        assert manager.cumulative_usage.total_tokens == 0
