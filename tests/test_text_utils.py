from __future__ import annotations

from pathlib import Path
import sys
import unittest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from advisor.services.text_utils import (
    STOPWORDS,
    calculate_similarity,
    extract_keywords,
    generate_conversation_summary,
    get_bilingual_text,
    truncate_text,
)


class TestExtractKeywords(unittest.TestCase):
    def test_drops_stopwords_and_short_tokens(self) -> None:
        keywords = extract_keywords("The quick brown fox jumps over the lazy dog", "en")
        self.assertNotIn("the", keywords)
        self.assertNotIn("over", keywords)
        self.assertEqual(keywords, ["quick", "brown", "fox", "jumps", "lazy", "dog"])

    def test_no_duplicates_and_no_stopwords(self) -> None:
        text = "Hybrid SUV, hybrid suv!! with AWD and the best hybrid mileage for winter"
        keywords = extract_keywords(text, "en")
        self.assertEqual(len(keywords), len(set(keywords)))
        self.assertFalse(set(keywords) & STOPWORDS["en"])
        self.assertEqual(keywords[:3], ["hybrid", "suv", "awd"])

    def test_punctuation_becomes_whitespace(self) -> None:
        self.assertEqual(extract_keywords("budget:30000,cad;sedan", "en"), ["budget", "30000", "cad", "sedan"])

    def test_chinese_stopwords(self) -> None:
        keywords = extract_keywords("为什么 混合动力 越野车 为什么", "zh")
        self.assertEqual(keywords, ["混合动力", "越野车"])
        self.assertFalse(set(keywords) & STOPWORDS["zh"])

    def test_empty_text(self) -> None:
        self.assertEqual(extract_keywords("", "en"), [])


class TestCalculateSimilarity(unittest.TestCase):
    def test_identical_strings(self) -> None:
        self.assertEqual(calculate_similarity("family suv", "family suv"), 1)

    def test_empty_string(self) -> None:
        self.assertEqual(calculate_similarity("", "anything"), 0)
        self.assertEqual(calculate_similarity("anything", ""), 0)

    def test_jaccard_index(self) -> None:
        self.assertAlmostEqual(calculate_similarity("toyota camry sedan", "honda civic sedan"), 0.2)

    def test_case_insensitive(self) -> None:
        self.assertEqual(calculate_similarity("Honda Civic", "honda civic"), 1)

    def test_whitespace_only(self) -> None:
        self.assertEqual(calculate_similarity("   ", "  "), 0)


class TestConversationSummary(unittest.TestCase):
    def test_summarizes_user_messages_only(self) -> None:
        messages = [
            {"role": "user", "content": "Looking for a reliable hybrid SUV"},
            {"role": "assistant", "content": "Consider the Toyota RAV4 hybrid"},
            {"role": "user", "content": "Budget around 40000 CAD"},
        ]
        summary = generate_conversation_summary(messages, "en")
        self.assertEqual(summary, "User inquired about reliable, hybrid, suv, budget, around")
        self.assertNotIn("toyota", summary)

    def test_no_user_messages(self) -> None:
        messages = [{"role": "assistant", "content": "Hello"}]
        self.assertEqual(generate_conversation_summary(messages, "en"), "No user input yet")
        self.assertEqual(generate_conversation_summary([], "zh"), "暂无用户输入")

    def test_user_messages_without_keywords(self) -> None:
        messages = [{"role": "user", "content": "hi"}, {"role": "user", "content": "ok?"}]
        self.assertEqual(generate_conversation_summary(messages, "en"), "No user input yet")
        self.assertEqual(generate_conversation_summary(messages, "zh"), "暂无用户输入")

    def test_chinese_template(self) -> None:
        summary = generate_conversation_summary([{"role": "user", "content": "混合动力 越野车"}], "zh")
        self.assertEqual(summary, "用户咨询了关于混合动力、越野车的问题")


class TestBilingualHelpers(unittest.TestCase):
    def test_get_bilingual_text_fallback_chain(self) -> None:
        self.assertEqual(get_bilingual_text({"en": "A", "zh": "甲"}, "zh"), "甲")
        self.assertEqual(get_bilingual_text({"en": "A", "zh": ""}, "zh"), "A")
        self.assertEqual(get_bilingual_text({"en": "", "zh": "甲"}, "en"), "甲")
        self.assertEqual(get_bilingual_text(None, "en"), "")

    def test_truncate_text(self) -> None:
        self.assertEqual(truncate_text("short", 10), "short")
        self.assertEqual(truncate_text("a long sentence", 8), "a lon...")


if __name__ == "__main__":
    unittest.main()
