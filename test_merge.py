import unittest
from unittest.mock import AsyncMock, Mock

from data_analyzer.merge import (
    Language,
    detect_language,
    merge_analysis,
    merge_conversation,
    refine_response,
)
from data_analyzer.models import (
    AggregateFailure,
    AnalysisResult,
    Chart,
    Failure,
    Success,
    Unavailable,
)
from data_analyzer.providers import ProviderClient


def make_result(prefix, n_insights, n_explanations, n_charts, summary=None):
    return AnalysisResult(
        summary=summary if summary is not None else f"{prefix} summary",
        insights=[f"{prefix} insight {i}" for i in range(n_insights)],
        explanations=[f"{prefix} explanation {i}" for i in range(n_explanations)],
        charts=[Chart(id=f"{prefix}{i}", title=f"{prefix} chart {i}", type="bar") for i in range(n_charts)],
    )


class TestDetectLanguage(unittest.TestCase):

    def test_kurdish(self):
        self.assertEqual(detect_language("سڵاو، چۆنی؟"), Language.KURDISH)

    def test_arabic(self):
        self.assertEqual(detect_language("مرحبا كيف حالك"), Language.ARABIC)

    def test_english(self):
        self.assertEqual(detect_language("Hello there"), Language.ENGLISH)

    def test_arabic_script_wins_over_latin(self):
        self.assertEqual(detect_language("Revenue فرۆشتن"), Language.KURDISH)

    def test_unknown(self):
        self.assertEqual(detect_language(""), Language.UNKNOWN)
        self.assertEqual(detect_language("12345 !!"), Language.UNKNOWN)


class TestMergeAnalysis(unittest.TestCase):

    def test_union_keeps_every_item_in_order(self):
        primary = make_result("a", 2, 3, 3)
        secondary = make_result("b", 4, 1, 4)

        merged = merge_analysis(primary, secondary)

        self.assertEqual(len(merged.insights), 6)
        self.assertEqual(len(merged.explanations), 4)
        self.assertEqual([c.id for c in merged.charts], ["a0", "a1", "a2", "b0", "b1", "b2", "b3"])
        self.assertEqual(merged.insights[:2], primary.insights)
        self.assertEqual(merged.insights[2:], secondary.insights)

    def test_duplicates_are_not_removed(self):
        primary = make_result("x", 2, 0, 0)
        secondary = make_result("x", 2, 0, 0)

        merged = merge_analysis(primary, secondary)

        self.assertEqual(merged.insights, ["x insight 0", "x insight 1", "x insight 0", "x insight 1"])

    def test_secondary_summary_is_attributed(self):
        merged = merge_analysis(make_result("a", 0, 0, 0), make_result("b", 0, 0, 0), secondary_label="Claude")
        self.assertEqual(merged.summary, "a summary\n\n**Claude's Perspective:** b summary")

    def test_secondary_summary_adopted_without_primary_summary(self):
        merged = merge_analysis(make_result("a", 1, 0, 0, summary=""), make_result("b", 0, 0, 0))
        self.assertEqual(merged.summary, "b summary")

    def test_only_primary(self):
        primary = make_result("a", 2, 2, 3)
        merged = merge_analysis(primary, None)
        self.assertEqual(merged, primary)

    def test_only_secondary(self):
        secondary = make_result("b", 1, 1, 4)
        merged = merge_analysis(None, secondary)
        self.assertEqual(merged.summary, "b summary")
        self.assertEqual(len(merged.charts), 4)

    def test_both_missing_is_aggregate_failure(self):
        self.assertIsInstance(merge_analysis(None, None), AggregateFailure)

    def test_inputs_are_not_mutated(self):
        primary = make_result("a", 1, 1, 1)
        merge_analysis(primary, make_result("b", 1, 1, 1))
        self.assertEqual(len(primary.insights), 1)
        self.assertEqual(primary.summary, "a summary")


class TestMergeConversation(unittest.TestCase):

    def test_longer_answer_wins_above_ratio(self):
        short, long = "a" * 100, "b" * 160
        self.assertEqual(merge_conversation(short, long, "question"), long)
        self.assertEqual(merge_conversation(long, short, "question"), long)

    def test_similar_lengths_are_joined(self):
        first, second = "a" * 100, "b" * 140
        self.assertEqual(merge_conversation(first, second, "question"), first + "\n\n" + second)

    def test_answer_matching_user_language_wins(self):
        english = "Sales grew steadily over the year."
        kurdish = "فرۆشتن بە شێوەیەکی بەردەوام زیادی کرد."
        self.assertEqual(merge_conversation(english, kurdish, "فرۆشتن چۆن بوو؟"), kurdish)
        self.assertEqual(merge_conversation(kurdish, english, "How did sales go?"), english)

    def test_no_language_match_joins_both(self):
        arabic = "زادت المبيعات بشكل مطرد."
        english = "Sales grew steadily."
        self.assertEqual(merge_conversation(arabic, english, "فرۆشتن چۆن بوو؟"), arabic + "\n\n" + english)

    def test_unknown_user_language_joins_both(self):
        english = "Sales grew steadily."
        kurdish = "فرۆشتن زیادی کرد."
        self.assertEqual(merge_conversation(english, kurdish, "???"), english + "\n\n" + kurdish)

    def test_single_answer_is_verbatim(self):
        self.assertEqual(merge_conversation(None, "only answer", "q"), "only answer")
        self.assertEqual(merge_conversation("only answer", None, "q"), "only answer")

    def test_blank_answer_counts_as_missing(self):
        self.assertEqual(merge_conversation("   ", "real answer", "q"), "real answer")

    def test_no_answers_is_aggregate_failure(self):
        self.assertIsInstance(merge_conversation(None, None, "q"), AggregateFailure)
        self.assertIsInstance(merge_conversation("", None, "q"), AggregateFailure)


def make_client(*outcomes):
    client = Mock(spec=ProviderClient)
    client.name = "OpenAI"
    client.complete = AsyncMock(side_effect=list(outcomes))
    return client


class TestRefineResponse(unittest.IsolatedAsyncioTestCase):

    async def test_short_refinement_is_rejected(self):
        client = make_client(Success("0123456789"))
        result = await refine_response(client, "merged text", "question")
        self.assertEqual(result, "merged text")

    async def test_long_refinement_is_accepted(self):
        refined = "A single cohesive answer that covers everything both providers said. " * 2
        client = make_client(Success(refined))
        result = await refine_response(client, "merged text", "question")
        self.assertEqual(result, refined)

    async def test_failure_falls_back(self):
        client = make_client(Failure("HTTP 500"))
        self.assertEqual(await refine_response(client, "merged text", "question"), "merged text")

    async def test_unavailable_falls_back(self):
        client = make_client(Unavailable())
        self.assertEqual(await refine_response(client, "merged text", "question"), "merged text")

    async def test_prompt_contains_question_and_merged_text(self):
        client = make_client(Failure("HTTP 500"))
        await refine_response(client, "merged text", "What drives revenue?")
        prompt = client.complete.call_args[0][0]
        self.assertIn("What drives revenue?", prompt.user)
        self.assertIn("merged text", prompt.user)
        self.assertFalse(prompt.json_mode)


if __name__ == "__main__":
    unittest.main()
