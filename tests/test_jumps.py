import sys
import unittest
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from lesson_wordimport.datamodel import NEXT_PAGE, THIS_PAGE, Answer, JumpTarget, NamedJump, QuestionType
from lesson_wordimport.errors import UnresolvedJump
from lesson_wordimport.jumps import JumpLinkResolver
from lesson_wordimport.localization import Localizer, StringTable

PREVIOUS_PAGE = JumpTarget.named_jump(NamedJump.PREVIOUS_PAGE)
END_OF_LESSON = JumpTarget.named_jump(NamedJump.END_OF_LESSON)


class EchoLocalizer(Localizer):
    def localize(self, key, component="lesson"):
        return f"{component}:{key}"


class JumpLinkResolverTests(unittest.TestCase):
    def setUp(self):
        self.localizer = StringTable.load()
        self.resolver = JumpLinkResolver({7: "Page Seven"}, self.localizer)

    def test_matching_uses_page_title(self):
        link = self.resolver.resolve(Answer(jump=JumpTarget.page(7)), QuestionType.MATCHING)
        self.assertEqual(link.text, "Page Seven")
        self.assertEqual(link.fragment, "7")
        self.assertTrue(link.resolved)

    def test_short_answer_without_feedback_uses_localised_jump_name(self):
        link = self.resolver.resolve(Answer(text="cat", jump=PREVIOUS_PAGE), QuestionType.SHORT_ANSWER)
        self.assertEqual(link.text, self.localizer.localize("previouspage"))
        self.assertEqual(link.text, "Previous page")
        self.assertEqual(link.fragment, "previouspage")

    def test_short_answer_feedback_becomes_label(self):
        answer = Answer(text="cat", feedback="Well done", jump=JumpTarget.page(7))
        link = self.resolver.resolve(answer, QuestionType.SHORT_ANSWER)
        self.assertEqual(link.text, "Well done")
        self.assertEqual(link.fragment, "7")

    def test_numerical_without_feedback_uses_page_title(self):
        link = self.resolver.resolve(Answer(text="42", jump=JumpTarget.page(7)), QuestionType.NUMERICAL)
        self.assertEqual(link.text, "Page Seven")

    def test_essay_labels_named_jump(self):
        link = self.resolver.resolve(Answer(jump=END_OF_LESSON), QuestionType.ESSAY)
        self.assertEqual(link.text, "End of lesson")
        self.assertEqual(link.fragment, "endoflesson")

    def test_multichoice_keeps_answer_text(self):
        link = self.resolver.resolve(Answer(text="Paris", jump=NEXT_PAGE), QuestionType.MULTI_CHOICE)
        self.assertEqual(link.text, "Paris")
        self.assertEqual(link.href, "#nextpage")

    def test_this_page_is_named(self):
        link = self.resolver.resolve(Answer(text="Retry", jump=THIS_PAGE), QuestionType.TRUE_FALSE)
        self.assertEqual(link.fragment, "thispage")

    def test_labels_come_from_the_localizer(self):
        resolver = JumpLinkResolver({}, EchoLocalizer())
        link = resolver.resolve(Answer(jump=NEXT_PAGE), QuestionType.ESSAY)
        self.assertEqual(link.text, "lesson:nextpage")

    def test_missing_page_degrades_to_placeholder(self):
        with self.assertWarns(UnresolvedJump):
            link = self.resolver.resolve(Answer(jump=JumpTarget.page(99)), QuestionType.MATCHING)
        self.assertEqual(link.text, "99")
        self.assertEqual(link.fragment, "99")
        self.assertFalse(link.resolved)

    def test_unknown_negative_code_degrades_to_placeholder(self):
        with self.assertWarns(UnresolvedJump):
            link = self.resolver.resolve(Answer(jump=JumpTarget.from_code(-55)), QuestionType.ESSAY)
        self.assertEqual(link.fragment, "-55")

    def test_unresolved_answer_text_label_is_kept(self):
        with self.assertWarns(UnresolvedJump):
            link = self.resolver.resolve(
                Answer(text="Go", jump=JumpTarget.page(99)), QuestionType.MULTI_CHOICE
            )
        self.assertEqual(link.text, "Go")
        self.assertEqual(link.fragment, "99")

    def test_label_for_unknown_page_is_none(self):
        self.assertIsNone(self.resolver.label_for(JumpTarget.page(99)))
        self.assertEqual(self.resolver.label_for(JumpTarget.page(7)), "Page Seven")

    def test_markup_is_wrapped_in_cdata(self):
        link = self.resolver.resolve(Answer(jump=JumpTarget.page(7)), QuestionType.MATCHING)
        self.assertEqual(link.to_markup(), '<![CDATA[<a href="#7">Page Seven</a>]]>')

    def test_markup_splits_cdata_terminator(self):
        link = self.resolver.resolve(Answer(text="a]]>b", jump=NEXT_PAGE), QuestionType.MULTI_CHOICE)
        self.assertIn("]]]]><![CDATA[>", link.to_markup())


class StringTableTests(unittest.TestCase):
    def test_missing_strings_use_marker(self):
        self.assertEqual(StringTable.load().localize("nosuchstring"), "[[nosuchstring]]")

    def test_partial_language_falls_back_to_english(self):
        table = StringTable.load("fr")
        self.assertEqual(table.language, "fr")
        self.assertNotEqual(table.localize("nextpage"), "[[nextpage]]")
        self.assertEqual(
            table.localize("pluginname", "local_lesson_wordimport"),
            StringTable.load().localize("pluginname", "local_lesson_wordimport"),
        )

    def test_localizer_contract_must_be_implemented(self):
        class Incomplete(Localizer):
            pass

        with self.assertRaises(TypeError):
            Incomplete()

    def test_unknown_language_uses_english(self):
        table = StringTable.load("xx")
        self.assertEqual(table.language, "en")
        self.assertEqual(table.localize("nextpage"), "Next page")


if __name__ == "__main__":
    unittest.main()
