"""
Tests for the Text Analyzer
===========================
Word frequency, statistics, summaries and sentence profile.
"""

import pytest

from textforge import Document, TextAnalyzer, TextStatistics, ProcessingError
from textforge.analyzer import split_sentences, split_paragraphs, split_words


@pytest.fixture
def analyzer() -> TextAnalyzer:
    return TextAnalyzer()


@pytest.fixture
def sample_doc() -> Document:
    return Document("sample", "The cat sat. The dog sat.")


class TestWordFrequency:
    """Tests for word_frequency and top_words."""

    def test_case_folded_counts(self, analyzer, sample_doc):
        assert analyzer.word_frequency(sample_doc) == {'the': 2, 'cat': 1, 'sat': 2, 'dog': 1}

    def test_empty_document(self, analyzer):
        assert analyzer.word_frequency(Document("e", "")) == {}

    def test_punctuation_only(self, analyzer):
        assert analyzer.word_frequency(Document("p", "... !!! ---")) == {}

    def test_top_words_sorted_by_count_then_word(self, analyzer, sample_doc):
        assert analyzer.top_words(sample_doc, 3) == [('sat', 2), ('the', 2), ('cat', 1)]

    def test_top_words_zero_limit(self, analyzer, sample_doc):
        assert analyzer.top_words(sample_doc, 0) == []


class TestStatistics:
    """Tests for statistics()."""

    def test_basic_counts(self, analyzer):
        doc = Document("s", "Hello world. How are you?\n\nFine!")
        stats = analyzer.statistics(doc)
        assert isinstance(stats, TextStatistics)
        assert stats.total_characters == len(doc.content)
        assert stats.total_words == 6
        assert stats.total_sentences == 3
        assert stats.total_paragraphs == 2

    def test_whitespace_only_line_counts_as_blank(self, analyzer):
        doc = Document("s", "First para.\n   \t\nSecond para.\n\n\n\nThird.")
        assert analyzer.statistics(doc).total_paragraphs == 3

    def test_word_length_distribution(self, analyzer):
        stats = analyzer.statistics(Document("s", "a bb cc ddd"))
        assert stats.word_length_distribution == {1: 1, 2: 2, 3: 1}

    def test_character_frequency_is_case_folded(self, analyzer):
        stats = analyzer.statistics(Document("s", "Aa b!"))
        assert stats.character_frequency == {'a': 2, ' ': 1, 'b': 1, '!': 1}

    def test_empty_document(self, analyzer):
        stats = analyzer.statistics(Document("s", ""))
        assert stats.total_words == 0
        assert stats.total_sentences == 0
        assert stats.total_paragraphs == 0
        assert stats.character_frequency == {}

    def test_to_dict(self, analyzer, sample_doc):
        data = analyzer.statistics(sample_doc).to_dict()
        assert data['total_words'] == 6
        assert data['word_length_distribution'] == {'3': 6}


class TestSentenceSplitting:
    """Tests for the sentence, word and paragraph definitions."""

    def test_terminator_runs_stay_with_sentence(self):
        assert split_sentences("Wait... What?! Ok.") == ["Wait...", " What?!", " Ok."]

    def test_trailing_text_without_terminator_is_not_a_sentence(self):
        assert split_sentences("One. Two") == ["One."]

    def test_split_words(self):
        assert split_words("it's a re-run") == ["it", "s", "a", "re", "run"]

    def test_split_paragraphs_ignores_blank_chunks(self):
        assert split_paragraphs("\n\n  \n\nA\n\nB\n\n") == ["A", "B"]


class TestSummarize:
    """Tests for the leading-sentence summary."""

    def test_first_n_sentences(self, analyzer):
        doc = Document("s", "One.  Two!   Three? Four.")
        assert analyzer.summarize(doc, 2) == "One. Two!"

    @pytest.mark.parametrize("n", [4, 5, 100])
    def test_n_at_least_sentence_count_returns_all(self, analyzer, n):
        doc = Document("s", "One.\nTwo!\n  Three? Four.")
        assert analyzer.summarize(doc, n) == "One. Two! Three? Four."

    @pytest.mark.parametrize("n", [0, -1])
    def test_non_positive_is_empty(self, analyzer, sample_doc, n):
        assert analyzer.summarize(sample_doc, n) == ""

    def test_default_length_comes_from_config(self, analyzer, monkeypatch):
        from textforge import reset_config
        monkeypatch.setenv('TEXTFORGE_SUMMARY_SENTENCES', '1')
        reset_config()
        assert analyzer.summarize(Document("s", "One. Two.")) == "One."


class TestSentenceStructure:
    """Tests for sentence_structure()."""

    def test_profile(self):
        analyzer = TextAnalyzer(long_sentence_words=3)
        doc = Document("s", "One two. One two three four. Five.")
        profile = analyzer.sentence_structure(doc)
        assert profile.sentence_count == 3
        assert profile.longest_words == 4
        assert profile.shortest_words == 1
        assert profile.average_words == pytest.approx(2.33, abs=0.01)
        assert profile.long_sentence_count == 1

    def test_no_sentences(self, analyzer):
        profile = analyzer.sentence_structure(Document("s", "no terminator"))
        assert profile.sentence_count == 0
        assert profile.to_dict()['average_words'] == 0.0


class TestErrorWrapping:
    """Unexpected failures surface as ProcessingError."""

    def test_non_document_input(self, analyzer):
        with pytest.raises(ProcessingError) as exc_info:
            analyzer.word_frequency("not a document")
        assert exc_info.value.stage == 'word_frequency'
        assert isinstance(exc_info.value.__cause__, AttributeError)
