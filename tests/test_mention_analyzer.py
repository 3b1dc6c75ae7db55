import pytest

from brandmonitor.core.exceptions import MentionAnalysisError
from brandmonitor.core.models import Sentiment
from brandmonitor.extraction.mention_analyzer import (
    analyze_mention,
    classify_sentiment,
    sentence_position,
    split_sentences,
)


def test_first_word_mention_scores_first_position():
    text = "Acme offers project management software. It has many features."

    analysis = analyze_mention(text, "Acme")

    assert analysis.mentioned is True
    assert analysis.position == 1
    assert analysis.prominence_score == 40
    assert analysis.sentiment is Sentiment.NEUTRAL
    assert "Acme offers" in analysis.context_snippet


def test_mention_in_last_sentence_scores_late_position():
    text = (
        "Many tools exist for this job. Teams compare them on price. "
        "Some prefer open source options. Others pick Acme for its workflow."
    )

    analysis = analyze_mention(text, "Acme")

    assert analysis.position == len(split_sentences(text)) == 4
    assert analysis.prominence_score == 10
    assert analysis.sentiment is Sentiment.NEUTRAL


def test_absent_brand_is_not_mentioned():
    analysis = analyze_mention("Widgets Inc makes widgets.", "Acme")

    assert analysis.mentioned is False
    assert analysis.prominence_score == 0
    assert analysis.context_snippet == ""
    assert analysis.position is None


def test_match_is_case_insensitive():
    analysis = analyze_mention("We reviewed ACME last week.", "acme")

    assert analysis.mentioned is True


def test_positive_terms_raise_prominence_and_sentiment():
    text = "Acme is the best and most trusted option, a leading choice."

    analysis = analyze_mention(text, "Acme")

    assert set(analysis.positive_terms) == {"best", "trusted", "leading"}
    assert analysis.prominence_score == 70
    assert analysis.sentiment_score == 30
    assert analysis.sentiment is Sentiment.POSITIVE


def test_negative_terms_lower_score_and_sentiment():
    text = "Acme works, but unfortunately it is expensive."

    analysis = analyze_mention(text, "Acme")

    assert set(analysis.negative_terms) == {"but", "unfortunately", "expensive"}
    assert analysis.prominence_score == 40 - 15
    assert analysis.sentiment is Sentiment.NEGATIVE


def test_terms_outside_window_are_ignored():
    filler = "x" * 300
    text = f"The best tools are listed here {filler} and Acme is one."

    analysis = analyze_mention(text, "Acme")

    assert analysis.positive_terms == []


def test_terms_only_match_whole_words():
    analysis = analyze_mention("Acme sits atop a butter factory.", "Acme")

    assert analysis.positive_terms == []
    assert analysis.negative_terms == []


def test_prominence_is_clamped_to_100():
    text = "Acme: best top leading excellent great recommended popular trusted reliable."

    analysis = analyze_mention(text, "Acme")

    assert analysis.prominence_score == 100


def test_analysis_is_idempotent():
    text = "Consider Acme. However, it is limited. Still, Acme is popular."

    assert analyze_mention(text, "Acme") == analyze_mention(text, "Acme")


def test_empty_text_is_not_mentioned():
    assert analyze_mention("", "Acme").mentioned is False
    assert analyze_mention(None, "Acme").mentioned is False


def test_empty_brand_is_rejected():
    with pytest.raises(MentionAnalysisError):
        analyze_mention("Acme", "  ")


def test_citations_are_extracted_from_text():
    analysis = analyze_mention("See https://acme.com/pricing. Acme is fine.", "Acme")

    assert analysis.citations == ["https://acme.com/pricing"]


@pytest.mark.parametrize(
    "score, expected",
    [(16, Sentiment.POSITIVE), (15, Sentiment.NEUTRAL), (-15, Sentiment.NEUTRAL), (-16, Sentiment.NEGATIVE)],
)
def test_sentiment_threshold(score, expected):
    assert classify_sentiment(score) is expected


def test_sentence_position_skips_blank_sentences():
    text = "First one!! Second one? Third."

    assert sentence_position(text, text.index("Third")) == 3


def test_offsets_survive_text_that_changes_length_when_lowercased():
    # "İ" lowercases to two characters, shifting offsets in a lowered copy.
    text = "İ" * 300 + " Acme is here."

    analysis = analyze_mention(text, "Acme")

    assert analysis.mentioned is True
    assert "Acme is here" in analysis.context_snippet
    assert analysis.position == 1


def test_brand_domain_citation_is_recorded():
    text = "Acme is trusted. Docs: https://docs.acme.com/start and https://example.org/review."

    analysis = analyze_mention(text, "Acme", domain="acme.com")

    assert analysis.brand_citation == "https://docs.acme.com/start"


def test_domain_citation_without_mention_or_domain():
    text = "Widgets Inc is covered at https://www.acme.com/news"

    assert analyze_mention(text, "Zenith", domain="acme.com").brand_citation == "https://www.acme.com/news"
    assert analyze_mention(text, "Zenith").brand_citation is None
    assert analyze_mention(text, "Zenith", domain="notacme.com").brand_citation is None
