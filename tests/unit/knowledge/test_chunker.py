"""Tests for the text chunker."""

import pytest

from app.features.knowledge.chunker import split
from app.features.knowledge.models import Fragment


LONG_TEXT = (
    "Memora keeps every meeting searchable. The team discussed the roadmap for the next quarter. "
    "Budget questions were deferred to Friday! Who owns the migration? Nobody volunteered yet.\n"
    "Action items were assigned at the end of the call and everyone agreed on the deadlines."
)


# --- edge cases ---

@pytest.mark.parametrize("text", ["", "   ", "\n\t  \n", None])
def test_empty_input_yields_no_fragments(text):
    assert split(text) == []


def test_short_input_is_single_fragment():
    assert split("  Just one line.  ", target_size=500) == [Fragment(text="Just one line.", position=0)]


def test_input_exactly_target_size_is_single_fragment():
    text = "x" * 40
    assert split(text, target_size=40, overlap=5) == [Fragment(text=text, position=0)]


@pytest.mark.parametrize("target,overlap", [(0, 0), (-5, 0), (10, 10), (10, 15), (10, -1)])
def test_invalid_parameters(target, overlap):
    with pytest.raises(ValueError):
        split("some text", target_size=target, overlap=overlap)


# --- boundary preference ---

def test_sentence_boundaries_preferred_over_mid_word_cuts():
    fragments = split("A. B. C.", target_size=2, overlap=0)
    assert [f.text for f in fragments] == ["A.", "B.", "C."]
    assert [f.position for f in fragments] == [0, 1, 2]


def test_cuts_after_nearest_sentence_end():
    fragments = split("Hello world. Goodbye world.", target_size=15, overlap=0, boundary_window=10)
    assert [f.text for f in fragments] == ["Hello world.", "Goodbye world."]


def test_falls_back_to_whitespace_without_sentence_end():
    fragments = split("alpha beta gamma delta", target_size=12, overlap=0, boundary_window=5)
    assert [f.text for f in fragments] == ["alpha beta", "gamma delta"]


def test_hard_cut_with_overlap_when_no_boundary():
    text = "abcdefghij" * 10
    fragments = split(text, target_size=30, overlap=5, boundary_window=10)
    assert [f.text for f in fragments] == [text[0:30], text[25:55], text[50:80], text[75:100]]


# --- properties ---

def test_deterministic():
    assert split(LONG_TEXT, target_size=60, overlap=10) == split(LONG_TEXT, target_size=60, overlap=10)


def test_positions_are_contiguous_and_fragments_non_empty():
    fragments = split(LONG_TEXT, target_size=60, overlap=10)
    assert len(fragments) > 1
    assert [f.position for f in fragments] == list(range(len(fragments)))
    assert all(f.text.strip() for f in fragments)


def test_without_overlap_no_content_is_lost_or_repeated():
    fragments = split(LONG_TEXT, target_size=60, overlap=0)
    rebuilt = "".join(f.text for f in fragments)
    assert "".join(rebuilt.split()) == "".join(LONG_TEXT.split())


def test_every_fragment_is_a_slice_of_the_input():
    for fragment in split(LONG_TEXT, target_size=50, overlap=12):
        assert fragment.text in LONG_TEXT
