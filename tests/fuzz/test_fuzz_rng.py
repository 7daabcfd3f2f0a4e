"""Tests for the seeded PRNG and evil string corpus."""

import pytest

from gremlin.fuzz.corpus import EVIL_STRINGS, describe_evil_string
from gremlin.fuzz.rng import MODULUS, SeededRandom


class TestSeededRandom:
    """Tests for SeededRandom."""

    def test_known_sequence(self):
        """Test the first outputs of the LCG for a fixed seed."""
        rng = SeededRandom(42)

        assert rng.random() == 1083814273 / 2**32
        assert rng.state == 1083814273

    def test_same_seed_same_sequence(self):
        """Test reproducibility."""
        first = SeededRandom(1234)
        second = SeededRandom(1234)

        assert [first.random() for _ in range(50)] == [second.random() for _ in range(50)]

    def test_different_seeds_differ(self):
        """Test that seeds change the sequence."""
        assert SeededRandom(1).random() != SeededRandom(2).random()

    def test_seed_normalised(self):
        """Test that seeds are taken modulo 2**32."""
        assert SeededRandom(-1).random() == SeededRandom(MODULUS - 1).random()
        assert SeededRandom(MODULUS + 5).random() == SeededRandom(5).random()

    def test_range(self):
        """Test that outputs stay in [0, 1)."""
        rng = SeededRandom(7)

        values = [rng.random() for _ in range(1000)]

        assert all(0 <= v < 1 for v in values)

    def test_randint_below(self):
        """Test integer draws stay in range."""
        rng = SeededRandom(99)

        draws = {rng.randint_below(3) for _ in range(200)}

        assert draws == {0, 1, 2}

    def test_choice(self):
        """Test choice returns a member."""
        rng = SeededRandom(5)

        assert rng.choice(["a", "b", "c"]) in {"a", "b", "c"}

    def test_shuffle_is_permutation(self):
        """Test that shuffle returns a new list with the same items."""
        rng = SeededRandom(11)
        items = list(range(20))

        shuffled = rng.shuffle(items)

        assert sorted(shuffled) == items
        assert items == list(range(20))

    def test_shuffle_reproducible(self):
        """Test that shuffles repeat for the same seed."""
        assert SeededRandom(3).shuffle("abcdef") == SeededRandom(3).shuffle("abcdef")


class TestEvilStrings:
    """Tests for the evil string corpus."""

    def test_corpus_contents(self):
        """Test that the corpus covers the main abuse families."""
        assert "" in EVIL_STRINGS
        assert "A" * 10000 in EVIL_STRINGS
        assert "\u0000" in EVIL_STRINGS
        assert "\u202e" in EVIL_STRINGS
        assert len(EVIL_STRINGS) == 26

    @pytest.mark.parametrize(
        "value,label",
        [
            ("", "empty string"),
            ("A" * 1000, "very long string (1000 chars)"),
            ('<script>alert("xss")</script>', "XSS attempt"),
            ('"; DROP TABLE users; --', "SQL injection"),
            ("../../../etc/passwd", "path traversal"),
            ("🔥💩🎉👻🤖", "emoji string"),
            ("你好世界", "unicode string"),
            ("\n\n\n", "multiline string"),
            ("${7*7}", '"${7*7}"'),
            ("\\", '"\\\\"'),
        ],
    )
    def test_describe(self, value, label):
        """Test labels for representative corpus entries."""
        assert describe_evil_string(value) == label
