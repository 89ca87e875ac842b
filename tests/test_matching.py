from vocabdrill.matching import (
    CYRILLIC_TO_LATIN,
    MatchResult,
    fuzzy_match,
    levenshtein,
    normalize,
    transliterate_serbian_cyrillic_to_latin,
)


def test_normalize_trims_lowercases_and_collapses_whitespace() -> None:
    assert normalize("  Hello   World\t\n") == "hello world"
    assert normalize("") == ""
    assert normalize("   ") == ""


def test_levenshtein_known_distances() -> None:
    cases = [
        ("hello", "hello", 0),
        ("cat", "bat", 1),
        ("cat", "cats", 1),
        ("", "abc", 3),
        ("abc", "", 3),
        ("kitten", "sitting", 3),
        ("flaw", "lawn", 2),
    ]
    for left, right, expected in cases:
        assert levenshtein(left, right) == expected


def test_levenshtein_is_symmetric_and_bounded() -> None:
    words = ["house", "mouse", "horse", "hose", "", "houses"]
    for left in words:
        for right in words:
            distance = levenshtein(left, right)
            assert distance == levenshtein(right, left)
            assert distance <= max(len(left), len(right))
            assert distance >= abs(len(left) - len(right))
            for middle in words:
                assert distance <= levenshtein(left, middle) + levenshtein(middle, right)


def test_levenshtein_compares_normalized_text() -> None:
    assert levenshtein("  HELLO ", "hello") == 0


def test_fuzzy_match_close_and_exact() -> None:
    assert fuzzy_match("helo", "hello", 2) == MatchResult(exact=False, close=True, distance=1)
    assert fuzzy_match("HELLO", "hello", 2) == MatchResult(exact=True, close=True, distance=0)


def test_fuzzy_match_rejects_distant_answer() -> None:
    result = fuzzy_match("xyz", "hello")
    assert result.exact is False
    assert result.close is False
    assert result.distance == 5


def test_fuzzy_match_respects_max_distance() -> None:
    assert fuzzy_match("hllo", "hello", 0).close is False
    assert fuzzy_match("hlo", "hello", 2).close is True
    assert fuzzy_match("hlo", "hello", 1).close is False


def test_transliterate_city_name() -> None:
    assert transliterate_serbian_cyrillic_to_latin("београд") == "beograd"


def test_transliterate_digraphs_and_diacritics() -> None:
    assert transliterate_serbian_cyrillic_to_latin("љ") == "lj"
    assert transliterate_serbian_cyrillic_to_latin("њ") == "nj"
    assert transliterate_serbian_cyrillic_to_latin("џ") == "dž"
    assert transliterate_serbian_cyrillic_to_latin("ђ") == "đ"
    assert transliterate_serbian_cyrillic_to_latin("ћ") == "ć"
    assert transliterate_serbian_cyrillic_to_latin("шжчц") == "šžčc"
    assert transliterate_serbian_cyrillic_to_latin("љубав") == "ljubav"


def test_transliterate_preserves_case() -> None:
    assert transliterate_serbian_cyrillic_to_latin("Београд") == "Beograd"
    assert transliterate_serbian_cyrillic_to_latin("Љиљана") == "Ljiljana"
    assert transliterate_serbian_cyrillic_to_latin("Џеп") == "Džep"


def test_transliterate_passes_other_characters_through() -> None:
    assert transliterate_serbian_cyrillic_to_latin("hello") == "hello"
    assert transliterate_serbian_cyrillic_to_latin("123 -!") == "123 -!"
    # Russian-only letters are not part of the Serbian alphabet.
    assert transliterate_serbian_cyrillic_to_latin("ы") == "ы"


def test_transliteration_table_covers_serbian_alphabet() -> None:
    assert len(CYRILLIC_TO_LATIN) == 30
