import json
from pathlib import Path

import pytest

from voxredact.core.errors import MalformedDefinitionError, TokenizerNotInitializedError
from voxredact.features.tokenizer.data.bpe_tokenizer import BpeTokenizer
from voxredact.features.tokenizer.data.byte_encoder import bytes_to_unicode
from voxredact.features.tokenizer.domain.models import PreTokenizerFlags, TokenizerDefinition
from voxredact.features.tokenizer.service.api import load_tokenizer, tokenizer_from_json

SPACE = "Ġ"  # byte 0x20 under the byte encoder ("Ġ")


def byte_level_json(add_prefix_space=True, nested=True):
    byte_level = {"type": "ByteLevel", "add_prefix_space": add_prefix_space}
    pre_tokenizer = {"type": "Sequence", "pretokenizers": [{"type": "Split"}, byte_level]} if nested else byte_level
    return {
        "model": {
            "type": "BPE",
            "vocab": {
                "<unk>": 0, "<s>": 1, "</s>": 2,
                SPACE: 3, "J": 4, "a": 5, "n": 6,
                SPACE + "J": 7, "an": 8, SPACE + "Jan": 9,
                "aa": 12,
            },
            "merges": [f"{SPACE} J", ["a", "n"], f"{SPACE}J an", "a a"],
        },
        "added_tokens": [{"id": 10, "content": "<<ENT>>", "special": True}],
        "pre_tokenizer": pre_tokenizer,
    }


@pytest.fixture
def prefixed():
    return tokenizer_from_json(byte_level_json(add_prefix_space=True))


@pytest.fixture
def unprefixed():
    return tokenizer_from_json(byte_level_json(add_prefix_space=False, nested=False))


# --- Byte encoder ---

def test_byte_encoder_table():
    table = bytes_to_unicode()
    assert len(table) == 256
    assert len(set(table.values())) == 256
    assert table[ord("A")] == "A"
    assert table[0] == chr(256)
    assert table[0x20] == SPACE
    assert table[0xAD] == chr(256 + 67)
    assert bytes_to_unicode() is table


# --- Byte-level BPE ---

def test_prefix_space_changes_leading_symbol(prefixed, unprefixed):
    assert prefixed.encode_word("Jan") == [9]
    assert unprefixed.encode_word("Jan") == [4, 8]


def test_merges_apply_lowest_rank_first(unprefixed):
    assert unprefixed.encode_word("nan") == [6, 8]


def test_merge_is_non_overlapping_left_to_right(unprefixed):
    assert unprefixed.encode_word("aaa") == [12, 5]
    assert unprefixed.encode_word("aaaa") == [12, 12]


def test_single_symbol_shortcut(unprefixed, prefixed):
    assert unprefixed.encode_word("a") == [5]
    assert unprefixed.encode_word("z") == [0]
    assert prefixed.encode_word("") == [3]
    assert unprefixed.encode_word("") == [0]


def test_multibyte_characters_fall_back_to_unknown(unprefixed):
    # "é" is two UTF-8 bytes, neither in the vocabulary
    assert unprefixed.encode_word("é") == [0, 0]


def test_added_token_short_circuits(prefixed):
    assert prefixed.encode_word("<<ENT>>") == [10]
    assert prefixed.special_token_id("<<ENT>>") == 10
    assert prefixed.special_token_id("</s>") == 2
    assert prefixed.special_token_id("<<missing>>") == 0


def test_encoding_is_deterministic(prefixed):
    assert prefixed.encode_word("Jannan") == prefixed.encode_word("Jannan")


def test_well_known_ids_from_angle_bracket_vocab(prefixed):
    assert (prefixed.unk_token_id, prefixed.cls_token_id, prefixed.sep_token_id) == (0, 1, 2)


def test_encode_words_wraps_with_cls_and_sep(prefixed):
    ids, word_index = prefixed.encode_words(["Jan", "<<ENT>>", "a"])
    assert ids == [1, 9, 10, 3, 5, 2]
    assert word_index == [-1, 0, 1, 2, 2, -1]


def test_added_tokens_win_over_base_vocab():
    definition = byte_level_json()
    definition["model"]["vocab"]["<<ENT>>"] = 50
    tokenizer = tokenizer_from_json(definition)

    assert tokenizer.special_token_id("<<ENT>>") == 10
    assert tokenizer.id_to_token(10) == "<<ENT>>"


def test_string_and_pair_merges_are_equivalent():
    vocab = {"a": 0, "b": 1, "ab": 2}
    flags = PreTokenizerFlags(is_byte_level_bpe=True)

    as_strings = BpeTokenizer()
    as_strings.load(vocab, ["a b"], [], flags)
    as_pairs = BpeTokenizer()
    as_pairs.load(vocab, [["a", "b"]], [], flags)

    assert as_strings.encode_word("ab") == as_pairs.encode_word("ab") == [2]


# --- WordPiece fallback ---

@pytest.fixture
def wordpiece():
    return tokenizer_from_json({
        "model": {
            "type": "WordPiece",
            "vocab": {"[UNK]": 100, "[CLS]": 101, "[SEP]": 102, "un": 3, "##aff": 4, "##able": 5, "hello": 6},
        },
        "pre_tokenizer": {"type": "BertPreTokenizer"},
    })


def test_wordpiece_whole_word(wordpiece):
    assert wordpiece.encode_word("hello") == [6]


def test_wordpiece_greedy_longest_prefix(wordpiece):
    assert wordpiece.encode_word("unaffable") == [3, 4, 5]


def test_wordpiece_unknown_advances_one_character(wordpiece):
    assert wordpiece.encode_word("unx") == [3, 100]
    assert wordpiece.encode_word("xy") == [100, 100]


def test_wordpiece_bracket_special_ids(wordpiece):
    assert (wordpiece.unk_token_id, wordpiece.cls_token_id, wordpiece.sep_token_id) == (100, 101, 102)


def test_special_ids_default_when_absent():
    tokenizer = tokenizer_from_json({"model": {"vocab": {"x": 7}}})
    assert (tokenizer.unk_token_id, tokenizer.cls_token_id, tokenizer.sep_token_id) == (0, 1, 2)


# --- Definition parsing ---

def test_flag_detection():
    nested = TokenizerDefinition.from_json(byte_level_json(add_prefix_space=True, nested=True))
    assert nested.is_byte_level_bpe and nested.add_prefix_space

    top_level = TokenizerDefinition.from_json(byte_level_json(add_prefix_space=False, nested=False))
    assert top_level.is_byte_level_bpe and not top_level.add_prefix_space

    fallback = TokenizerDefinition.from_json({"model": {"vocab": {}, "byte_fallback": True}, "pre_tokenizer": None})
    assert fallback.is_byte_level_bpe and not fallback.add_prefix_space

    plain = TokenizerDefinition.from_json({"model": {"vocab": {}}})
    assert not plain.is_byte_level_bpe


@pytest.mark.parametrize("broken", [
    [],
    {},
    {"model": {"vocab": ["a", "b"]}},
    {"model": {"vocab": {"a": -1}}},
    {"model": {"vocab": {"a": True}}},
    {"model": {"vocab": {}, "merges": ["a b c"]}},
    {"model": {"vocab": {}, "merges": [["a"]]}},
    {"model": {"vocab": {}, "merges": [42]}},
    {"model": {"vocab": {}}, "added_tokens": [{"content": "<x>"}]},
    {"model": {"vocab": {}}, "added_tokens": [{"id": 3}]},
    {"model": {"vocab": {}}, "pre_tokenizer": "ByteLevel"},
])
def test_malformed_definitions_fail_loudly(broken):
    with pytest.raises(MalformedDefinitionError):
        TokenizerDefinition.from_json(broken)


def test_load_from_file(tmp_path):
    path = tmp_path / "tokenizer.json"
    path.write_text(json.dumps(byte_level_json()), encoding="utf-8")
    assert load_tokenizer(path).encode_word("Jan") == [9]

    bad = tmp_path / "broken.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(MalformedDefinitionError):
        load_tokenizer(bad)


def test_use_before_load_raises():
    tokenizer = BpeTokenizer()
    assert not tokenizer.is_loaded()
    with pytest.raises(TokenizerNotInitializedError):
        tokenizer.encode_word("Jan")
    with pytest.raises(TokenizerNotInitializedError):
        tokenizer.special_token_id("[CLS]")


# --- Hugging Face tokenizer.json layout ---

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture(scope="module")
def hf_byte_level():
    # RoBERTa-style file: five specials, the 256-symbol byte alphabet, 15 merges
    return load_tokenizer(FIXTURES / "byte_level_bpe.json")


@pytest.mark.parametrize("word, expected", [
    ("low", [263]),
    ("lower", [265]),
    ("newest", [271]),
    ("widest", [275]),
    ("slowest", [225, 87, 80, 262, 267]),
    ("Hello", [225, 44, 73, 80, 80, 83]),
    ("né", [268, 132, 107]),
    ('"', [225, 6]),
    ("<mask>", [4]),
])
def test_hf_byte_level_word_ids(hf_byte_level, word, expected):
    assert hf_byte_level.encode_word(word) == expected


def test_hf_byte_level_special_ids(hf_byte_level):
    assert (hf_byte_level.unk_token_id, hf_byte_level.cls_token_id, hf_byte_level.sep_token_id) == (3, 0, 2)
    assert hf_byte_level.id_to_token(225) == SPACE
    assert hf_byte_level.encode_words(["low", "newest"]) == ([0, 263, 271, 2], [-1, 0, 1, -1])
