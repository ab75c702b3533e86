"""
Unit Tests for the parameter translator

Every legacy calling convention of a command family must normalize to the
same parameter value, and translation must never raise.
"""

import math

import pytest

from glide_ioredis.commands.scripting import split_script_args
from glide_ioredis.translator.models import (
    BlockingPopParams,
    ConditionalWrite,
    Expiry,
    ExpiryUnit,
    LexBound,
    RangeKind,
    RangeLimit,
    ScoreBound,
    ScoreComparison,
    SetParams,
)
from glide_ioredis.translator.parameters import (
    PLACEHOLDER,
    flatten_arguments,
    format_number,
    normalize_key,
    normalize_value,
    parse_lex_bound,
    parse_score_bound,
    translate_blocking_pop,
    translate_expire,
    translate_hash_fields,
    translate_keys,
    translate_list_elements,
    translate_mset,
    translate_numeric,
    translate_range_by_score,
    translate_scan,
    translate_set,
    translate_set_members,
    translate_zadd,
    translate_zrange,
)

pytestmark = pytest.mark.unit


class TestScalarNormalization:
    """Binary-safe handling of single values"""

    def test_bytes_never_decoded(self):
        payload = b'\xff\x00\xfe'
        assert normalize_value(payload) is payload

    def test_bytearray_becomes_bytes(self):
        assert normalize_value(bytearray(b'ab')) == b'ab'

    def test_str_preserved_with_control_characters(self):
        assert normalize_value("a\r\n\x00b") == "a\r\n\x00b"

    def test_empty_string_is_a_value(self):
        assert normalize_value("") == ""

    def test_none_is_placeholder(self):
        assert normalize_value(None) == PLACEHOLDER

    @pytest.mark.parametrize("number,text", [
        (1, "1"),
        (1.0, "1"),
        (1.5, "1.5"),
        (-0.25, "-0.25"),
        (2 ** 64, "18446744073709551616"),
        (float('inf'), "inf"),
        (float('-inf'), "-inf"),
    ])
    def test_number_text(self, number, text):
        assert format_number(number) == text

    def test_bool_text(self):
        assert normalize_value(True) == "true"
        assert normalize_value(False) == "false"

    def test_key_prefix(self):
        assert normalize_key("user:1", "app:") == "app:user:1"
        assert normalize_key(b"user:1", "app:") == b"app:user:1"
        assert normalize_key(7, "") == "7"


class TestNumericFamily:

    def test_large_integer_string_not_truncated(self):
        assert translate_numeric("9007199254740993") == 9007199254740993

    def test_scientific_notation(self):
        assert translate_numeric("1e3") == 1000.0
        assert translate_numeric("1e3", integer=True) == 1000

    @pytest.mark.parametrize("value", ["nan", "inf", "-inf", float('nan'), float('inf')])
    def test_non_finite_inputs_do_not_raise(self, value):
        result = translate_numeric(value)
        assert isinstance(result, float)
        assert math.isnan(result) or math.isinf(result)

    def test_unparseable_text_passed_through(self):
        assert translate_numeric("abc") == "abc"

    def test_fractional_text_for_integer_command_left_to_server(self):
        assert translate_numeric("1.5", integer=True) == "1.5"


class TestArrayFamily:

    def test_nested_lists_flattened_in_order(self):
        assert flatten_arguments(["a", ["b", ("c", "d")], "e"]) == ["a", "b", "c", "d", "e"]

    def test_none_holes_become_placeholders(self):
        assert translate_list_elements(["a", None, "b"]) == ["a", PLACEHOLDER, "b"]

    def test_list_keeps_duplicates(self):
        assert translate_list_elements(["a", "a", 1, "1"]) == ["a", "a", "1", "1"]

    def test_set_members_deduplicated_after_normalization(self):
        assert translate_set_members(["a", 1, "1", "a", b"a"]) == ["a", "1", b"a"]

    def test_variadic_and_list_keys_equal(self):
        assert translate_keys(("a", "b")) == translate_keys((["a", "b"],)) == ["a", "b"]


class TestSetOptions:
    """SET option shapes"""

    EXPECTED = SetParams(
        expiry=Expiry(ExpiryUnit.SECONDS, 10),
        condition=ConditionalWrite.ONLY_IF_NOT_EXISTS,
    )

    def test_flat_tokens(self):
        assert translate_set(("EX", 10, "NX")) == self.EXPECTED

    def test_lowercase_and_reordered_tokens(self):
        assert translate_set(("nx", "ex", "10")) == self.EXPECTED

    def test_mapping_form(self):
        assert translate_set(({"EX": 10, "NX": True},)) == self.EXPECTED

    def test_connect_redis_form(self):
        assert translate_set(({"expiration": {"type": "EX", "value": 10}, "NX": True},)) == self.EXPECTED

    def test_keyword_form(self):
        assert translate_set((), {"ex": 10, "nx": True}) == self.EXPECTED

    def test_false_flag_means_not_requested(self):
        assert translate_set(({"EX": 10, "NX": False},)).condition is None

    def test_get_and_keepttl(self):
        params = translate_set(("KEEPTTL", "GET"))
        assert params.expiry == Expiry(ExpiryUnit.KEEP_TTL)
        assert params.return_old

    def test_unknown_token_deferred_to_server(self):
        params = translate_set(("EX", 10, "BOGUS"))
        assert params.fallback_args == ("EX", "10", "BOGUS")

    def test_dangling_valued_token_is_literal(self):
        params = translate_set(("EX",))
        assert params.fallback_args == ("EX",)

    def test_no_options(self):
        assert translate_set(()) == SetParams()

    @pytest.mark.parametrize("args, expected", [
        (("EX", "1.5"), ("EX", "1.5")),
        (("EX", "abc", "NX"), ("EX", "abc", "NX")),
        (("PX", 0), ("PX", "0")),
        (("EX", -5), ("EX", "-5")),
    ])
    def test_invalid_expiry_deferred_to_server(self, args, expected):
        assert translate_set(args).fallback_args == expected


class TestHashFamily:

    EXPECTED = (("f1", "v1"), ("f2", "v2"))

    @pytest.mark.parametrize("args", [
        ("f1", "v1", "f2", "v2"),
        ({"f1": "v1", "f2": "v2"},),
        ([("f1", "v1"), ("f2", "v2")],),
        (["f1", "v1", "f2", "v2"],),
    ])
    def test_shapes_are_equal(self, args):
        assert translate_hash_fields(args).fields == self.EXPECTED

    def test_mapping_keyword(self):
        assert translate_hash_fields((), {"f1": "v1", "f2": "v2"}).fields == self.EXPECTED

    def test_callable_values_skipped(self):
        params = translate_hash_fields(({"f1": "v1", "fn": lambda: None},))
        assert params.mapping() == {"f1": "v1"}

    def test_numbers_stringified(self):
        assert translate_hash_fields(("n", 1.0)).mapping() == {"n": "1"}

    def test_odd_run_deferred(self):
        params = translate_hash_fields(("f1", "v1", "f2"))
        assert params.fields == ()
        assert params.fallback_args == ("f1", "v1", "f2")

    def test_mset_keys_prefixed(self):
        assert translate_mset(({"a": 1},), "p:").mapping() == {"p:a": "1"}


class TestScoreRangeFamily:

    @pytest.mark.parametrize("raw,bound", [
        (5, ScoreBound(5.0)),
        ("5", ScoreBound(5.0)),
        ("(5", ScoreBound(5.0, inclusive=False)),
        ("-inf", ScoreBound(float('-inf'))),
        ("+inf", ScoreBound(float('inf'))),
        ("(+inf", ScoreBound(float('inf'), inclusive=False)),
    ])
    def test_score_bounds(self, raw, bound):
        assert parse_score_bound(raw) == bound

    def test_nan_bound_equal_to_itself(self):
        assert parse_score_bound("nan") == parse_score_bound("nan")

    @pytest.mark.parametrize("raw,bound", [
        ("[a", LexBound("a", inclusive=True)),
        ("(a", LexBound("a", inclusive=False)),
        ("-", LexBound(infinite="-")),
        ("+", LexBound(infinite="+")),
    ])
    def test_lex_bounds(self, raw, bound):
        assert parse_lex_bound(raw) == bound

    def test_withscores_and_limit_anywhere(self):
        first = translate_zrange("0", "10", ("BYSCORE", "WITHSCORES", "LIMIT", 0, 5))
        second = translate_zrange(0, 10, ("limit", "0", "5", "withscores", "byscore"))
        assert first == second
        assert first.kind is RangeKind.SCORE
        assert first.limit == RangeLimit(0, 5)
        assert first.with_scores

    def test_index_range(self):
        params = translate_zrange(0, -1, ("WITHSCORES",))
        assert (params.start, params.stop, params.kind) == (0, -1, RangeKind.INDEX)
        assert params.limit is None

    def test_index_range_keeps_limit(self):
        params = translate_zrange(0, -1, ("LIMIT", 0, 1))
        assert params.kind is RangeKind.INDEX
        assert params.limit == RangeLimit(0, 1)

    def test_rev_byscore_keeps_argument_order(self):
        params = translate_zrange("+inf", "(1", ("BYSCORE", "REV"))
        assert params.reverse
        assert params.start == ScoreBound(float('inf'))
        assert params.stop == ScoreBound(1.0, inclusive=False)

    def test_rangebyscore_limit(self):
        params = translate_range_by_score("-inf", "+inf", ("LIMIT", 2, 3))
        assert params.limit == RangeLimit(2, 3)
        assert not params.with_scores


class TestZAdd:

    EXPECTED_MEMBERS = (("a", 1.0), ("b", 2.0))

    @pytest.mark.parametrize("args", [
        (1, "a", 2, "b"),
        ([1, "a", 2, "b"],),
        ([(1, "a"), (2, "b")],),
        ({"a": 1, "b": 2},),
        ("1", "a", "2", "b"),
    ])
    def test_shapes_are_equal(self, args):
        assert translate_zadd(args).members == self.EXPECTED_MEMBERS

    def test_full_float_precision(self):
        params = translate_zadd(("0.1000000000000000055511151231257827", "a"))
        assert params.members == (("a", 0.1),)

    def test_leading_flags(self):
        params = translate_zadd(("XX", "GT", "CH", 1, "a"))
        assert params.condition is ConditionalWrite.ONLY_IF_EXISTS
        assert params.comparison is ScoreComparison.GREATER_THAN
        assert params.changed

    def test_member_named_like_flag_is_data(self):
        params = translate_zadd((1, "NX"))
        assert params.condition is None
        assert params.members == (("NX", 1.0),)

    def test_flags_as_keywords_with_mapping(self):
        params = translate_zadd(({"a": 1},), {"nx": True, "incr": True})
        assert params.condition is ConditionalWrite.ONLY_IF_NOT_EXISTS
        assert params.increment

    def test_infinite_scores(self):
        params = translate_zadd(("-inf", "low", "+inf", "high"))
        assert params.members == (("low", float('-inf')), ("high", float('inf')))

    def test_odd_run_deferred(self):
        params = translate_zadd(("NX", 1, "a", 2))
        assert params.fallback_args == ("NX", "1", "a", "2")


class TestBlockingPops:

    def test_variadic_equals_list(self):
        expected = BlockingPopParams(keys=("a", "b"), timeout=0)
        assert translate_blocking_pop(("a", "b", 0)) == expected
        assert translate_blocking_pop((["a", "b"], 0)) == expected

    def test_prefix_applied_to_keys(self):
        assert translate_blocking_pop(("a", 1.5), "p:").keys == ("p:a",)

    def test_missing_timeout_blocks_forever(self):
        assert translate_blocking_pop(("a",)).timeout == 0


class TestScanAndExpire:

    def test_match_consumes_token_like_value(self):
        params = translate_scan(0, ("MATCH", "COUNT", "COUNT", 10))
        assert params.match == "COUNT"
        assert params.count == 10

    def test_keywords(self):
        params = translate_scan("5", (), {"match": "user:*", "type": "HASH"})
        assert (params.cursor, params.match, params.type) == ("5", "user:*", "hash")

    def test_expire_condition(self):
        params = translate_expire("10", ("gt",))
        assert (params.amount, params.condition) == (10, "GT")


class TestScriptArguments:

    def test_keys_split_from_values(self):
        assert split_script_args("2", ("a", ["b", "c"])) == (2, ["a", "b"], ["c"])

    @pytest.mark.parametrize("numkeys", ["abc", 3, -1, True, "1.5"])
    def test_unusable_count_splits_nothing(self, numkeys):
        assert split_script_args(numkeys, ("a", "b")) == (None, [], ["a", "b"])
