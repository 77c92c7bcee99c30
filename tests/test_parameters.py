"""Tests for OAuthParameters parsing, validation and serialisation."""

import pytest

from oauthkit.constants import ParameterSources, Parameters
from oauthkit.parameters import OAuthParameters, parse_header, unescape_quoted
from oauthkit.problems import ProblemType
from oauthkit.result import Err, Ok

REQUIRED = (
    Parameters.OAUTH_CONSUMER_KEY,
    Parameters.OAUTH_TOKEN,
    Parameters.OAUTH_SIGNATURE_METHOD,
    Parameters.OAUTH_SIGNATURE,
    Parameters.OAUTH_TIMESTAMP,
    Parameters.OAUTH_NONCE,
)


def full_parameters() -> OAuthParameters:
    return OAuthParameters(
        consumer_key="ck",
        token="tok",
        signature_method="HMAC-SHA1",
        signature="sig",
        timestamp="1191242096",
        nonce="n1",
    )


class TestHeaderParsing:
    """Tests for Authorization / WWW-Authenticate header decoding."""

    def test_parse_header_pairs(self):
        """Quoted values are unquoted and percent-decoded."""
        pairs = parse_header('OAuth realm="Photos", oauth_consumer_key="dpf43f3p2l4k3l03", oauth_nonce="a%20b"')
        assert pairs == [
            ("realm", "Photos"),
            ("oauth_consumer_key", "dpf43f3p2l4k3l03"),
            ("oauth_nonce", "a b"),
        ]

    def test_scheme_is_case_insensitive(self):
        assert parse_header('oauth oauth_token="t"') == [("oauth_token", "t")]

    def test_other_schemes_are_ignored(self):
        assert parse_header("Bearer abc") == []
        assert parse_header(None) == []

    def test_backslash_escapes(self):
        """Quoted-string escapes are resolved before percent-decoding."""
        assert unescape_quoted(r'a\"b\\c\n') == 'a"b\\c\n'
        assert unescape_quoted(r"\x41、\U0001F600") == "A、\U0001F600"
        pairs = parse_header(r'OAuth oauth_nonce="x\"y"')
        assert pairs == [("oauth_nonce", 'x"y')]

    def test_empty_value_is_present(self):
        parameters = OAuthParameters.parse(authorization_header='OAuth oauth_token=""')
        assert parameters.token == ""
        assert parameters.consumer_key is None


class TestCollation:
    """Tests for collating parameters across sources."""

    def test_sources_are_merged(self):
        parameters = OAuthParameters.parse(
            authorization_header='OAuth oauth_consumer_key="ck", oauth_nonce="n"',
            post_body="status=hello%20world",
            query_string="file=vacation.jpg&size=original",
        )
        assert parameters.consumer_key == "ck"
        assert parameters.nonce == "n"
        assert parameters.additional_parameters == {
            "status": ["hello world"],
            "file": ["vacation.jpg"],
            "size": ["original"],
        }

    def test_header_takes_precedence(self):
        """Without validation the Authorization header wins over body and query."""
        parameters = OAuthParameters.parse(
            authorization_header='OAuth oauth_consumer_key="from-header"',
            query_string="oauth_consumer_key=from-query",
        )
        assert parameters.consumer_key == "from-header"

    def test_unselected_sources_are_ignored(self):
        parameters = OAuthParameters.parse(
            authorization_header='OAuth oauth_consumer_key="ck"',
            query_string="oauth_nonce=n",
            sources=ParameterSources.QUERY_STRING,
        )
        assert parameters.consumer_key is None
        assert parameters.nonce == "n"

    def test_extension_parameters_in_authorization_header_are_dropped(self):
        parameters = OAuthParameters.parse(authorization_header='OAuth oauth_token="t", custom="x"')
        assert parameters.additional_parameters == {}

    def test_realm_is_read_from_headers_only(self):
        parameters = OAuthParameters.parse(query_string="realm=q")
        assert parameters.realm is None
        assert "realm" not in parameters.additional_parameters

    def test_multi_valued_extension_parameters(self):
        parameters = OAuthParameters.parse(query_string="a=1&a=2")
        assert parameters.additional_parameters == {"a": ["1", "2"]}

    def test_response_parsing_keeps_problem_fields(self):
        parameters = OAuthParameters.parse_response("oauth_problem=token_used&oauth_problem_advice=x")
        assert parameters.additional_parameters["oauth_problem"] == ["token_used"]


class TestValidation:
    """Tests for validated parsing."""

    def test_valid_request(self):
        result = OAuthParameters.parse_validated(
            authorization_header='OAuth oauth_consumer_key="ck", oauth_nonce="n"',
            query_string="file=vacation.jpg",
        )
        assert isinstance(result, Ok)
        assert result.value.consumer_key == "ck"

    def test_duplicate_reserved_parameter_across_sources(self):
        result = OAuthParameters.parse_validated(
            authorization_header='OAuth oauth_nonce="n"',
            query_string="oauth_nonce=n",
        )
        assert isinstance(result, Err)
        assert result.problem.problem == ProblemType.PARAMETER_REJECTED
        assert result.problem.parameter_names == ["oauth_nonce"]

    def test_duplicate_within_one_source(self):
        result = OAuthParameters.parse_validated(query_string="oauth_token=a&oauth_token=b")
        assert isinstance(result, Err)
        assert result.problem.parameter_names == ["oauth_token"]

    def test_unknown_oauth_prefixed_parameter(self):
        result = OAuthParameters.parse_validated(query_string="oauth_foo=bar")
        assert isinstance(result, Err)
        assert result.problem.problem == ProblemType.PARAMETER_REJECTED
        assert result.problem.parameter_names == ["oauth_foo"]

    def test_undecodable_header_value_is_rejected(self):
        result = OAuthParameters.parse_validated(
            authorization_header='OAuth oauth_consumer_key="ck", oauth_nonce="%FF"',
        )
        assert isinstance(result, Err)
        assert result.problem.problem == ProblemType.PARAMETER_REJECTED
        assert result.problem.parameter_names == ["oauth_nonce"]

    def test_undecodable_header_value_is_dropped_when_not_validating(self):
        parameters = OAuthParameters.parse(authorization_header='OAuth oauth_consumer_key="ck", oauth_nonce="%FF"')
        assert parameters.consumer_key == "ck"
        assert parameters.nonce is None

    def test_require_all_of_passes_with_every_field(self):
        assert full_parameters().require_all_of(*REQUIRED) is None

    @pytest.mark.parametrize("missing", REQUIRED)
    def test_require_all_of_names_exactly_the_missing_field(self, missing):
        parameters = full_parameters()
        parameters.set(missing, None)
        problem = parameters.require_all_of(*REQUIRED)
        assert problem.problem == ProblemType.PARAMETER_ABSENT
        assert problem.parameter_names == [missing]
        assert problem.status_code == 400

    def test_allow_only(self):
        parameters = full_parameters()
        parameters.verifier = "v"
        problem = parameters.allow_only(*REQUIRED)
        assert problem.problem == ProblemType.PARAMETER_REJECTED
        assert problem.parameter_names == ["oauth_verifier"]
        assert full_parameters().allow_only(*REQUIRED) is None

    def test_require_version(self):
        parameters = full_parameters()
        assert parameters.require_version("1.0") is None
        parameters.version = "1.0"
        assert parameters.require_version("1.0") is None
        parameters.version = "2.0"
        problem = parameters.require_version("1.0")
        assert problem.problem == ProblemType.VERSION_REJECTED
        assert problem.additional_parameter == ("oauth_acceptable_versions", "1.0-1.0")

    def test_reserved_names_refused_as_extension_parameters(self):
        parameters = OAuthParameters()
        with pytest.raises(ValueError):
            parameters.add_additional_parameter("oauth_custom", "x")
        with pytest.raises(ValueError):
            parameters.add_additional_parameter("realm", "x")


class TestSerialisation:
    """Tests for normalized, header and query string formats."""

    def test_normalized_empty_value(self):
        parameters = OAuthParameters(additional_parameters={"name": [""]})
        assert parameters.to_normalized_string() == "name="

    def test_normalized_sorts_by_encoded_value(self):
        parameters = OAuthParameters(additional_parameters={"a": ["x!y", "x y"]})
        assert parameters.to_normalized_string() == "a=x%20y&a=x%21y"

    def test_normalized_sorts_by_encoded_key(self):
        parameters = OAuthParameters(additional_parameters={"x!y": ["a"], "x": ["a"]})
        assert parameters.to_normalized_string() == "x=a&x%21y=a"

    def test_normalized_exclusions(self):
        parameters = OAuthParameters(realm="Photos", signature="sig", token_secret="s", nonce="n")
        normalized = parameters.to_normalized_string(
            Parameters.REALM, Parameters.OAUTH_SIGNATURE, Parameters.OAUTH_TOKEN_SECRET
        )
        assert normalized == "oauth_nonce=n"

    def test_normalized_round_trip(self):
        """Parsing the normalized string reproduces the same key/value multiset."""
        parameters = full_parameters()
        parameters.additional_parameters = {"a": ["x y", "x!y"], "b": [""], "c&d": ["=e"]}
        reparsed = OAuthParameters.parse(
            query_string=parameters.to_normalized_string(), sources=ParameterSources.QUERY_STRING
        )
        assert sorted(reparsed.reserved_items()) == sorted(parameters.reserved_items())
        assert {k: sorted(v) for k, v in reparsed.additional_parameters.items()} == {
            k: sorted(v) for k, v in parameters.additional_parameters.items()
        }

    def test_header_format(self):
        parameters = OAuthParameters(
            realm="Photos", consumer_key="ck", token="t", token_secret="s", nonce="a b",
            additional_parameters={"file": ["x"]},
        )
        assert parameters.to_header_format() == (
            'OAuth realm="Photos", oauth_consumer_key="ck", oauth_nonce="a%20b", oauth_token="t"'
        )

    def test_header_format_round_trip(self):
        parameters = full_parameters()
        parameters.realm = "http://photos.example.net/"
        parameters.nonce = 'a "quoted", value'
        reparsed = OAuthParameters.parse(authorization_header=parameters.to_header_format())
        assert reparsed.realm == parameters.realm
        assert reparsed.nonce == parameters.nonce
        assert reparsed.signature == "sig"

    def test_query_string_format(self):
        parameters = OAuthParameters(
            realm="Photos", consumer_key="ck", token_secret="s", additional_parameters={"file": ["x"]}
        )
        assert parameters.to_query_string_format() == "file=x&oauth_consumer_key=ck"
