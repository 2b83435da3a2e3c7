from __future__ import annotations

from projectfield.errors import (
    EvaluationTimeout,
    FieldNotFound,
    GraphQLError,
    InvalidProjectUrl,
    OptionNotFound,
    ProjectFieldError,
    TransientGraphQLError,
    classify_error,
    redact,
)


def test_classify_rate_limit():
    info = classify_error(RuntimeError("API Rate Limit Exceeded"))
    assert info.category == "github.rate_limit"
    assert info.transient is True


def test_classify_network():
    info = classify_error(RuntimeError("Connection reset by peer"))
    assert info.category == "network"
    assert info.transient is True


def test_classify_generic():
    info = classify_error(ValueError("Some other problem"))
    assert info.category == "generic"
    assert info.original_type == "ValueError"


def test_classify_uses_error_category():
    assert classify_error(InvalidProjectUrl("x")).category == "input"
    assert classify_error(OptionNotFound("Done")).category == "field_value"
    assert classify_error(EvaluationTimeout(1.5)).category == "snippet"
    assert classify_error(FieldNotFound("Status")).category == "generic"
    info = classify_error(TransientGraphQLError("HTTP 502", status=502))
    assert (info.category, info.transient) == ("graphql", True)
    assert classify_error(GraphQLError("boom")).transient is False


def test_domain_errors_share_a_base():
    assert isinstance(FieldNotFound("Status"), ProjectFieldError)
    assert not isinstance(GraphQLError("boom"), ProjectFieldError)


def test_redact_tokens():
    sample = (
        "Token ghp_ABCDEFGHIJKLMNOPQRSTUVWX plus github_pat_1234567890abcdefghijkl "
        "and header Authorization: Bearer s3cr3t-value"
    )
    red = redact(sample)
    assert "ghp_ABCDEFGHIJKLMNOPQRSTUVWX" not in red
    assert "github_pat_1234567890abcdefghijkl" not in red
    assert "s3cr3t-value" not in red
    assert "Authorization: Bearer <redacted>" in red


def test_redact_leaves_plain_text():
    assert redact("Field is not found: Status") == "Field is not found: Status"
    assert redact("") == ""
