from unittest.mock import patch

import pytest

from workflow_core.culture import default_culture, parse_culture, resolve_culture
from workflow_core.errors import InvalidCultureError, RequestValidationError


@pytest.mark.parametrize(
    "tag, expected",
    [
        ("en-US", "en-US"),
        ("en-us", "en-US"),
        ("fr_FR", "fr-FR"),
        ("de", "de"),
        ("sr-latn-rs", "sr-Latn-RS"),
        ("bn-IN", "bn-IN"),
        ("sw-ke", "sw-KE"),
        ("hy-AM", "hy-AM"),
        ("kk-KZ", "kk-KZ"),
        ("ne-NP", "ne-NP"),
        ("km-KH", "km-KH"),
        ("fil-PH", "fil-PH"),
        ("es-419", "es-419"),
    ],
)
def test_parse_culture(tag, expected):
    assert parse_culture(tag) == expected


@pytest.mark.parametrize("tag", ["english", "en-USA-x", "12", "en--US", ""])
def test_invalid_culture(tag):
    with pytest.raises(InvalidCultureError):
        parse_culture(tag)


def test_invalid_culture_is_a_request_error():
    assert issubclass(InvalidCultureError, RequestValidationError)


@patch("workflow_core.culture.locale.getlocale", return_value=(None, None))
def test_default_culture_without_locale(mock_getlocale):
    assert default_culture() == "en-US"
    assert resolve_culture(None) == "en-US"
    assert resolve_culture("  ") == "en-US"


@patch("workflow_core.culture.locale.getlocale", return_value=("de_DE", "UTF-8"))
def test_default_culture_from_process_locale(mock_getlocale):
    assert default_culture() == "de-DE"


def test_resolve_culture_prefers_explicit_tag():
    assert resolve_culture("fr-fr") == "fr-FR"
